r"""
Truncated Gaussian density.

Definitions of several functions based on the definition of the norm:

.. math::
    G(x) = \frac{1}{N} \exp\left(-\frac{(x-\mu)^2}{2\sigma^2}\right)

    N = \sigma \sqrt{\frac{\pi}{2}}
        \left[\text{erf}\left(\frac{x-\mu}{\sigma\sqrt{2}}\right)\right]_{lower}^{upper}

    \text{area}(x_{min}, x_{max}) = \frac{\sigma}{N} \sqrt{\frac{\pi}{2}}
        \left[\text{erf}\left(\frac{x-\mu}{\sigma\sqrt{2}}\right)\right]
        _{\max(x_{min}, lower)}^{\min(x_{max}, upper)}
"""

from __future__ import annotations

import logging

import numba as nb
import numpy as np

from cpfit.pdfs.error_function import nb_erf, nb_gauss_core_integral
from cpfit.pdfs.truncated import TruncatedPdf
from cpfit.random import engine
from cpfit.utils import numba_math_defaults as nb_defaults
from cpfit.variables import Parameter, ParameterExpr, Variable

log = logging.getLogger(__name__)

SQRT2 = np.sqrt(2.0)


@nb.vectorize([nb.float64(nb.float64, nb.float64, nb.float64)], **nb_defaults.vectorize())
def nb_gauss_shape(x: float, mu: float, sigma: float) -> float:
    """Unnormalized Gaussian. A zero width gives a spike at `mu`."""
    if sigma == 0:
        return np.inf if x == mu else 0.0
    z = (x - mu) / sigma
    return np.exp(-0.5 * z * z)


class Gauss(TruncatedPdf):
    """Gaussian in `x` with mean `mu` and width `sigma`.

    Examples
    --------
    >>> x = Variable("x")
    >>> g = Gauss(x, Parameter("mu", 0.0), Parameter("sigma", 1.0))
    >>> g.area(-1, 1)
    0.6826894921370859
    """

    def __init__(
        self,
        x: Variable,
        mu: Parameter | ParameterExpr,
        sigma: Parameter | ParameterExpr,
    ) -> None:
        super().__init__(x)
        self._mu = ParameterExpr.of(mu).copy()
        self._sigma = ParameterExpr.of(sigma).copy()
        self.push(self._mu)
        self.push(self._sigma)
        self.cache()

    def mu(self) -> float:
        return float(self._mu.evaluate())

    def sigma(self) -> float:
        return abs(float(self._sigma.evaluate()))

    def set_par_expr(self) -> None:
        self._mu.set_pars(self._par_map)
        self._sigma.set_pars(self._par_map)

    def _shape(self, x):
        return nb_gauss_shape(x, self.mu(), self.sigma())

    def cache(self) -> None:
        vmu = self.mu()
        vsigma = self.sigma()

        if vsigma == 0.0:
            self._norm = 0.0
            return

        argmin = 0.0
        if self._has_lower:
            argmin = 1.0 + nb_erf((self._lower - vmu) / (vsigma * SQRT2))

        argmax = 2.0
        if self._has_upper:
            argmax = 1.0 + nb_erf((self._upper - vmu) / (vsigma * SQRT2))

        factor = vsigma * np.sqrt(np.pi / 2.0)
        self._norm = max(float(factor * (argmax - argmin)), 0.0)

    def _integral(self, xmin: float, xmax: float) -> float:
        vmu = self.mu()
        vsigma = self.sigma()
        if vsigma == 0.0:
            return 0.0
        t_lo = (xmin - vmu) / vsigma
        t_hi = (xmax - vmu) / vsigma
        return float(vsigma * nb_gauss_core_integral(t_lo, t_hi))

    def _degenerate_value(self, x: float) -> float:
        return np.inf if self.sigma() == 0.0 and x == self.mu() else 0.0

    def _degenerate_area(self, xmin: float, xmax: float) -> float:
        # zero width: all the probability sits at mu
        vmu = self.mu()
        if self.sigma() != 0.0 or not xmin <= vmu <= xmax:
            return 0.0
        lo, hi = self._range()
        return 1.0 if lo <= vmu <= hi else 0.0

    def generate(self) -> dict[str, float]:
        if self.sigma() == 0.0 and self._degenerate_area(self.mu(), self.mu()) == 1.0:
            return {self.get_var(0).name: self.mu()}
        lo, hi = self._sample_range()
        rng = engine()
        while True:
            value = rng.normal(self.mu(), self.sigma())
            if lo <= value <= hi:
                return {self.get_var(0).name: float(value)}
