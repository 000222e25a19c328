r"""
Generalized Argus density, with threshold :math:`c` and curvature :math:`\chi`:

.. math::
    A(x) = \frac{1}{N} x \sqrt{1 - \frac{x^2}{c^2}}
           \exp\left(-\chi^2 \left(1 - \frac{x^2}{c^2}\right)\right),
    \quad 0 \leq x \leq c

With :math:`u = 1 - x^2/c^2` the integral becomes an incomplete gamma
function. Since the substitution reverses the direction of integration, the
upper edge of the range in :math:`x` gives the lower edge in :math:`u`:

.. math::
    N = \frac{c^2}{2\chi^3} \Gamma\left(\tfrac{3}{2}\right)
        \left[P\left(\tfrac{3}{2}, \chi^2 u_{max}\right)
            - P\left(\tfrac{3}{2}, \chi^2 u_{min}\right)\right]

with :math:`P` the regularized lower incomplete gamma function. For
:math:`\chi = 0`, :math:`N = c^2/3 \, (u_{max}^{3/2} - u_{min}^{3/2})`.
"""

from __future__ import annotations

import logging

import numba as nb
import numpy as np
from scipy.special import gammainc, gammaincinv

from cpfit.errors import PdfError
from cpfit.pdfs.truncated import TruncatedPdf
from cpfit.random import engine
from cpfit.utils import numba_math_defaults as nb_defaults
from cpfit.variables import Parameter, ParameterExpr, Variable

log = logging.getLogger(__name__)

# Gamma(3/2), since gammainc is normalized to Gamma(a)
GAMMA_3_2 = np.sqrt(np.pi) / 2.0


@nb.vectorize([nb.float64(nb.float64, nb.float64, nb.float64)], **nb_defaults.vectorize())
def nb_argus_shape(x: float, c: float, chi: float) -> float:
    """Unnormalized generalized Argus, zero outside ``[0, c]``."""
    if c <= 0 or x < 0 or x > c:
        return 0.0
    diff = 1.0 - (x / c) ** 2
    return x * np.sqrt(diff) * np.exp(-(chi**2) * diff)


class Argus(TruncatedPdf):
    """Generalized Argus in `x`, with threshold `c` and curvature `chi`."""

    def __init__(
        self,
        x: Variable,
        c: Parameter | ParameterExpr,
        chi: Parameter | ParameterExpr,
    ) -> None:
        super().__init__(x)
        self._c = ParameterExpr.of(c).copy()
        self._chi = ParameterExpr.of(chi).copy()
        self.push(self._c)
        self.push(self._chi)
        self.cache()

    def c(self) -> float:
        return float(self._c.evaluate())

    def chi(self) -> float:
        return float(self._chi.evaluate())

    def set_par_expr(self) -> None:
        self._c.set_pars(self._par_map)
        self._chi.set_pars(self._par_map)

    def _check_limit(self, value: float, which: str) -> None:
        if value < 0.0:
            raise PdfError(
                f"Cannot set the {which} limit of the Argus distribution "
                "to anything smaller than 0."
            )

    def support(self) -> tuple[float, float]:
        return 0.0, max(self.c(), 0.0)

    def _shape(self, x):
        return nb_argus_shape(x, self.c(), self.chi())

    def _gamma_args(self, xmin: float, xmax: float) -> tuple[float, float]:
        vc = self.c()
        argmax = 1.0 - (xmin / vc) ** 2
        argmin = 1.0 - (xmax / vc) ** 2
        return argmin, argmax

    def _integral(self, xmin: float, xmax: float) -> float:
        vc = self.c()
        if vc <= 0.0:
            return 0.0

        c_sq = vc**2
        chi_sq = self.chi() ** 2
        argmin, argmax = self._gamma_args(xmin, xmax)

        if chi_sq == 0.0:
            return c_sq / 3.0 * (argmax**1.5 - argmin**1.5)

        chi3 = abs(self.chi()) ** 3
        factor = c_sq / (2.0 * chi3) * GAMMA_3_2
        return float(
            factor * (gammainc(1.5, chi_sq * argmax) - gammainc(1.5, chi_sq * argmin))
        )

    def generate(self) -> dict[str, float]:
        # exact inversion of the cumulative distribution in u = 1 - x^2/c^2
        lo, hi = self._sample_range()
        argmin, argmax = self._gamma_args(lo, hi)
        chi_sq = self.chi() ** 2
        rng = engine()

        if chi_sq == 0.0:
            q = rng.uniform(argmin**1.5, argmax**1.5)
            u = q ** (2.0 / 3.0)
        else:
            p = rng.uniform(gammainc(1.5, chi_sq * argmin), gammainc(1.5, chi_sq * argmax))
            u = gammaincinv(1.5, p) / chi_sq

        u = min(max(u, 0.0), 1.0)
        return {self.get_var(0).name: float(self.c() * np.sqrt(1.0 - u))}
