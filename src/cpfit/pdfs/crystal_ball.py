r"""
Double-sided Crystal Ball density: a Gaussian core with a power-law tail on
each side. With :math:`t = (x-\mu)/\sigma`:

.. math::
    f(t) = \begin{cases}
        A_{lo} (B_{lo} - t)^{-n} & t < -\alpha \\
        e^{-t^2/2} & -\alpha \leq t \leq \beta \\
        A_{up} (B_{up} + t)^{-m} & t > \beta
    \end{cases}

where

.. math::
    A_{lo} = \left(\frac{n}{\alpha}\right)^n e^{-\alpha^2/2}, \quad
    B_{lo} = \frac{n}{\alpha} - \alpha, \quad
    A_{up} = \left(\frac{m}{\beta}\right)^m e^{-\beta^2/2}, \quad
    B_{up} = \frac{m}{\beta} - \beta

The norm and the areas come from the closed-form primitive of :math:`f`.
"""

from __future__ import annotations

import logging
import math

import numba as nb
import numpy as np
from scipy.optimize import brentq

from cpfit.errors import PdfError
from cpfit.pdfs.error_function import nb_gauss_core_integral
from cpfit.pdfs.truncated import TruncatedPdf
from cpfit.random import engine
from cpfit.utils import numba_math_defaults as nb_defaults
from cpfit.variables import Parameter, ParameterExpr, Variable

log = logging.getLogger(__name__)


@nb.vectorize(
    [nb.float64(nb.float64, nb.float64, nb.float64, nb.float64, nb.float64, nb.float64, nb.float64)],
    **nb_defaults.vectorize(),
)
def nb_double_crystal_ball_shape(
    x: float, mu: float, sigma: float, alpha: float, n: float, beta: float, m: float
) -> float:
    """Unnormalized double-sided Crystal Ball."""
    t = (x - mu) / sigma
    if t < -alpha:
        const_a = (n / alpha) ** n * np.exp(-0.5 * alpha**2)
        const_b = n / alpha - alpha
        return const_a * (const_b - t) ** (-n)
    if t > beta:
        const_a = (m / beta) ** m * np.exp(-0.5 * beta**2)
        const_b = m / beta - beta
        return const_a * (const_b + t) ** (-m)
    return np.exp(-0.5 * t * t)


class DoubleCrystalBall(TruncatedPdf):
    """Gaussian core `mu`, `sigma` with a lower tail (`alpha`, `n`) and an
    upper tail (`beta`, `m`)."""

    def __init__(
        self,
        x: Variable,
        mu: Parameter | ParameterExpr,
        sigma: Parameter | ParameterExpr,
        alpha: Parameter | ParameterExpr,
        n: Parameter | ParameterExpr,
        beta: Parameter | ParameterExpr,
        m: Parameter | ParameterExpr,
    ) -> None:
        super().__init__(x)
        self._exprs = {
            "mu": ParameterExpr.of(mu).copy(),
            "sigma": ParameterExpr.of(sigma).copy(),
            "alpha": ParameterExpr.of(alpha).copy(),
            "n": ParameterExpr.of(n).copy(),
            "beta": ParameterExpr.of(beta).copy(),
            "m": ParameterExpr.of(m).copy(),
        }
        for expr in self._exprs.values():
            self.push(expr)
        self.cache()

    def mu(self) -> float:
        return float(self._exprs["mu"].evaluate())

    def sigma(self) -> float:
        return float(self._exprs["sigma"].evaluate())

    def alpha(self) -> float:
        return float(self._exprs["alpha"].evaluate())

    def n(self) -> float:
        return float(self._exprs["n"].evaluate())

    def beta(self) -> float:
        return float(self._exprs["beta"].evaluate())

    def m(self) -> float:
        return float(self._exprs["m"].evaluate())

    def set_par_expr(self) -> None:
        for expr in self._exprs.values():
            expr.set_pars(self._par_map)

    def _check_shape(self) -> None:
        if self.sigma() <= 0.0:
            raise PdfError("DoubleCrystalBall: sigma must be positive")
        if self.alpha() <= 0.0 or self.beta() <= 0.0:
            raise PdfError("DoubleCrystalBall: alpha and beta must be positive")
        if self.n() <= 1.0 or self.m() <= 1.0:
            raise PdfError("DoubleCrystalBall: n and m must be greater than 1")

    def cache(self) -> None:
        self._check_shape()
        super().cache()

    def _shape(self, x):
        return nb_double_crystal_ball_shape(
            x, self.mu(), self.sigma(), self.alpha(), self.n(), self.beta(), self.m()
        )

    def _primitive(self, t: float) -> float:
        """Integral of the shape in units of t, from minus infinity to t."""
        alpha, n = self.alpha(), self.n()
        beta, m = self.beta(), self.m()

        if t < -alpha:
            const_a = (n / alpha) ** n * math.exp(-0.5 * alpha**2)
            const_b = n / alpha - alpha
            return const_a / (n - 1.0) * (const_b - t) ** (1.0 - n)

        lower_tail = n / (alpha * (n - 1.0)) * math.exp(-0.5 * alpha**2)

        if t <= beta:
            return lower_tail + nb_gauss_core_integral(-alpha, t)

        core = nb_gauss_core_integral(-alpha, beta)
        const_a = (m / beta) ** m * math.exp(-0.5 * beta**2)
        const_b = m / beta - beta
        upper_tail = const_a / (m - 1.0) * ((m / beta) ** (1.0 - m) - (const_b + t) ** (1.0 - m))
        return lower_tail + core + upper_tail

    def _to_t(self, x: float) -> float:
        return (x - self.mu()) / self.sigma()

    def _integral(self, xmin: float, xmax: float) -> float:
        return float(
            self.sigma() * (self._primitive(self._to_t(xmax)) - self._primitive(self._to_t(xmin)))
        )

    def generate(self) -> dict[str, float]:
        lo, hi = self._sample_range()
        t_lo, t_hi = self._to_t(lo), self._to_t(hi)
        p_lo, p_hi = self._primitive(t_lo), self._primitive(t_hi)
        target = engine().uniform(p_lo, p_hi)

        # bracket the root inside the (possibly infinite) sampling range
        a = t_lo if np.isfinite(t_lo) else min(-1.0, t_hi - 1.0)
        b = t_hi if np.isfinite(t_hi) else max(1.0, a + 1.0)
        step = 1.0
        while self._primitive(a) > target:
            step *= 2.0
            a -= step
        while self._primitive(b) < target:
            step *= 2.0
            b += step

        t = brentq(lambda s: self._primitive(s) - target, a, b) if b > a else a
        return {self.get_var(0).name: float(self.mu() + self.sigma() * t)}
