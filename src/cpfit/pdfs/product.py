"""
Product of densities of disjoint variables, e.g. a mass model times a
Dalitz-plot model.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np

from cpfit.cache import CacheSession
from cpfit.dataset import Dataset
from cpfit.errors import PdfError
from cpfit.pdfs.base import PdfBase

log = logging.getLogger(__name__)


class ProductPdf(PdfBase):
    r"""Joint density :math:`\prod_i P_i(x_i)` of independent factors.

    The factors are copied. Parameters with the same name are shared between
    factors; variables must not be.

    Parameters
    ----------
    factors
        the densities to multiply, in the order their variables are listed.
    """

    def __init__(self, *factors: PdfBase) -> None:
        super().__init__()
        if len(factors) == 1 and isinstance(factors[0], (list, tuple)):
            factors = tuple(factors[0])
        if not factors:
            raise PdfError("ProductPdf needs at least one factor")

        self._factors = [f.copy() for f in factors]
        for factor in self._factors:
            for var in factor.get_vars().values():
                self.push(var)
            for par in factor.get_pars().values():
                self.push(par)

        names = self.var_names()
        self._slices = [
            [names.index(name) for name in factor.var_names()] for factor in self._factors
        ]

    def factors(self) -> list[PdfBase]:
        return self._factors

    def set_par_expr(self) -> None:
        for factor in self._factors:
            factor.set_pars({name: self._par_map[name] for name in factor.par_names()})

    def cache(self) -> None:
        pass

    def _cache_depends_on(self, name: str) -> bool:
        # factors invalidate their own caches when the parameters are forwarded
        return False

    def uncache(self) -> None:
        super().uncache()
        for factor in self._factors:
            factor.uncache()

    def uses_cache(self) -> bool:
        return any(factor.uses_cache() for factor in self._factors)

    def cache_real(self, data: Dataset, session: CacheSession) -> dict[int, np.ndarray]:
        cached = {}
        for factor in self._factors:
            cached.update(factor.cache_real(data, session))
        self._use_cache = self.uses_cache()
        return cached

    def cache_complex(
        self, data: Dataset, session: CacheSession
    ) -> dict[int, np.ndarray]:
        cached = {}
        for factor in self._factors:
            cached.update(factor.cache_complex(data, session))
        self._use_cache = self.uses_cache()
        return cached

    def _split(self, vars: Sequence[float] | None) -> list[list[float]]:
        if vars is None:
            vars = [var.value() for var in self._var_map.values()]
        if len(vars) != self.n_vars():
            raise PdfError(f"expected {self.n_vars()} variable values, got {len(vars)}")
        return [[vars[i] for i in idx] for idx in self._slices]

    def evaluate(self, vars: Sequence[float] | None = None) -> float:
        value = 1.0
        for factor, sub in zip(self._factors, self._split(vars)):
            value *= factor.evaluate(sub)
        return float(value)

    def evaluate_cached(
        self,
        vars: Sequence[float],
        cache_r: Mapping[int, float],
        cache_c: Mapping[int, complex],
    ) -> float:
        value = 1.0
        for factor, sub in zip(self._factors, self._split(vars)):
            value *= factor.evaluate_cached(sub, cache_r, cache_c)
        return float(value)

    def generate(self) -> dict[str, float]:
        event = {}
        for factor in self._factors:
            event.update(factor.generate())
        return event

    def project(self, var: str, value: float, region=None) -> float:
        # the other factors integrate to one
        for factor in self._factors:
            if factor.depends_on(var):
                return factor.project(var, value)
        raise PdfError(f"ProductPdf does not depend on {var!r}")

    def copy(self):
        new = super().copy()
        new._factors = [factor.copy() for factor in new._factors]
        return new
