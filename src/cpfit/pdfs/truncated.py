"""
Single-variable densities with an optional truncation window.

Subclasses provide the unnormalized shape, the natural support and the
integral of the shape between two points. The norm is recomputed eagerly by
every limit setter and every parameter change.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Mapping, Sequence

import numpy as np

from cpfit.cache import CacheSession
from cpfit.dataset import Dataset
from cpfit.errors import PdfError
from cpfit.pdfs.base import PdfBase
from cpfit.variables import Variable

log = logging.getLogger(__name__)


class TruncatedPdf(PdfBase):
    def __init__(self, x: Variable) -> None:
        super().__init__()
        self._has_lower = False
        self._has_upper = False
        self._lower = 0.0
        self._upper = 0.0
        self._norm = 0.0
        self.push(x)

    # ---- truncation ----

    def _check_limit(self, value: float, which: str) -> None:
        pass

    def _limits_changed(self) -> None:
        # cached per-event values were computed with the previous window
        self.uncache()
        self.cache()

    def set_lower_limit(self, lower: float) -> None:
        self._check_limit(lower, "lower")
        self._has_lower = True
        self._lower = float(lower)
        self._limits_changed()

    def set_upper_limit(self, upper: float) -> None:
        self._check_limit(upper, "upper")
        self._has_upper = True
        self._upper = float(upper)
        self._limits_changed()

    def set_limits(self, lower: float, upper: float) -> None:
        self._check_limit(lower, "lower")
        self._check_limit(upper, "upper")
        self._has_lower = True
        self._has_upper = True
        self._lower = float(lower)
        self._upper = float(upper)
        self._limits_changed()

    def unset_lower_limit(self) -> None:
        self._has_lower = False
        self._limits_changed()

    def unset_upper_limit(self) -> None:
        self._has_upper = False
        self._limits_changed()

    def unset_limits(self) -> None:
        self._has_lower = False
        self._has_upper = False
        self._limits_changed()

    def limits(self) -> tuple[float | None, float | None]:
        return (
            self._lower if self._has_lower else None,
            self._upper if self._has_upper else None,
        )

    def support(self) -> tuple[float, float]:
        """Natural support of the shape, before truncation."""
        return -np.inf, np.inf

    def _range(self, xmin: float = -np.inf, xmax: float = np.inf) -> tuple[float, float]:
        """Clip ``[xmin, xmax]`` against the truncation and the support."""
        lo, hi = self.support()
        if self._has_lower:
            lo = max(lo, self._lower)
        if self._has_upper:
            hi = min(hi, self._upper)
        return max(xmin, lo), min(xmax, hi)

    # ---- normalization ----

    @abstractmethod
    def _shape(self, x):
        """Unnormalized density, zero outside the support. Takes scalars or
        arrays."""

    @abstractmethod
    def _integral(self, xmin: float, xmax: float) -> float:
        """Integral of the shape on ``[xmin, xmax]``, inside the support."""

    def _degenerate_value(self, x: float) -> float:
        """Density when the norm vanishes (empty or zero-width support)."""
        return 0.0

    def _degenerate_area(self, xmin: float, xmax: float) -> float:
        return 0.0

    def norm(self) -> float:
        return self._norm

    def cache(self) -> None:
        lo, hi = self._range()
        self._norm = self._integral(lo, hi) if hi > lo else 0.0
        if self._norm <= 0.0 or not np.isfinite(self._norm):
            log.debug(f"{type(self).__name__}: degenerate norm {self._norm}")
            self._norm = 0.0

    def area(self, xmin: float, xmax: float) -> float:
        """Fraction of the probability contained in ``[xmin, xmax]``."""
        lo, hi = self._range(xmin, xmax)
        if not hi > lo:
            return 0.0
        if self._norm == 0.0:
            return self._degenerate_area(lo, hi)
        return self._integral(lo, hi) / self._norm

    # ---- evaluation ----

    def evaluate(self, vars: Sequence[float] | float | None = None) -> float:
        if vars is None:
            return self.evaluate_value(self.get_var(0).value())
        if np.isscalar(vars):
            return self.evaluate_value(vars)
        return self.evaluate_value(vars[0])

    def evaluate_value(self, x: float) -> float:
        x = float(x)
        if self._has_lower and x < self._lower:
            return 0.0
        if self._has_upper and x > self._upper:
            return 0.0

        lo, hi = self.support()
        if x < lo or x > hi:
            return 0.0

        if self._norm == 0.0:
            return self._degenerate_value(x)
        return float(self._shape(x)) / self._norm

    def evaluate_array(self, x) -> np.ndarray:
        """:meth:`evaluate_value` on an array, through the vectorized shape."""
        x = np.asarray(x, dtype=float)
        if self._norm == 0.0:
            values = [self.evaluate_value(v) for v in x.ravel()]
            return np.array(values, dtype=float).reshape(x.shape)

        lo, hi = self.support()
        inside = (x >= lo) & (x <= hi)
        if self._has_lower:
            inside &= x >= self._lower
        if self._has_upper:
            inside &= x <= self._upper

        values = np.zeros_like(x)
        values[inside] = self._shape(x[inside]) / self._norm
        return values

    def cache_real(self, data: Dataset, session: CacheSession) -> dict[int, np.ndarray]:
        # the density only depends on its parameters and the truncation
        self._use_cache = self.is_fixed()

        if not self._use_cache:
            return {}

        idx = self._cache_index(session, "pdf", "real")
        name = self.get_var(0).name
        values = self.evaluate_array(data.column(name))
        log.debug(
            f"{type(self).__name__}({name}): cached {data.size()} values at index {idx}"
        )
        return {idx: values}

    def evaluate_cached(
        self,
        vars: Sequence[float],
        cache_r: Mapping[int, float],
        cache_c: Mapping[int, complex],
    ) -> float:
        if not self._use_cache:
            return self.evaluate(vars)
        return cache_r[self._cache_indices["pdf"][1]]

    def project(self, var: str, value: float, region=None) -> float:
        if var != self.get_var(0).name:
            raise PdfError(f"{type(self).__name__} does not depend on {var!r}")
        return self.evaluate_value(value)

    def _sample_range(self) -> tuple[float, float]:
        lo, hi = self._range()
        if not hi > lo or self._norm == 0.0:
            raise PdfError(f"cannot generate from {type(self).__name__}: empty support")
        return lo, hi
