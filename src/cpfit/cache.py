"""
Bookkeeping of the per-event values that probability densities precompute
before a fit.

A :class:`CacheSession` replaces global cache counters: it hands out unique
indices for real and complex cached quantities and stores the cached arrays,
one entry per dataset row and in dataset order. Densities allocate their
indices through the session they are given, so two sessions never interfere.
"""

from __future__ import annotations

import itertools
import logging
from typing import Mapping

import numpy as np

log = logging.getLogger(__name__)

_session_ids = itertools.count()


class CacheSession:
    """Cache indices and cache maps of one fit session."""

    def __init__(self) -> None:
        self.id = next(_session_ids)
        self._next_real = 0
        self._next_complex = 0
        self.real: dict[int, np.ndarray] = {}
        self.complex: dict[int, np.ndarray] = {}

    def next_real_index(self) -> int:
        idx = self._next_real
        self._next_real += 1
        log.debug(f"session {self.id}: allocated real cache index {idx}")
        return idx

    def next_complex_index(self) -> int:
        idx = self._next_complex
        self._next_complex += 1
        log.debug(f"session {self.id}: allocated complex cache index {idx}")
        return idx

    def store_real(self, cached: Mapping[int, np.ndarray]) -> None:
        self.real.update(cached)

    def store_complex(self, cached: Mapping[int, np.ndarray]) -> None:
        self.complex.update(cached)

    def real_row(self, row: int) -> dict[int, float]:
        """Cached real values of all indices at one dataset row."""
        return {idx: values[row] for idx, values in self.real.items()}

    def complex_row(self, row: int) -> dict[int, complex]:
        return {idx: values[row] for idx, values in self.complex.items()}

    def rows(self, size: int) -> list[tuple[dict, dict]]:
        """Pairs of real and complex rows for the first `size` events."""
        return [(self.real_row(i), self.complex_row(i)) for i in range(size)]

    def clear(self) -> None:
        """Forget cached values. Allocated indices stay reserved."""
        self.real.clear()
        self.complex.clear()
