"""Process-level random number engine used by the ``generate`` methods."""

from __future__ import annotations

import numpy as np

_engine = np.random.default_rng()


def engine() -> np.random.Generator:
    """Return the shared :class:`numpy.random.Generator`."""
    return _engine


def seed(value: int | None = None) -> np.random.Generator:
    """Replace the shared generator by a freshly seeded one and return it."""
    global _engine
    _engine = np.random.default_rng(value)
    return _engine
