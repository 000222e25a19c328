from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class FitResult:
    """Outcome of a minimization.

    ``values`` and ``errors`` hold every parameter of the density, fixed ones
    included, keyed by name. ``covariance`` is ordered like ``free``.
    """

    values: dict[str, float]
    errors: dict[str, float]
    free: tuple[str, ...] = ()
    covariance: np.ndarray | None = None
    fval: float = np.nan
    valid: bool = False
    stats: dict = field(default_factory=dict)

    def __getitem__(self, name: str) -> float:
        return self.values[name]
