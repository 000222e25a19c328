"""
Column storage for the measured events of a fit.
"""

from __future__ import annotations

import logging
from typing import Mapping

import numpy as np
import pandas as pd

from cpfit.errors import PdfError

log = logging.getLogger(__name__)


class Dataset:
    """Ordered, random-access table of events with one column per variable.

    Rows keep their insertion order. The dataset must not be modified while a
    fit is running, since caches built from it are indexed by row position.

    Parameters
    ----------
    data
        a :class:`pandas.DataFrame`, or a mapping of column names to arrays.
    """

    def __init__(self, data: pd.DataFrame | Mapping | None = None) -> None:
        if data is None:
            data = {}
        self._df = pd.DataFrame(data).reset_index(drop=True)

    @classmethod
    def from_dict(cls, columns: Mapping) -> Dataset:
        return cls(pd.DataFrame({k: np.asarray(v, dtype=float) for k, v in columns.items()}))

    def size(self) -> int:
        return len(self._df)

    def __len__(self) -> int:
        return self.size()

    def names(self) -> list[str]:
        return list(self._df.columns)

    def has(self, name: str) -> bool:
        return name in self._df.columns

    def column(self, name: str) -> np.ndarray:
        if name not in self._df.columns:
            raise PdfError(f"dataset has no column named {name!r}")
        return self._df[name].to_numpy(dtype=float)

    def value(self, name: str, row: int) -> float:
        if name not in self._df.columns:
            raise PdfError(f"dataset has no column named {name!r}")
        return float(self._df[name].iat[row])

    def row(self, row: int) -> dict[str, float]:
        return {k: float(v) for k, v in self._df.iloc[row].items()}

    def append(self, values: Mapping[str, float]) -> None:
        """Add one event, e.g. the output of a ``generate`` call."""
        new = pd.DataFrame([dict(values)], dtype=float)
        if self._df.empty:
            self._df = new
        else:
            self._df = pd.concat([self._df, new], ignore_index=True)

    def to_pandas(self) -> pd.DataFrame:
        return self._df.copy()
