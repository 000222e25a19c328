"""
Parametric functions of the Dalitz-plot invariant masses: decay amplitudes
and real shaping functions such as efficiencies.

Both wrap a user callable ``func(mSq12, mSq13, mSq23, **pars)`` that must
work elementwise on numpy arrays; the keyword arguments are the current
values of the parameters, by name.
"""

from __future__ import annotations

import copy
import logging
from typing import Callable, Mapping, Sequence

import numpy as np

from cpfit.variables import Parameter

log = logging.getLogger(__name__)


class _Parametric:
    def __init__(self, func: Callable, pars: Sequence[Parameter] = ()) -> None:
        self._func = func
        self._pars = {p.name: p.copy() for p in pars}

    def parameters(self) -> list[Parameter]:
        return list(self._pars.values())

    def names(self) -> tuple[str, ...]:
        return tuple(self._pars)

    def values(self) -> dict[str, float]:
        return {name: p.value() for name, p in self._pars.items()}

    def is_fixed(self) -> bool:
        return all(p.is_fixed() for p in self._pars.values())

    def set_pars(self, pars: Mapping[str, Parameter]) -> bool:
        """Adopt values and fixed flags from a name-keyed map. Returns whether
        any value changed."""
        changed = False
        for name in self._pars:
            if name in pars:
                if pars[name].value() != self._pars[name].value():
                    changed = True
                self._pars[name] = pars[name].copy()
        return changed

    def copy(self):
        new = copy.copy(self)
        new._pars = {name: p.copy() for name, p in self._pars.items()}
        return new

    @staticmethod
    def _scalar(values, dtype):
        values = np.asarray(values, dtype=dtype)
        if values.ndim == 0:
            return dtype(values)
        return values


class Amplitude(_Parametric):
    """Complex decay amplitude :math:`A(m^2_{12}, m^2_{13}, m^2_{23})`.

    Parameters
    ----------
    func
        the direct amplitude.
    pars
        parameters of the amplitude.
    conjugate
        the CP-conjugate amplitude, with the same signature. Defaults to the
        direct amplitude with the roles of :math:`m^2_{12}` and
        :math:`m^2_{13}` exchanged, as appropriate when the conjugate decay
        exchanges the charges of particles 2 and 3.
    """

    def __init__(
        self,
        func: Callable,
        pars: Sequence[Parameter] = (),
        conjugate: Callable | None = None,
    ) -> None:
        super().__init__(func, pars)
        self._conjugate = conjugate

    def evaluate(self, mSq12, mSq13, mSq23):
        return self._scalar(self._func(mSq12, mSq13, mSq23, **self.values()), complex)

    def evaluate_conjugate(self, mSq12, mSq13, mSq23):
        if self._conjugate is not None:
            values = self._conjugate(mSq12, mSq13, mSq23, **self.values())
        else:
            values = self._func(mSq13, mSq12, mSq23, **self.values())
        return self._scalar(values, complex)


class Function(_Parametric):
    """Real function of the invariant masses that multiplies a density, e.g.
    a detection efficiency."""

    def evaluate(self, mSq12, mSq13, mSq23):
        return self._scalar(self._func(mSq12, mSq13, mSq23, **self.values()), float)
