r"""
Kinematics of a three-body decay :math:`M \to 1\,2\,3`.

The Dalitz plot is described by the squared invariant masses
:math:`m^2_{12}, m^2_{13}, m^2_{23}`, which satisfy

.. math::
    m^2_{12} + m^2_{13} + m^2_{23} = M^2 + m_1^2 + m_2^2 + m_3^2

so that any two of them determine the third. All functions accept scalars
or numpy arrays.
"""

from __future__ import annotations

import logging

import numpy as np

from cpfit.errors import PdfError

log = logging.getLogger(__name__)

_PAIRS = {"12": (1, 2), "13": (1, 3), "23": (2, 3)}


def _pair(name: str) -> tuple[int, int]:
    key = name[-2:]
    if key not in _PAIRS:
        raise PdfError(f"unknown invariant mass {name!r}, expected one of mSq12, mSq13, mSq23")
    return _PAIRS[key]


class PhaseSpace:
    """Phase space of the decay of a particle of mass `m_mother` into three
    particles of masses `m1`, `m2` and `m3`."""

    def __init__(self, m_mother: float, m1: float, m2: float, m3: float) -> None:
        if m_mother < m1 + m2 + m3:
            raise PdfError(
                f"decay of mass {m_mother} into {m1} + {m2} + {m3} is kinematically forbidden"
            )
        self.m_mother = float(m_mother)
        self._masses = {1: float(m1), 2: float(m2), 3: float(m3)}

    def mass(self, i: int) -> float:
        return self._masses[i]

    def mSq_sum(self) -> float:
        return self.m_mother**2 + sum(m**2 for m in self._masses.values())

    def mSq23(self, mSq12, mSq13):
        return self.mSq_sum() - mSq12 - mSq13

    def mSq_limits(self, name: str) -> tuple[float, float]:
        """Absolute range of one squared invariant mass."""
        i, j = _pair(name)
        k = ({1, 2, 3} - {i, j}).pop()
        m = self._masses
        return (m[i] + m[j]) ** 2, (self.m_mother - m[k]) ** 2

    def mSq12_limits(self) -> tuple[float, float]:
        return self.mSq_limits("12")

    def mSq13_limits(self) -> tuple[float, float]:
        return self.mSq_limits("13")

    def mSq23_limits(self) -> tuple[float, float]:
        return self.mSq_limits("23")

    def limits(self, fixed: str, value, other: str):
        """Range of the squared invariant mass `other` when `fixed` is held at
        `value`. Returns NaN bounds where `value` is outside the phase space.

        Parameters
        ----------
        fixed, other
            names ending in ``12``, ``13`` or ``23``, sharing one particle.
        """
        a = set(_pair(fixed))
        b = set(_pair(other))
        shared = a & b
        if len(shared) != 1:
            raise PdfError(f"invariant masses {fixed!r} and {other!r} must share one particle")

        j = shared.pop()
        i = (a - {j}).pop()
        k = (b - {j}).pop()
        mi, mj, mk = self._masses[i], self._masses[j], self._masses[k]

        value = np.asarray(value, dtype=float)
        lo_ij, hi_ij = self.mSq_limits(fixed)
        inside = (value >= lo_ij) & (value <= hi_ij) & (value > 0)
        safe = np.where(inside, value, hi_ij if hi_ij > 0 else 1.0)

        # energies of j and k in the rest frame of the (i, j) system
        m_ij = np.sqrt(safe)
        e_j = (safe - mi**2 + mj**2) / (2.0 * m_ij)
        e_k = (self.m_mother**2 - safe - mk**2) / (2.0 * m_ij)
        p_j = np.sqrt(np.maximum(e_j**2 - mj**2, 0.0))
        p_k = np.sqrt(np.maximum(e_k**2 - mk**2, 0.0))

        lo = np.where(inside, (e_j + e_k) ** 2 - (p_j + p_k) ** 2, np.nan)
        hi = np.where(inside, (e_j + e_k) ** 2 - (p_j - p_k) ** 2, np.nan)
        if lo.ndim == 0:
            return float(lo), float(hi)
        return lo, hi

    def contains(self, mSq12, mSq13, mSq23=None):
        """Whether the points lie inside the Dalitz plot.

        Two masses determine the point, so `mSq23` is accepted for symmetry
        with the amplitude signatures but not read.
        """
        mSq12 = np.asarray(mSq12, dtype=float)
        mSq13 = np.asarray(mSq13, dtype=float)
        lo, hi = self.limits("mSq12", mSq12, "mSq13")
        with np.errstate(invalid="ignore"):
            return (mSq13 >= lo) & (mSq13 <= hi)

    def weight(self, mSq12, mSq13, mSq23=None):
        """Phase-space weight: 1 inside the Dalitz plot, 0 outside."""
        w = np.where(self.contains(mSq12, mSq13, mSq23), 1.0, 0.0)
        if w.ndim == 0:
            return float(w)
        return w
