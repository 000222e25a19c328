r"""
Dalitz-plot density of a three-body decay with CP violation through the
interference of a direct amplitude :math:`A` and its CP conjugate
:math:`\bar{A}`, mixed by a complex coefficient :math:`z`:

.. math::
    P(m^2_{12}, m^2_{13}) = \frac{\Phi \, \epsilon \left[ |A|^2 + |z|^2 |\bar{A}|^2
        + 2\kappa\,\text{Re}\left(z A^* \bar{A}\right) \right]}
        {N_{dir} + |z|^2 N_{cnj} + 2\kappa\,\text{Re}\left(z N_{xed}\right)}

where :math:`\Phi` is the phase-space weight, :math:`\epsilon` the product of
the shaping functions, and

.. math::
    N_{dir} = \int \Phi\epsilon |A|^2, \quad
    N_{cnj} = \int \Phi\epsilon |\bar{A}|^2, \quad
    N_{xed} = \int \Phi\epsilon A^* \bar{A}

The integrals are computed on a grid of bin centers covering the phase space.
When the amplitude is fixed they only depend on the grid, so they are kept
until an amplitude parameter changes, and the per-event amplitudes can be
cached while :math:`z` is still free.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Sequence

import numpy as np

from cpfit.amplitude import Amplitude, Function
from cpfit.cache import CacheSession
from cpfit.dataset import Dataset
from cpfit.errors import PdfError
from cpfit.pdfs.base import PdfBase
from cpfit.phasespace import PhaseSpace
from cpfit.random import engine
from cpfit.variables import CoefExpr, Parameter, Variable

log = logging.getLogger(__name__)


def bin_center(bins, nbins: int, vmin: float, vmax: float):
    return (vmax - vmin) / float(nbins) * (bins + 0.5) + vmin


class Decay3BodyCP(PdfBase):
    """
    Parameters
    ----------
    mSq12, mSq13, mSq23
        the squared invariant masses. Their order defines the roles of the
        variables; the names are free.
    amp
        the direct amplitude, which also provides the conjugate one.
    z
        the complex mixing coefficient.
    ps
        the phase space of the decay.
    kappa
        optional real parameter scaling the interference term.
    docache
        whether the amplitudes may be cached per event when they are fixed.
    n_bins
        number of bins per axis of the normalization grid.
    """

    def __init__(
        self,
        mSq12: Variable,
        mSq13: Variable,
        mSq23: Variable,
        amp: Amplitude,
        z: CoefExpr,
        ps: PhaseSpace,
        kappa: Parameter | None = None,
        docache: bool = True,
        n_bins: int = 200,
    ) -> None:
        super().__init__()
        self._amp = amp.copy()
        self._z = z.copy()
        self._ps = ps
        self._kappa = kappa.name if kappa is not None else None
        self._docache = docache
        self._n_bins = int(n_bins)
        self._funcs: list[Function] = []

        self._n_dir = 0.0
        self._n_cnj = 0.0
        self._n_xed = 0j
        self._norm = 0.0
        self._fixed_amp = False
        self._components_valid = False
        self._max_pdf = -1.0

        for var in (mSq12, mSq13, mSq23):
            self.push(var)
        for par in self._amp.parameters():
            self.push(par)
        self.push(self._z)
        if kappa is not None:
            self.push(kappa)

        self.cache()

    # ---- getters ----

    def mSq12_name(self) -> str:
        return self.get_var(0).name

    def mSq13_name(self) -> str:
        return self.get_var(1).name

    def mSq23_name(self) -> str:
        return self.get_var(2).name

    def mSq12(self) -> float:
        return self.get_var(0).value()

    def mSq13(self) -> float:
        return self.get_var(1).value()

    def mSq23(self) -> float:
        return self.get_var(2).value()

    def phase_space(self) -> PhaseSpace:
        return self._ps

    def amplitude(self) -> Amplitude:
        return self._amp

    def z(self) -> complex:
        return self._z.evaluate()

    def kappa(self) -> float:
        return self.get_par(self._kappa).value() if self._kappa else 1.0

    def n_dir(self) -> float:
        return self._n_dir

    def n_cnj(self) -> float:
        return self._n_cnj

    def n_xed(self) -> complex:
        return self._n_xed

    def norm(self) -> float:
        return self._norm

    def _cache_depends_on(self, name: str) -> bool:
        return name in self._amp.names()

    # ---- norm ----

    def set_norm_components(self, n_dir: float, *args) -> None:
        """Inject precomputed norm components.

        Called as ``set_norm_components(n_dir, n_cnj, n_xed)``, or as
        ``set_norm_components(n_dir, n_xed)`` for a symmetric amplitude, in
        which case ``n_cnj = n_dir``. The components are only accepted, and
        then kept, while every amplitude parameter is fixed.
        """
        if len(args) == 1:
            n_cnj, n_xed = n_dir, args[0]
        elif len(args) == 2:
            n_cnj, n_xed = args
        else:
            raise PdfError("set_norm_components takes two or three arguments")

        self._fixed_amp = self._amp.is_fixed()
        if not self._fixed_amp:
            log.warning("amplitude has free parameters, ignoring injected norm components")
            return

        self._n_dir = float(n_dir)
        self._n_cnj = float(n_cnj)
        self._n_xed = complex(n_xed)
        self._components_valid = True
        log.debug(f"injected norm components {self._n_dir}, {self._n_cnj}, {self._n_xed}")
        self._combine_norm()

    def _inputs_fixed(self) -> bool:
        """Whether every parameter entering the norm components is fixed."""
        return self._amp.is_fixed() and all(func.is_fixed() for func in self._funcs)

    def set_par_expr(self) -> None:
        changed = self._amp.set_pars(self._par_map)
        for func in self._funcs:
            changed = func.set_pars(self._par_map) or changed
        self._z.set_pars(self._par_map)

        # injected components stay frozen while their inputs are all fixed
        if changed and not (self._fixed_amp and self._inputs_fixed()):
            self._components_valid = False

    def cache(self) -> None:
        if self._fixed_amp and not self._inputs_fixed():
            log.debug("free parameter introduced, injected norm components dropped")
            self._fixed_amp = False
            self._components_valid = False

        if not self._components_valid:
            self._integrate()
        self._combine_norm()

    def _combine_norm(self) -> None:
        vz = self.z()
        self._norm = (
            self._n_dir
            + abs(vz) ** 2 * self._n_cnj
            + 2.0 * self.kappa() * (vz * self._n_xed).real
        )

    def _grid(self) -> tuple[np.ndarray, np.ndarray, float]:
        lo12, hi12 = self._ps.mSq12_limits()
        lo13, hi13 = self._ps.mSq13_limits()
        bins = np.arange(self._n_bins)
        c12 = bin_center(bins, self._n_bins, lo12, hi12)
        c13 = bin_center(bins, self._n_bins, lo13, hi13)
        mSq12, mSq13 = np.meshgrid(c12, c13, indexing="ij")
        area = (hi12 - lo12) * (hi13 - lo13) / self._n_bins**2
        return mSq12.ravel(), mSq13.ravel(), area

    def _weights(self, mSq12, mSq13, mSq23) -> np.ndarray:
        """Phase-space weight times the shaping functions."""
        w = np.broadcast_to(self._ps.weight(mSq12, mSq13), np.shape(mSq12)).astype(float)
        for func in self._funcs:
            w = w * func.evaluate(mSq12, mSq13, mSq23)
        return w

    def _amplitudes(self, mSq12, mSq13, mSq23) -> tuple[np.ndarray, np.ndarray]:
        shape = np.shape(mSq12)
        a = np.broadcast_to(self._amp.evaluate(mSq12, mSq13, mSq23), shape)
        ab = np.broadcast_to(self._amp.evaluate_conjugate(mSq12, mSq13, mSq23), shape)
        return a, ab

    def _integrate(self) -> None:
        mSq12, mSq13, area = self._grid()
        mSq23 = self._ps.mSq23(mSq12, mSq13)
        w = self._weights(mSq12, mSq13, mSq23)
        inside = w != 0.0

        mSq12, mSq13, mSq23, w = mSq12[inside], mSq13[inside], mSq23[inside], w[inside]
        a, ab = self._amplitudes(mSq12, mSq13, mSq23)

        self._n_dir = float(np.sum(w * np.abs(a) ** 2) * area)
        self._n_cnj = float(np.sum(w * np.abs(ab) ** 2) * area)
        self._n_xed = complex(np.sum(w * np.conj(a) * ab) * area)
        self._components_valid = True
        log.debug(
            f"integrated norm components on {self._n_bins}x{self._n_bins} grid: "
            f"n_dir={self._n_dir}, n_cnj={self._n_cnj}, n_xed={self._n_xed}"
        )

    # ---- evaluation ----

    def _combine(self, a, ab):
        vz = self.z()
        return (
            np.abs(a) ** 2
            + abs(vz) ** 2 * np.abs(ab) ** 2
            + 2.0 * self.kappa() * (vz * np.conj(a) * ab).real
        )

    def _masses(self, vars: Sequence[float]) -> tuple[float, float, float]:
        if len(vars) == 2:
            return vars[0], vars[1], self._ps.mSq23(vars[0], vars[1])
        if len(vars) == 3:
            # NaN stands for a mass missing from the dataset
            if np.isnan(vars[2]):
                return vars[0], vars[1], self._ps.mSq23(vars[0], vars[1])
            return vars[0], vars[1], vars[2]
        raise PdfError(f"Decay3BodyCP expects 2 or 3 invariant masses, got {len(vars)}")

    def _unnorm_array(self, mSq12, mSq13, mSq23) -> np.ndarray:
        w = self._weights(mSq12, mSq13, mSq23)
        values = np.zeros_like(w)
        inside = w != 0.0
        if np.any(inside):
            a, ab = self._amplitudes(mSq12[inside], mSq13[inside], mSq23[inside])
            values[inside] = w[inside] * self._combine(a, ab)
        return values

    def evaluate_unnorm(self, mSq12: float, mSq13: float, mSq23: float) -> float:
        w = self._weights(mSq12, mSq13, mSq23)
        if w == 0.0:
            return 0.0
        a, ab = self._amplitudes(mSq12, mSq13, mSq23)
        return float(w * self._combine(a, ab))

    def evaluate(self, *args) -> float:
        """Normalized density.

        Accepts no argument (the current variable values), a sequence of two
        or three masses, two masses (the third one is derived from the
        kinematics) or three masses.
        """
        if len(args) == 0:
            masses = (self.mSq12(), self.mSq13(), self.mSq23())
        elif len(args) == 1:
            if args[0] is None:
                masses = (self.mSq12(), self.mSq13(), self.mSq23())
            else:
                masses = self._masses(args[0])
        else:
            masses = self._masses(args)

        if self._norm == 0.0:
            return 0.0
        return self.evaluate_unnorm(*masses) / self._norm

    def evaluate_cached(
        self,
        vars: Sequence[float],
        cache_r: Mapping[int, float],
        cache_c: Mapping[int, complex],
    ) -> float:
        if not self._use_cache:
            return self.evaluate(vars)

        mSq12, mSq13, mSq23 = self._masses(vars)
        w = self._weights(mSq12, mSq13, mSq23)
        if w == 0.0 or self._norm == 0.0:
            return 0.0

        a = cache_c[self._cache_indices["amp_dir"][1]]
        ab = cache_c[self._cache_indices["amp_cnj"][1]]
        return float(w * self._combine(a, ab)) / self._norm

    def cache_complex(
        self, data: Dataset, session: CacheSession
    ) -> dict[int, np.ndarray]:
        # z may stay free: only the amplitude has to be fixed
        self._use_cache = self._docache and self._amp.is_fixed()

        if not self._use_cache:
            return {}

        idx_dir = self._cache_index(session, "amp_dir", "complex")
        idx_cnj = self._cache_index(session, "amp_cnj", "complex")

        mSq12 = data.column(self.mSq12_name())
        mSq13 = data.column(self.mSq13_name())
        if data.has(self.mSq23_name()):
            mSq23 = data.column(self.mSq23_name())
        else:
            mSq23 = self._ps.mSq23(mSq12, mSq13)

        a, ab = self._amplitudes(mSq12, mSq13, mSq23)
        log.debug(f"cached {data.size()} amplitudes at indices {idx_dir}, {idx_cnj}")
        return {idx_dir: np.array(a, dtype=complex), idx_cnj: np.array(ab, dtype=complex)}

    # ---- projections ----

    def project(self, var: str, value: float, region: Callable | None = None) -> float:
        """Density of one invariant mass at `value`, integrating out the other.

        Parameters
        ----------
        var
            name of one of the three variables.
        value
            value of that variable.
        region
            optional callable ``region(mSq12, mSq13, mSq23)`` returning a
            boolean mask; only the points inside contribute.
        """
        names = self.var_names()
        if var not in names:
            raise PdfError(f"Decay3BodyCP does not depend on {var!r}")
        role = names.index(var)

        # mSq12 fixed: integrate over mSq13; otherwise over mSq12
        if role == 0:
            lo, hi = self._ps.limits("mSq12", value, "mSq13")
        elif role == 1:
            lo, hi = self._ps.limits("mSq13", value, "mSq12")
        else:
            lo, hi = self._ps.limits("mSq23", value, "mSq12")

        if not hi > lo or self._norm == 0.0:
            return 0.0

        step = (hi - lo) / self._n_bins
        other = bin_center(np.arange(self._n_bins), self._n_bins, lo, hi)
        fixed = np.full_like(other, value)
        mSq_sum = self._ps.mSq_sum()

        if role == 0:
            mSq12, mSq13 = fixed, other
            mSq23 = mSq_sum - mSq12 - mSq13
        elif role == 1:
            mSq12, mSq13 = other, fixed
            mSq23 = mSq_sum - mSq12 - mSq13
        else:
            mSq12, mSq23 = other, fixed
            mSq13 = mSq_sum - mSq12 - mSq23

        values = self._unnorm_array(mSq12, mSq13, mSq23)
        if region is not None:
            values = values * np.asarray(region(mSq12, mSq13, mSq23), dtype=bool)
        return float(np.sum(values) * step / self._norm)

    # ---- generation ----

    def set_max_pdf(self, value: float) -> None:
        self._max_pdf = float(value)

    def _estimate_max_pdf(self) -> float:
        mSq12, mSq13, _ = self._grid()
        mSq23 = self._ps.mSq23(mSq12, mSq13)
        peak = float(np.max(self._unnorm_array(mSq12, mSq13, mSq23))) / self._norm
        log.info(f"maximum of the pdf not set, using 1.2 x {peak} from the norm grid")
        return 1.2 * peak

    def generate(self) -> dict[str, float]:
        """Draw one event by accept-reject on the phase-space rectangle."""
        if self._norm == 0.0:
            raise PdfError("cannot generate from Decay3BodyCP with a vanishing norm")
        if self._max_pdf <= 0.0:
            self._max_pdf = self._estimate_max_pdf()

        rng = engine()
        lo12, hi12 = self._ps.mSq12_limits()
        lo13, hi13 = self._ps.mSq13_limits()
        while True:
            mSq12 = rng.uniform(lo12, hi12)
            mSq13 = rng.uniform(lo13, hi13)
            if self._ps.weight(mSq12, mSq13) == 0.0:
                continue
            mSq23 = self._ps.mSq23(mSq12, mSq13)
            pdf = self.evaluate(mSq12, mSq13, mSq23)
            if pdf > self._max_pdf:
                log.warning(f"pdf value {pdf} above the maximum {self._max_pdf}")
            if rng.uniform(0.0, self._max_pdf) < pdf:
                return {
                    self.mSq12_name(): float(mSq12),
                    self.mSq13_name(): float(mSq13),
                    self.mSq23_name(): float(mSq23),
                }

    # ---- shaping ----

    def shaped(self, func: Function) -> Decay3BodyCP:
        """New density multiplied by `func`, with its norm recomputed."""
        new = self.copy()
        new *= func
        return new

    def __mul__(self, func: Function) -> Decay3BodyCP:
        if not isinstance(func, Function):
            return NotImplemented
        return self.shaped(func)

    __rmul__ = __mul__

    def __imul__(self, func: Function) -> Decay3BodyCP:
        if not isinstance(func, Function):
            raise PdfError(f"cannot multiply Decay3BodyCP by {func!r}")
        func = func.copy()
        self._funcs.append(func)
        for par in func.parameters():
            self.push(par)
        self._fixed_amp = False
        self._components_valid = False
        self._max_pdf = -1.0
        self.set_par_expr()
        self.cache()
        return self
