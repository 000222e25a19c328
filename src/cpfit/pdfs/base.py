"""
Interface shared by every probability density, elementary or composite.

A density owns ordered maps of its variables and parameters, recomputes its
normalization eagerly whenever a parameter changes (:meth:`PdfBase.cache`),
and takes part in the caching protocol: before a fit, a minimizer hands the
dataset and a :class:`~cpfit.cache.CacheSession` to :meth:`PdfBase.cache_real`
and :meth:`PdfBase.cache_complex`. A density may only cache a per-event
quantity when every parameter it depends on is fixed, and otherwise returns
an empty map and recomputes on every evaluation.

The cache state of a density is a small state machine::

    uncached --(cache_* with all dependencies fixed)--> cached(index)
    cached   --(dependency released or its value changed)--> uncached

Going back to the cached state on the same session reuses the index.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Mapping, Sequence

import numpy as np

from cpfit.cache import CacheSession
from cpfit.dataset import Dataset
from cpfit.errors import PdfError
from cpfit.result import FitResult
from cpfit.variables import Parameter, ParameterExpr, Variable

log = logging.getLogger(__name__)


class PdfBase(ABC):
    def __init__(self) -> None:
        self._var_map: dict[str, Variable] = {}
        self._par_map: dict[str, Parameter] = {}
        self._use_cache = False
        self._cache_indices: dict[str, tuple[int, int]] = {}

    # ---- registration ----

    def push(self, item: Variable | Parameter | ParameterExpr) -> None:
        """Register a variable, a parameter, or the parameters of an
        expression. Parameters shared between expressions are stored once."""
        if isinstance(item, ParameterExpr):
            for par in item.parameters():
                self._par_map.setdefault(par.name, par.copy())
        elif isinstance(item, Parameter):
            self._par_map.setdefault(item.name, item.copy())
        elif isinstance(item, Variable):
            if item.name in self._var_map:
                raise PdfError(f"variable {item.name!r} declared twice")
            self._var_map[item.name] = item.copy()
        else:
            raise PdfError(f"cannot register {item!r} in a pdf")

    # ---- getters ----

    def get_vars(self) -> dict[str, Variable]:
        return self._var_map

    def get_pars(self) -> dict[str, Parameter]:
        return self._par_map

    def get_var(self, key: int | str) -> Variable:
        return self._lookup(self._var_map, key, "variable")

    def get_par(self, key: int | str) -> Parameter:
        return self._lookup(self._par_map, key, "parameter")

    @staticmethod
    def _lookup(items: dict, key: int | str, kind: str):
        try:
            if isinstance(key, str):
                return items[key]
            return list(items.values())[key]
        except (KeyError, IndexError):
            raise PdfError(f"pdf has no {kind} {key!r}") from None

    def var_names(self) -> list[str]:
        return list(self._var_map)

    def par_names(self) -> list[str]:
        return list(self._par_map)

    def free_par_names(self) -> list[str]:
        return [name for name, p in self._par_map.items() if not p.is_fixed()]

    def n_vars(self) -> int:
        return len(self._var_map)

    def n_pars(self) -> int:
        return len(self._par_map)

    def is_fixed(self) -> bool:
        return all(p.is_fixed() for p in self._par_map.values())

    def depends_on(self, var: str) -> bool:
        return var in self._var_map

    # ---- setters ----

    def set_var(self, name: str, value: float, error: float = -1.0) -> None:
        var = self.get_var(name)
        var.set_value(value)
        var.set_error(error)

    def set_vars(self, values: Sequence[float] | Mapping) -> None:
        """Set variables positionally, or by name from a map of numbers or
        :class:`~cpfit.variables.Variable` objects."""
        if isinstance(values, Mapping):
            for name, val in values.items():
                if isinstance(val, Variable):
                    self.set_var(name, val.value(), val.error())
                else:
                    self.set_var(name, val)
            return

        if len(values) != self.n_vars():
            raise PdfError(
                f"expected {self.n_vars()} variable values, got {len(values)}"
            )
        for var, val in zip(self._var_map.values(), values):
            var.set_value(val)

    def set_par(self, name: str, value: float, error: float = -1.0) -> None:
        self._apply_pars({name: (value, error)})

    def set_pars(self, values: Sequence[float] | Mapping | FitResult) -> None:
        """Set parameters in bulk.

        Parameters
        ----------
        values
            one of

            * a sequence with one value per parameter, or one value per free
              parameter (the order a minimizer uses),
            * a map from names to numbers or :class:`Parameter` objects,
              whose fixed flags are adopted too,
            * a :class:`~cpfit.result.FitResult`.
        """
        if isinstance(values, FitResult):
            self._apply_pars(
                {
                    name: (val, values.errors.get(name, -1.0))
                    for name, val in values.values.items()
                    if name in self._par_map
                }
            )
            return

        if isinstance(values, Mapping):
            updates = {}
            for name, val in values.items():
                if name not in self._par_map:
                    continue
                if isinstance(val, Parameter):
                    updates[name] = (val.value(), val.error())
                    if val.is_fixed() != self._par_map[name].is_fixed():
                        self._set_fixed(name, val.is_fixed())
                else:
                    updates[name] = (val, -1.0)
            self._apply_pars(updates)
            return

        values = list(np.asarray(values, dtype=float))
        if len(values) == self.n_pars():
            names = self.par_names()
        elif len(values) == len(self.free_par_names()):
            names = self.free_par_names()
        else:
            raise PdfError(
                f"expected {self.n_pars()} parameter values "
                f"(or {len(self.free_par_names())} free ones), got {len(values)}"
            )
        self._apply_pars({name: (val, -1.0) for name, val in zip(names, values)})

    def fix_par(self, name: str) -> None:
        self._set_fixed(name, True)
        self.set_par_expr()
        self.cache()

    def release_par(self, name: str) -> None:
        self._set_fixed(name, False)
        self.set_par_expr()
        self.cache()

    def _set_fixed(self, name: str, fixed: bool) -> None:
        par = self.get_par(name)
        if fixed:
            par.fix()
        else:
            par.release()
            if self._cache_depends_on(name):
                self.uncache()

    def _apply_pars(self, updates: Mapping[str, tuple[float, float]]) -> None:
        stale = False
        for name, (value, error) in updates.items():
            par = self.get_par(name)
            if par.is_fixed() and par.value() != value and self._cache_depends_on(name):
                stale = True
            par.set_value(value)
            par.set_error(error)

        if stale:
            self.uncache()

        self.set_par_expr()
        self.cache()

    # ---- caching protocol ----

    def uncache(self) -> None:
        """Stop reading cached values until the next ``cache_*`` call."""
        if self._use_cache:
            log.debug(f"{type(self).__name__}: cached values invalidated")
        self._use_cache = False

    def uses_cache(self) -> bool:
        return self._use_cache

    def _cache_depends_on(self, name: str) -> bool:
        """Whether the cached per-event values depend on parameter `name`."""
        return True

    def _cache_index(self, session: CacheSession, slot: str, kind: str = "real") -> int:
        """Index of a cached quantity, allocated on first use in a session."""
        previous = self._cache_indices.get(slot)
        if previous is not None and previous[0] == session.id:
            return previous[1]

        if kind == "real":
            idx = session.next_real_index()
        else:
            idx = session.next_complex_index()
        self._cache_indices[slot] = (session.id, idx)
        return idx

    def cache_real(self, data: Dataset, session: CacheSession) -> dict[int, np.ndarray]:
        """Per-event real values to cache. Densities without cacheable real
        quantities return an empty map."""
        return {}

    def cache_complex(
        self, data: Dataset, session: CacheSession
    ) -> dict[int, np.ndarray]:
        """Per-event complex values to cache. Densities without cacheable
        complex quantities return an empty map."""
        return {}

    # ---- evaluation ----

    @abstractmethod
    def set_par_expr(self) -> None:
        """Re-bind parameter expressions to the current parameter map."""

    @abstractmethod
    def cache(self) -> None:
        """Recompute everything shared by all events, usually the norm."""

    @abstractmethod
    def evaluate(self, vars: Sequence[float] | None = None) -> float:
        """Density at `vars`, or at the current variable values if `None`."""

    def evaluate_value(self, value: float) -> float:
        raise PdfError(
            f"{type(self).__name__}.evaluate_value has been called on a pdf "
            "with more than one variable"
        )

    def evaluate_cached(
        self,
        vars: Sequence[float],
        cache_r: Mapping[int, float],
        cache_c: Mapping[int, complex],
    ) -> float:
        """Density at `vars`, reading this event's cached values when the
        density caches anything."""
        return self.evaluate(vars)

    @abstractmethod
    def generate(self) -> dict[str, float]:
        """Draw one event, keyed by variable name."""

    def project(self, var: str, value: float, region=None) -> float:
        raise PdfError(f"{type(self).__name__} does not implement projections")

    def copy(self):
        """Independent copy, in the uncached state."""
        new = copy.deepcopy(self)
        new._use_cache = False
        new._cache_indices = {}
        return new
