"""
Variables, parameters and the expressions built on top of them.

Probability densities keep their own copies of the :class:`Parameter` objects
they are built from. Expressions (:class:`ParameterExpr`, :class:`CoefExpr`)
only remember parameter *names*, and are re-bound to the current parameter
values of their owner through :meth:`ParameterExpr.set_pars`.
"""

from __future__ import annotations

import cmath
import copy
import logging
from pathlib import Path
from typing import Callable, Mapping, Sequence

from cpfit.errors import PdfError
from cpfit.utils import load_dict

log = logging.getLogger(__name__)


class Variable:
    """A named observable, e.g. an invariant mass."""

    def __init__(self, name: str, value: float = 0.0, error: float = -1.0) -> None:
        self._name = name
        self._value = float(value)
        self._error = float(error)

    @property
    def name(self) -> str:
        return self._name

    def value(self) -> float:
        return self._value

    def error(self) -> float:
        return self._error

    def set_value(self, value: float) -> None:
        self._value = float(value)

    def set_error(self, error: float) -> None:
        self._error = float(error)

    def copy(self):
        return copy.copy(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, {self._value})"


class Parameter(Variable):
    """A named model constant that a minimizer may vary.

    Free parameters are the search coordinates of the minimizer, fixed
    parameters are constants for the duration of a fit.
    """

    def __init__(
        self,
        name: str,
        value: float = 0.0,
        error: float = -1.0,
        fixed: bool = False,
    ) -> None:
        super().__init__(name, value, error)
        self._fixed = bool(fixed)

    def is_fixed(self) -> bool:
        return self._fixed

    def fix(self) -> None:
        self._fixed = True

    def release(self) -> None:
        self._fixed = False

    def __repr__(self) -> str:
        state = "fixed" if self._fixed else "free"
        return f"Parameter({self._name!r}, {self._value}, {state})"


class ParameterExpr:
    """Scalar function of one or more parameters.

    Parameters
    ----------
    func
        callable taking the parameter values as keyword arguments, named after
        the parameters.
    pars
        the parameters the expression depends on. The expression keeps copies
        and tracks them by name.

    Examples
    --------
    >>> mu = Parameter("mu", 1.0)
    >>> shift = Parameter("shift", 0.5, fixed=True)
    >>> expr = ParameterExpr(lambda mu, shift: mu + shift, [mu, shift])
    >>> expr.evaluate()
    1.5
    """

    def __init__(self, func: Callable, pars: Sequence[Parameter]) -> None:
        self._func = func
        self._pars = {p.name: p.copy() for p in pars}
        self._value = None
        self._update()

    @classmethod
    def of(cls, par):
        """Promote a :class:`Parameter` to the identity expression, and return
        an existing expression untouched."""
        if isinstance(par, ParameterExpr):
            return par
        if isinstance(par, Parameter):
            name = par.name
            return cls(lambda **kw: kw[name], [par])
        raise PdfError(f"cannot build a parameter expression from {par!r}")

    def _update(self) -> None:
        values = {name: p.value() for name, p in self._pars.items()}
        self._value = self._func(**values)

    def evaluate(self):
        return self._value

    def names(self) -> tuple[str, ...]:
        return tuple(self._pars)

    def parameters(self) -> list[Parameter]:
        return list(self._pars.values())

    def is_fixed(self) -> bool:
        return all(p.is_fixed() for p in self._pars.values())

    def set_pars(self, pars: Mapping[str, Parameter]) -> None:
        """Read the current values of the parameters this expression depends
        on from a name-keyed map. Names missing from the map are left as is."""
        for name in self._pars:
            if name in pars:
                self._pars[name] = pars[name].copy()
        self._update()

    def copy(self):
        new = copy.copy(self)
        new._pars = {name: p.copy() for name, p in self._pars.items()}
        return new


class CoefExpr(ParameterExpr):
    """Complex-valued parameter expression, e.g. a CP mixing coefficient."""

    def _update(self) -> None:
        values = {name: p.value() for name, p in self._pars.items()}
        self._value = complex(self._func(**values))

    @classmethod
    def cartesian(cls, re: Parameter, im: Parameter) -> CoefExpr:
        """``re + i im``"""
        nre, nim = re.name, im.name
        return cls(lambda **kw: complex(kw[nre], kw[nim]), [re, im])

    @classmethod
    def polar(cls, mag: Parameter, phase: Parameter) -> CoefExpr:
        """``mag exp(i phase)``, phase in radians."""
        nmag, nphase = mag.name, phase.name
        return cls(lambda **kw: cmath.rect(kw[nmag], kw[nphase]), [mag, phase])

    @classmethod
    def constant(cls, value: complex) -> CoefExpr:
        return cls(lambda: complex(value), [])


def parameters_from_config(config: dict | str | Path) -> dict[str, Parameter]:
    """Build parameters from a configuration dictionary or a JSON/YAML file.

    Each entry is either a bare number or a dictionary with the keys
    ``value``, and optionally ``error`` and ``fixed``:

    .. code-block:: yaml

        mu: 0.1
        sigma:
          value: 1.2
          fixed: true
    """
    if isinstance(config, (str, Path)):
        config = load_dict(config)

    pars = {}
    for name, entry in config.items():
        if isinstance(entry, Mapping):
            if "value" not in entry:
                raise PdfError(f"parameter {name!r} has no value in its configuration")
            pars[name] = Parameter(
                name,
                entry["value"],
                entry.get("error", -1.0),
                entry.get("fixed", False),
            )
        else:
            pars[name] = Parameter(name, float(entry))

    log.debug(f"configured parameters: {list(pars)}")
    return pars
