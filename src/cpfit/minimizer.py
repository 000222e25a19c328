"""
Figures of merit of a density on a dataset, minimized with :mod:`iminuit`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np
from iminuit import Minuit

from cpfit.cache import CacheSession
from cpfit.dataset import Dataset
from cpfit.errors import MinimizerError
from cpfit.pdfs.base import PdfBase
from cpfit.result import FitResult

log = logging.getLogger(__name__)


class Minimizer(ABC):
    """Base class of the functions handed to the minimizer.

    The minimizer drives the density it is given: the parameters of `pdf`
    are updated at every call and set to the best-fit values at the end of
    :meth:`minimize`. The dataset must not change while the minimizer lives.

    Parameters
    ----------
    pdf
        the density to fit.
    data
        the measured events, one column per variable of `pdf`.
    """

    def __init__(self, pdf: PdfBase, data: Dataset) -> None:
        self._pdf = pdf
        self._data = data
        self._session = CacheSession()
        self._rows = None

        # variation of the figure of merit that defines the uncertainties:
        # n-sigma uncertainties need up = n^2
        self._up = -1.0

    def pdf(self) -> PdfBase:
        return self._pdf

    def data(self) -> Dataset:
        return self._data

    def session(self) -> CacheSession:
        return self._session

    def up(self) -> float:
        if self._up < 0.0:
            raise MinimizerError("the value of up has not been set")
        return self._up

    def set_up(self, up: float) -> None:
        self._up = float(up)

    def cache(self) -> None:
        """Collect the per-event values the density can precompute."""
        self._session.store_real(self._pdf.cache_real(self._data, self._session))
        self._session.store_complex(self._pdf.cache_complex(self._data, self._session))
        self._rows = self._session.rows(self._data.size())
        log.info(
            f"cached {len(self._session.real)} real and {len(self._session.complex)} "
            f"complex quantities for {self._data.size()} events"
        )

    def rows(self) -> list[tuple[dict, dict]]:
        """Cached real and complex values of every event."""
        if self._rows is None:
            self._rows = self._session.rows(self._data.size())
        return self._rows

    @abstractmethod
    def __call__(self, pars: Sequence[float]) -> float:
        """Figure of merit for the free parameter values `pars`."""

    def minimize(self, simplex: bool = False) -> FitResult:
        """Minimize over the free parameters of the density.

        Parameters
        ----------
        simplex
            whether to run a round of simplex minimisation before migrad.

        Returns
        -------
        result
            best-fit values and errors of every parameter, already set on
            the density.
        """
        free = self._pdf.free_par_names()
        if not free:
            raise MinimizerError("the pdf has no free parameters")

        pars = self._pdf.get_pars()
        start = np.array([pars[name].value() for name in free])

        m = Minuit(self, start, name=free)
        m.errordef = self.up()
        for name in free:
            if pars[name].error() > 0.0:
                m.errors[name] = pars[name].error()

        log.info(f"minimizing over {len(free)} free parameters: {free}")
        if simplex is True:
            m.simplex().migrad()
        else:
            m.migrad()
        m.hesse()
        log.info(f"minimum {m.fval} (valid: {m.valid}) after {m.nfcn} calls")

        values = {name: p.value() for name, p in pars.items()}
        errors = {name: p.error() for name, p in pars.items()}
        values.update({name: float(m.values[name]) for name in free})
        errors.update({name: float(m.errors[name]) for name in free})

        result = FitResult(
            values=values,
            errors=errors,
            free=tuple(free),
            covariance=np.array(m.covariance) if m.covariance is not None else None,
            fval=float(m.fval),
            valid=bool(m.valid),
            stats={"nfcn": m.nfcn, "edm": m.fmin.edm},
        )
        self._pdf.set_pars(result)
        return result


class Likelihood(Minimizer):
    r"""Twice the negative log-likelihood,
    :math:`-2 \sum_i \ln P(x_i)`.

    `up` defaults to 1, which gives one-sigma uncertainties. Events where the
    density is not positive add a large penalty instead of diverging.
    """

    penalty = -2.0 * np.log(np.finfo(float).tiny)

    def __init__(self, pdf: PdfBase, data: Dataset) -> None:
        super().__init__(pdf, data)
        self.set_up(1.0)

        # one column per variable, in the order of the density. Variables
        # missing from the dataset are NaN and derived by the density, e.g.
        # the third invariant mass of a Dalitz plot
        self._values = np.full((data.size(), pdf.n_vars()), np.nan)
        for i, name in enumerate(pdf.var_names()):
            if data.has(name):
                self._values[:, i] = data.column(name)
            else:
                log.debug(f"variable {name!r} not in the dataset, left to the pdf")

    def __call__(self, pars: Sequence[float]) -> float:
        self._pdf.set_pars(list(pars))

        total = 0.0
        for event, (cache_r, cache_c) in zip(self._values, self.rows()):
            value = self._pdf.evaluate_cached(event, cache_r, cache_c)
            if value > 0.0 and np.isfinite(value):
                total -= 2.0 * np.log(value)
            else:
                total += self.penalty
        return total
