from __future__ import annotations

import json
import logging
import os
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Iterator

import yaml

log = logging.getLogger(__name__)


def getenv_bool(name: str, default: bool = False) -> bool:
    """Get environment value as a boolean, returning True for 1, t and true
    (caps-insensitive), and False for any other value and default if undefined.
    """
    val = os.getenv(name)
    if not val:
        return default
    elif val.lower() in ("1", "t", "true"):
        return True
    else:
        return False


class NumbaCfitDefaults(MutableMapping):
    """Numba options shared by the density kernels of :mod:`cpfit.pdfs`.

    Values are read from the ``CPFIT_PARALLEL`` and ``CPFIT_FASTMATH``
    environment variables when the module is imported. They must be changed
    before the density modules are imported to have any effect.

    Examples
    --------
    >>> from cpfit.utils import numba_math_defaults
    >>> numba_math_defaults.fastmath = True
    >>> numba_math_defaults(cache=True)
    {'parallel': False, 'fastmath': True, 'cache': True}
    """

    def __init__(self) -> None:
        self.parallel: bool = getenv_bool("CPFIT_PARALLEL", default=False)
        self.fastmath: bool = getenv_bool("CPFIT_FASTMATH", default=False)

    def __getitem__(self, item: str) -> Any:
        return self.__dict__[item]

    def __setitem__(self, item: str, val: Any) -> None:
        self.__dict__[item] = val

    def __delitem__(self, item: str) -> None:
        del self.__dict__[item]

    def __iter__(self) -> Iterator:
        return self.__dict__.__iter__()

    def __len__(self) -> int:
        return len(self.__dict__)

    def __call__(self, **kwargs) -> dict:
        mapping = self.__dict__.copy()
        mapping.update(**kwargs)
        return mapping

    def __repr__(self) -> str:
        return str(self.__dict__)

    def vectorize(self) -> dict:
        """Options for :func:`numba.vectorize`. ``parallel`` selects the
        parallel target, which needs the explicit signatures every kernel
        declares."""
        kwargs = {"fastmath": self.fastmath}
        if self.parallel:
            kwargs["target"] = "parallel"
        return kwargs


numba_math_defaults = NumbaCfitDefaults()

__file_extensions__ = {"json": [".json"], "yaml": [".yaml", ".yml"]}


def load_dict(fname: str, ftype: str | None = None) -> dict:
    """Load a JSON or YAML file as a Python dict.

    Parameters
    ----------
    fname
        path of the file.
    ftype
        ``json`` or ``yaml``. Inferred from the file extension if `None`.
    """
    fname = Path(fname)

    if ftype is None:
        for _ftype, exts in __file_extensions__.items():
            if fname.suffix in exts:
                ftype = _ftype

    log.debug(f"loading {ftype} dict from: {fname}")

    with fname.open() as f:
        if ftype == "json":
            return json.load(f)
        if ftype == "yaml":
            return yaml.safe_load(f)

        msg = f"unsupported file format {ftype}"
        raise NotImplementedError(msg)
