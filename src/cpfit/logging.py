"""Console logging for cpfit, colored with :mod:`colorlog`."""

import logging

import colorlog

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
FATAL = logging.FATAL
CRITICAL = logging.CRITICAL

DEFAULT_FORMAT = "%(log_color)s%(name)s [%(levelname)s] %(message)s"


def setup(
    level: int = logging.INFO, logger: logging.Logger = None, fmt: str = None
) -> logging.Logger:
    """Attach a colored stream handler and set the verbosity.

    If `logger` is None, sets up only the ``cpfit`` logger. Calling this
    function twice on the same logger only changes its level.

    Parameters
    ----------
    level
        logging level (see :mod:`logging` module).
    logger
        if not `None`, setup this logger.
    fmt
        :class:`colorlog.ColoredFormatter` format string, defaults to
        :data:`DEFAULT_FORMAT`.

    Examples
    --------
    >>> from cpfit import logging
    >>> logging.setup(level=logging.DEBUG)
    """
    if logger is None:
        logger = colorlog.getLogger("cpfit")

    logger.setLevel(level)

    if not any(getattr(h, "_cpfit", False) for h in logger.handlers):
        handler = colorlog.StreamHandler()
        handler.setFormatter(colorlog.ColoredFormatter(fmt or DEFAULT_FORMAT))
        handler._cpfit = True
        logger.addHandler(handler)

    return logger
