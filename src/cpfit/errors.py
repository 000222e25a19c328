from __future__ import annotations


class CfitError(Exception):
    """Base class for cpfit errors."""

    pass


class PdfError(CfitError):
    """Error thrown by a probability density when it is given an invalid
    argument, e.g. a negative threshold or a variable it does not know about.
    """

    pass


class MinimizerError(CfitError):
    """Error thrown when the minimizer is used in an invalid state, e.g. when
    the error definition is read before it has been set.
    """

    pass
