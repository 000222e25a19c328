"""
cpfit: unbinned maximum-likelihood fits of CP-violating decays.
"""

from ._version import version as __version__
from .amplitude import Amplitude, Function
from .cache import CacheSession
from .dataset import Dataset
from .errors import CfitError, MinimizerError, PdfError
from .minimizer import Likelihood, Minimizer
from .phasespace import PhaseSpace
from .result import FitResult
from .variables import CoefExpr, Parameter, ParameterExpr, Variable

__all__ = [
    "__version__",
    "Amplitude",
    "CacheSession",
    "CfitError",
    "CoefExpr",
    "Dataset",
    "FitResult",
    "Function",
    "Likelihood",
    "Minimizer",
    "MinimizerError",
    "Parameter",
    "ParameterExpr",
    "PdfError",
    "PhaseSpace",
    "Variable",
]
