"""
Probability densities. Elementary single-variable models share the
truncation machinery of :class:`TruncatedPdf`; composite models derive from
:class:`PdfBase` directly.
"""

from .argus import Argus
from .base import PdfBase
from .crystal_ball import DoubleCrystalBall
from .decay3bodycp import Decay3BodyCP
from .gauss import Gauss
from .product import ProductPdf
from .truncated import TruncatedPdf

__all__ = [
    "Argus",
    "Decay3BodyCP",
    "DoubleCrystalBall",
    "Gauss",
    "PdfBase",
    "ProductPdf",
    "TruncatedPdf",
]
