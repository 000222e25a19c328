r"""
Error-function kernels shared by the densities with a Gaussian core.

With :math:`t = (x - \mu)/\sigma` the integral of the unnormalized core is

.. math::
    \int_{t_{lo}}^{t_{hi}} e^{-s^2/2} ds = \sqrt{\frac{\pi}{2}}
        \left[\text{erf}\left(\frac{t_{hi}}{\sqrt{2}}\right)
            - \text{erf}\left(\frac{t_{lo}}{\sqrt{2}}\right)\right]
"""

from math import erf, pi, sqrt

import numba as nb

from cpfit.utils import numba_math_defaults as nb_defaults

SQRT_PI_2 = sqrt(pi / 2.0)


@nb.vectorize([nb.float64(nb.float64)], **nb_defaults.vectorize())
def nb_erf(x: float) -> float:
    """Error function. Infinite arguments saturate at +/- 1."""
    return erf(x)


@nb.vectorize([nb.float64(nb.float64, nb.float64)], **nb_defaults.vectorize())
def nb_gauss_core_integral(t_lo: float, t_hi: float) -> float:
    """Integral of :math:`e^{-t^2/2}` from `t_lo` to `t_hi`."""
    return SQRT_PI_2 * (erf(t_hi / sqrt(2.0)) - erf(t_lo / sqrt(2.0)))
