import numpy as np
import pytest
from scipy.integrate import quad
from scipy.stats import crystalball

from cpfit.errors import PdfError
from cpfit.pdfs.crystal_ball import DoubleCrystalBall
from cpfit.variables import Parameter, Variable


def make_dcb(mu=0.0, sigma=1.0, alpha=1.5, n=3.0, beta=2.0, m=4.0):
    return DoubleCrystalBall(
        Variable("x"),
        Parameter("mu", mu),
        Parameter("sigma", sigma),
        Parameter("alpha", alpha),
        Parameter("n", n),
        Parameter("beta", beta),
        Parameter("m", m),
    )


def test_dcb_matches_single_sided_crystal_ball():
    # with the upper tail far away only the lower tail matters
    dcb = make_dcb(mu=1.0, sigma=2.0, alpha=1.2, n=2.5, beta=12.0, m=3.0)
    x = np.linspace(-15, 8, 47)
    expected = crystalball.pdf(x, 1.2, 2.5, loc=1.0, scale=2.0)
    assert np.allclose(dcb.evaluate_array(x), expected, rtol=1e-6)


def test_dcb_normalization():
    dcb = make_dcb()
    integral, _ = quad(dcb.evaluate_value, -np.inf, np.inf)
    assert integral == pytest.approx(1.0, rel=1e-6)
    assert dcb.area(-np.inf, np.inf) == pytest.approx(1.0)


def test_dcb_continuous_at_the_junctions():
    dcb = make_dcb(mu=0.5, sigma=1.5)
    for t in (-dcb.alpha(), dcb.beta()):
        x = 0.5 + 1.5 * t
        assert dcb.evaluate(x - 1e-9) == pytest.approx(dcb.evaluate(x + 1e-9), rel=1e-6)


def test_dcb_truncated():
    dcb = make_dcb()
    dcb.set_limits(-4.0, 3.0)
    integral, _ = quad(dcb.evaluate_value, -4.0, 3.0)
    assert integral == pytest.approx(1.0, rel=1e-7)

    expected, _ = quad(dcb.evaluate_value, -3.0, 2.5)
    assert dcb.area(-3.0, 2.5) == pytest.approx(expected, rel=1e-7)
    assert dcb.evaluate(3.5) == 0.0


@pytest.mark.parametrize(
    "pars",
    [
        {"sigma": 0.0},
        {"alpha": -1.0},
        {"beta": 0.0},
        {"n": 1.0},
        {"m": 0.5},
    ],
)
def test_dcb_invalid_shape(pars):
    with pytest.raises(PdfError):
        make_dcb(**pars)


def test_dcb_generate():
    dcb = make_dcb()
    values = np.array([dcb.generate()["x"] for _ in range(2000)])
    assert np.mean(values < 0.0) == pytest.approx(dcb.area(-np.inf, 0.0), abs=0.05)

    dcb.set_limits(-1.0, 1.0)
    values = np.array([dcb.generate()["x"] for _ in range(200)])
    assert np.all((values >= -1.0) & (values <= 1.0))


def test_gauss_core_integral():
    from scipy.stats import norm

    from cpfit.pdfs.error_function import nb_gauss_core_integral

    expected = np.sqrt(2 * np.pi) * (norm.cdf(1.5) - norm.cdf(-0.5))
    assert nb_gauss_core_integral(-0.5, 1.5) == pytest.approx(expected)
    assert nb_gauss_core_integral(-np.inf, np.inf) == pytest.approx(np.sqrt(2 * np.pi))
