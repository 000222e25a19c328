import numpy as np
import pytest
from scipy.integrate import quad
from scipy.stats import norm as scipy_gaussian

from cpfit.cache import CacheSession
from cpfit.dataset import Dataset
from cpfit.errors import PdfError
from cpfit.pdfs.gauss import Gauss, nb_gauss_shape
from cpfit.variables import Parameter, ParameterExpr, Variable


def make_gauss(mu=0.0, sigma=1.0, fixed=False):
    return Gauss(
        Variable("x"),
        Parameter("mu", mu, fixed=fixed),
        Parameter("sigma", sigma, fixed=fixed),
    )


def test_gauss_shape_kernel():
    x = np.linspace(-5, 5, 11)
    assert np.allclose(nb_gauss_shape(x, 1.0, 2.0), np.exp(-0.5 * ((x - 1.0) / 2.0) ** 2))


def test_gauss_untruncated():
    g = make_gauss()
    assert g.norm() == pytest.approx(np.sqrt(2 * np.pi))
    assert g.evaluate(0.0) == pytest.approx(1 / np.sqrt(2 * np.pi))
    assert g.area(-1, 1) == pytest.approx(0.682689492, rel=1e-8)

    x = np.linspace(-4, 6, 21)
    g.set_pars([1.0, 2.0])
    assert np.allclose(g.evaluate_array(x), scipy_gaussian.pdf(x, 1.0, 2.0))


def test_gauss_truncated_normalization():
    g = make_gauss(0.5, 1.5)
    g.set_limits(-1.0, 2.0)

    integral, _ = quad(g.evaluate_value, -1.0, 2.0)
    assert integral == pytest.approx(1.0, rel=1e-7)
    assert g.area(-10, 10) == pytest.approx(1.0)
    assert g.evaluate(-1.5) == 0.0
    assert g.evaluate(2.5) == 0.0

    expected = scipy_gaussian.pdf(0.0, 0.5, 1.5) / (
        scipy_gaussian.cdf(2.0, 0.5, 1.5) - scipy_gaussian.cdf(-1.0, 0.5, 1.5)
    )
    assert g.evaluate(0.0) == pytest.approx(expected)


def test_gauss_lower_limit_only():
    g = make_gauss()
    g.set_lower_limit(1.0)
    tail = scipy_gaussian.sf(1.0)
    assert g.evaluate(1.5) == pytest.approx(scipy_gaussian.pdf(1.5) / tail)
    assert g.area(1.0, 2.0) == pytest.approx(
        (scipy_gaussian.cdf(2.0) - scipy_gaussian.cdf(1.0)) / tail
    )
    # no mass below the lower limit
    assert g.area(-1, 1) == 0.0
    assert g.area(1, 1) == 0.0

    g.unset_lower_limit()
    assert g.evaluate(1.5) == pytest.approx(scipy_gaussian.pdf(1.5))


def test_gauss_area_partition():
    g = make_gauss(0.3, 0.8)
    g.set_upper_limit(1.0)
    edges = [-np.inf, -0.5, 0.2, 0.7, np.inf]
    total = sum(g.area(lo, hi) for lo, hi in zip(edges[:-1], edges[1:]))
    assert total == pytest.approx(1.0)
    assert g.area(1.0, 3.0) == 0.0
    assert g.area(0.5, 0.2) == 0.0


def test_gauss_zero_width():
    g = make_gauss(0.5, 0.0)
    assert g.norm() == 0.0
    assert g.evaluate(0.4) == 0.0
    assert g.area(0.0, 1.0) == 1.0
    assert g.area(0.6, 1.0) == 0.0
    assert g.generate() == {"x": 0.5}


def test_gauss_parameter_expression():
    mu = Parameter("mu", 1.0)
    shift = Parameter("shift", 0.5, fixed=True)
    g = Gauss(
        Variable("x"),
        ParameterExpr(lambda mu, shift: mu + shift, [mu, shift]),
        Parameter("sigma", 1.0),
    )
    assert g.par_names() == ["mu", "shift", "sigma"]
    assert g.free_par_names() == ["mu", "sigma"]
    assert g.mu() == pytest.approx(1.5)

    g.set_par("mu", 2.0)
    assert g.mu() == pytest.approx(2.5)
    assert g.evaluate(2.5) == pytest.approx(1 / np.sqrt(2 * np.pi))


def test_gauss_generate_inside_limits():
    g = make_gauss(0.0, 1.0)
    g.set_limits(0.5, 1.0)
    values = [g.generate()["x"] for _ in range(200)]
    assert min(values) >= 0.5
    assert max(values) <= 1.0


def test_gauss_generate_empty_range():
    g = make_gauss()
    g.set_limits(1.0, 0.0)
    assert g.norm() == 0.0
    with pytest.raises(PdfError):
        g.generate()


def test_gauss_evaluate_array_matches_scalar():
    g = make_gauss(0.2, 0.7)
    g.set_limits(-1.0, 1.0)
    x = np.linspace(-2.0, 2.0, 41)
    assert np.allclose(g.evaluate_array(x), [g.evaluate_value(v) for v in x])
    assert g.evaluate_array(x.reshape(1, -1)).shape == (1, 41)

    zero_width = make_gauss(0.5, 0.0)
    assert np.array_equal(zero_width.evaluate_array([0.0, 1.0]), [0.0, 0.0])


def test_gauss_limit_change_drops_cache():
    g = make_gauss(fixed=True)
    data = Dataset.from_dict({"x": [0.0, 0.3, 1.0]})
    session = CacheSession()
    session.store_real(g.cache_real(data, session))
    assert g.uses_cache()

    g.set_limits(-0.5, 0.5)
    assert not g.uses_cache()
    for row in range(data.size()):
        x = data.value("x", row)
        assert g.evaluate_cached([x], session.real_row(row), {}) == pytest.approx(
            g.evaluate(x)
        )

    # caching again reflects the new window
    session.store_real(g.cache_real(data, session))
    assert g.evaluate_cached([0.0], session.real_row(0), {}) == pytest.approx(g.evaluate(0.0))

    for change in (g.unset_lower_limit, g.unset_upper_limit, g.unset_limits):
        g.cache_real(data, session)
        change()
        assert not g.uses_cache()
    g.cache_real(data, session)
    g.set_upper_limit(2.0)
    assert not g.uses_cache()
