import numpy as np
import pytest
from scipy.integrate import quad

from cpfit.errors import PdfError
from cpfit.pdfs.argus import Argus, nb_argus_shape
from cpfit.variables import Parameter, Variable


def make_argus(c=5.0, chi=3.0):
    return Argus(Variable("mB"), Parameter("c", c), Parameter("chi", chi))


def test_argus_shape_kernel():
    assert nb_argus_shape(6.0, 5.0, 3.0) == 0.0
    assert nb_argus_shape(-1.0, 5.0, 3.0) == 0.0
    x = 3.0
    u = 1 - (x / 5.0) ** 2
    assert nb_argus_shape(x, 5.0, 3.0) == pytest.approx(x * np.sqrt(u) * np.exp(-9.0 * u))


@pytest.mark.parametrize("chi", [0.0, 0.5, 3.0, -2.0])
def test_argus_normalization(chi):
    a = make_argus(5.0, chi)
    integral, _ = quad(a.evaluate_value, 0.0, 5.0, limit=200)
    assert integral == pytest.approx(1.0, rel=1e-7)
    assert a.area(0.0, 5.0) == pytest.approx(1.0)


def test_argus_outside_support():
    a = make_argus()
    assert a.evaluate(6.0) == 0.0
    assert a.evaluate(-0.1) == 0.0
    assert a.evaluate(2.0) > 0.0


def test_argus_truncated_normalization():
    a = make_argus(5.0, 1.5)
    a.set_limits(1.0, 4.5)
    integral, _ = quad(a.evaluate_value, 1.0, 4.5)
    assert integral == pytest.approx(1.0, rel=1e-7)
    assert a.evaluate(0.5) == 0.0
    assert a.evaluate(4.8) == 0.0

    a.unset_upper_limit()
    integral, _ = quad(a.evaluate_value, 1.0, 5.0)
    assert integral == pytest.approx(1.0, rel=1e-7)


def test_argus_area_matches_integral():
    a = make_argus(5.0, 2.0)
    a.set_lower_limit(0.5)
    expected, _ = quad(a.evaluate_value, 2.0, 4.0)
    assert a.area(2.0, 4.0) == pytest.approx(expected, rel=1e-7)
    # clipped against the truncation and the support on both sides
    assert a.area(-3.0, 10.0) == pytest.approx(1.0)
    assert a.area(0.0, 0.5) == 0.0


def test_argus_area_partition():
    a = make_argus(5.0, 0.7)
    edges = [0.0, 1.0, 2.5, 4.0, 5.0]
    total = sum(a.area(lo, hi) for lo, hi in zip(edges[:-1], edges[1:]))
    assert total == pytest.approx(1.0)


def test_argus_negative_limits():
    a = make_argus()
    with pytest.raises(PdfError):
        a.set_lower_limit(-1.0)
    with pytest.raises(PdfError):
        a.set_upper_limit(-0.5)
    with pytest.raises(PdfError):
        a.set_limits(-1.0, 2.0)


def test_argus_parameter_change_recomputes_norm():
    a = make_argus(5.0, 3.0)
    norm = a.norm()
    a.set_par("chi", 1.0)
    assert a.norm() != pytest.approx(norm)
    integral, _ = quad(a.evaluate_value, 0.0, 5.0)
    assert integral == pytest.approx(1.0, rel=1e-7)


@pytest.mark.parametrize("chi", [0.0, 2.0])
def test_argus_generate(chi):
    a = make_argus(5.0, chi)
    a.set_limits(1.0, 4.0)
    values = np.array([a.generate()["mB"] for _ in range(2000)])
    assert np.all((values >= 1.0) & (values <= 4.0))
    # fraction below 3 compared with the model
    assert np.mean(values < 3.0) == pytest.approx(a.area(1.0, 3.0), abs=0.05)
