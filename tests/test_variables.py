import cmath
import json

import pytest

from cpfit.errors import PdfError
from cpfit.variables import (
    CoefExpr,
    Parameter,
    ParameterExpr,
    Variable,
    parameters_from_config,
)


def test_variable():
    x = Variable("x", 1.0)
    assert x.name == "x"
    assert x.value() == 1.0
    assert x.error() == -1.0
    x.set_value(2.0)
    x.set_error(0.5)
    y = x.copy()
    y.set_value(3.0)
    assert (x.value(), x.error()) == (2.0, 0.5)


def test_parameter_fixed_flag():
    p = Parameter("p", 1.0)
    assert not p.is_fixed()
    p.fix()
    assert p.is_fixed()
    p.release()
    assert not p.is_fixed()


def test_parameter_expr():
    a = Parameter("a", 2.0)
    b = Parameter("b", 3.0, fixed=True)
    expr = ParameterExpr(lambda a, b: a * b, [a, b])
    assert expr.evaluate() == 6.0
    assert expr.names() == ("a", "b")
    assert not expr.is_fixed()

    # rebinding reads values by name and ignores unknown names
    expr.set_pars({"a": Parameter("a", 1.0, fixed=True), "c": Parameter("c", 9.0)})
    assert expr.evaluate() == 3.0
    assert expr.is_fixed()

    # the expression keeps its own copies
    a.set_value(10.0)
    assert expr.evaluate() == 3.0


def test_parameter_expr_of():
    p = Parameter("p", 4.0)
    expr = ParameterExpr.of(p)
    assert expr.evaluate() == 4.0
    assert ParameterExpr.of(expr) is expr
    with pytest.raises(PdfError):
        ParameterExpr.of(4.0)


def test_coef_expr():
    z = CoefExpr.cartesian(Parameter("re", 0.5), Parameter("im", -0.5))
    assert z.evaluate() == complex(0.5, -0.5)

    w = CoefExpr.polar(Parameter("mag", 2.0), Parameter("phase", cmath.pi / 2))
    assert w.evaluate() == pytest.approx(2j)

    assert CoefExpr.constant(1 + 1j).evaluate() == 1 + 1j
    assert CoefExpr.constant(1 + 1j).names() == ()


def test_parameters_from_config(tmp_path):
    config = {
        "mu": 0.1,
        "sigma": {"value": 1.2, "error": 0.1, "fixed": True},
    }
    pars = parameters_from_config(config)
    assert list(pars) == ["mu", "sigma"]
    assert pars["mu"].value() == 0.1
    assert not pars["mu"].is_fixed()
    assert pars["sigma"].is_fixed()
    assert pars["sigma"].error() == 0.1

    fname = tmp_path / "pars.json"
    fname.write_text(json.dumps(config))
    assert list(parameters_from_config(fname)) == ["mu", "sigma"]

    fname = tmp_path / "pars.yaml"
    fname.write_text("mu: 0.1\nsigma:\n  value: 1.2\n  fixed: true\n")
    assert parameters_from_config(str(fname))["sigma"].value() == 1.2

    with pytest.raises(PdfError):
        parameters_from_config({"mu": {"error": 0.1}})
