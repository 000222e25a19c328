import json

import pytest

import cpfit.utils as cfu


def test_getenv_bool(monkeypatch):
    monkeypatch.setenv("CPFIT_TEST_FLAG", "True")
    assert cfu.getenv_bool("CPFIT_TEST_FLAG")
    monkeypatch.setenv("CPFIT_TEST_FLAG", "0")
    assert not cfu.getenv_bool("CPFIT_TEST_FLAG", default=True)
    monkeypatch.delenv("CPFIT_TEST_FLAG")
    assert cfu.getenv_bool("CPFIT_TEST_FLAG", default=True)


def test_math_numba_defaults():
    assert not cfu.numba_math_defaults.parallel
    assert cfu.numba_math_defaults.vectorize() == {
        "fastmath": cfu.numba_math_defaults.fastmath
    }

    defaults = cfu.NumbaCfitDefaults()
    defaults.fastmath = True
    assert defaults["fastmath"]
    assert defaults(cache=True)["cache"]

    defaults.parallel = True
    assert defaults.vectorize() == {"fastmath": True, "target": "parallel"}


def test_load_dict(tmp_path):
    fname = tmp_path / "config.json"
    fname.write_text(json.dumps({"a": 1}))
    assert cfu.load_dict(fname) == {"a": 1}

    fname = tmp_path / "config.yml"
    fname.write_text("a: [1, 2]\n")
    assert cfu.load_dict(fname) == {"a": [1, 2]}

    fname = tmp_path / "config.txt"
    fname.write_text("a")
    with pytest.raises(NotImplementedError):
        cfu.load_dict(fname)
