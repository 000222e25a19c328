import numpy as np
import pandas as pd
import pytest

from cpfit.dataset import Dataset
from cpfit.errors import PdfError


def test_dataset_columns():
    data = Dataset.from_dict({"x": [1, 2, 3], "y": [0.5, 0.25, 0.0]})
    assert data.size() == 3
    assert len(data) == 3
    assert data.names() == ["x", "y"]
    assert data.has("x")
    assert not data.has("z")
    assert np.array_equal(data.column("x"), [1.0, 2.0, 3.0])
    assert data.value("y", 1) == 0.25
    assert data.row(2) == {"x": 3.0, "y": 0.0}

    with pytest.raises(PdfError):
        data.column("z")
    with pytest.raises(PdfError):
        data.value("z", 0)


def test_dataset_append():
    data = Dataset()
    assert data.size() == 0
    data.append({"x": 1.0, "y": 2.0})
    data.append({"x": 3.0, "y": 4.0})
    assert data.size() == 2
    assert data.value("x", 1) == 3.0


def test_dataset_from_pandas():
    df = pd.DataFrame({"x": [1.0, 2.0]}, index=[10, 20])
    data = Dataset(df)
    assert data.value("x", 0) == 1.0
    assert isinstance(data.to_pandas(), pd.DataFrame)
