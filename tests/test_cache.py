import numpy as np

from cpfit.cache import CacheSession


def test_session_indices():
    session = CacheSession()
    assert [session.next_real_index() for _ in range(3)] == [0, 1, 2]
    assert session.next_complex_index() == 0
    assert session.next_real_index() == 3

    other = CacheSession()
    assert other.id != session.id
    assert other.next_real_index() == 0


def test_session_rows():
    session = CacheSession()
    session.store_real({0: np.array([1.0, 2.0]), 3: np.array([3.0, 4.0])})
    session.store_complex({0: np.array([1j, 2j])})

    assert session.real_row(1) == {0: 2.0, 3: 4.0}
    assert session.complex_row(0) == {0: 1j}

    rows = session.rows(2)
    assert len(rows) == 2
    assert rows[0] == ({0: 1.0, 3: 3.0}, {0: 1j})

    session.clear()
    assert session.real_row(0) == {}
    assert session.next_real_index() == 0
