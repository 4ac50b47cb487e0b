"""Test the bounded record/sample history used by the display shells.

    python3 tests/test_history.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

import math

import numpy as np

from telemlink.decoder import decode
from telemlink.history import FIELD_NAMES, ReadingHistory


def reading(i):
    """One structured line whose P value is i."""
    return (f"20240101{i % 24:02d}0000\t"
            f"P:{i} T1:{i}.5 Depth:-{i} Alt:{2 * i} T2:0.{i}\n")


def test_append_and_series():
    """Structured readings become numeric samples, others only records."""
    print("test_append_and_series...", end="")

    hist = ReadingHistory()
    payload = "boot ok\n" + reading(1) + "20240101000000\tP:1\n" + reading(2)
    hist.extend(decode(payload))

    assert len(hist.records) == 4
    assert len(hist) == 2
    seq, p = hist.series("p")
    assert seq.tolist() == [0, 1]
    assert p.tolist() == [1.0, 2.0]
    _, depth = hist.series("depth")
    assert depth.tolist() == [-1.0, -2.0]
    assert hist.latest() == {
        "p": 2.0, "t1": 2.5, "depth": -2.0, "alt": 4.0, "t2": 0.2,
    }

    print(" OK")


def test_rolling_window():
    """Oldest samples are discarded once the window is full."""
    print("test_rolling_window...", end="")

    hist = ReadingHistory(max_records=3, max_samples=4)
    for i in range(10):
        hist.extend(decode(reading(i)))

    assert len(hist) == 4
    assert hist.total_samples == 10
    assert hist.truncated_samples == 6
    assert len(hist.records) == 3

    seq, p = hist.series("p")
    assert seq.tolist() == [6, 7, 8, 9]
    assert p.tolist() == [6.0, 7.0, 8.0, 9.0]
    assert np.all(np.diff(seq) == 1)

    print(" OK")


def test_empty_and_clear():
    """An empty history yields empty series and no latest sample."""
    print("test_empty_and_clear...", end="")

    hist = ReadingHistory(max_samples=8)
    assert hist.latest() is None
    for name in FIELD_NAMES:
        seq, vals = hist.series(name)
        assert len(seq) == 0 and len(vals) == 0

    hist.extend(decode(reading(3)))
    hist.clear()
    assert len(hist) == 0
    assert hist.records == []
    assert hist.latest() is None

    print(" OK")


def test_unknown_field():
    """Asking for a field that is not one of the five tags fails loudly."""
    print("test_unknown_field...", end="")

    hist = ReadingHistory()
    try:
        hist.series("humidity")
    except KeyError as e:
        assert "humidity" in str(e)
    else:
        raise AssertionError("expected KeyError")

    try:
        ReadingHistory(max_samples=0)
    except ValueError:
        pass
    else:
        raise AssertionError("expected ValueError")

    print(" OK")


def test_series_are_copies():
    """Mutating a returned series does not touch the history."""
    print("test_series_are_copies...", end="")

    hist = ReadingHistory()
    hist.extend(decode(reading(5)))
    _, p = hist.series("p")
    p[0] = math.nan
    _, p_again = hist.series("p")
    assert p_again.tolist() == [5.0]

    print(" OK")


if __name__ == "__main__":
    print("telemlink history tests")
    print("=======================\n")

    test_append_and_series()
    test_rolling_window()
    test_empty_and_clear()
    test_unknown_field()
    test_series_are_copies()

    print("\nAll tests passed.")
