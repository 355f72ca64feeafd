"""Tests for numeric coercion and ROI calculations."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultwatch.calculations import calculate_roi_pct, to_days, to_number


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "abc", "1.2.3", float("nan"), float("inf"), float("-inf"),
     "Infinity", "NaN", "1_000", "1_0.5", [], {}, object(), 10**400],
)
def test_to_number_defaults_bad_values_to_zero(value) -> None:
    assert to_number(value) == 0.0


def test_to_number_parses_numbers_and_numeric_strings() -> None:
    assert to_number(12) == 12.0
    assert to_number(-3.5) == -3.5
    assert to_number("1234.56") == 1234.56
    assert to_number(" -7 ") == -7.0
    assert to_number(True) == 1.0
    assert to_number(False) == 0.0


@pytest.mark.parametrize(
    "raw, expected",
    [(-3.7, 0), (5.9, 5), ("12.2", 12), (0, 0), (None, 0), ("soon", 0), (float("inf"), 0)],
)
def test_to_days_floors_and_clamps(raw, expected) -> None:
    days = to_days(raw)
    assert days == expected
    assert isinstance(days, int)


@pytest.mark.parametrize(
    "equity, pnl",
    [(100.0, 100.0), (50.0, 80.0), (0.0, 0.0), (-10.0, 5.0)],
)
def test_roi_is_zero_without_positive_initial_capital(equity, pnl) -> None:
    assert calculate_roi_pct(equity, pnl) == 0.0
    assert calculate_roi_pct(equity, pnl, gain=1_000.0) == 0.0


@pytest.mark.parametrize(
    "equity, pnl",
    [(1100.0, 100.0), (900.0, -100.0), (3.3, 1.1), (250_000.0, 12_345.67)],
)
def test_roi_uses_exact_formula(equity, pnl) -> None:
    assert calculate_roi_pct(equity, pnl) == pnl / (equity - pnl) * 100


def test_roi_with_separate_gain_keeps_capital_base() -> None:
    # capital = 500 - 50 = 450
    assert calculate_roi_pct(500.0, 50.0, gain=90.0) == pytest.approx(20.0)
    assert calculate_roi_pct(500.0, 50.0, gain=0.0) == 0.0
