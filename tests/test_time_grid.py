"""
Tests for the time stepping primitives.

This module tests calendar month arithmetic, compounding helpers and
inflation adjustment.
"""

from datetime import date

import pytest

from finance_engine.models.errors import InvalidInputError
from finance_engine.models.time_grid import (
    InflationAdjuster,
    TimeStepper,
    YearMonth,
    compound,
)


class TestYearMonth:
    """Test YearMonth parsing and arithmetic."""

    def test_parse_full_date(self):
        """Test parsing a YYYY-MM-DD string."""
        ym = YearMonth.parse("2024-01-15")

        assert ym.year == 2024
        assert ym.month == 1
        assert str(ym) == "2024-01"

    def test_parse_year_month_and_date(self):
        """Test parsing YYYY-MM strings and date objects."""
        assert YearMonth.parse("2030-12") == YearMonth(year=2030, month=12)
        assert YearMonth.parse(date(2025, 6, 30)) == YearMonth(year=2025, month=6)

    def test_parse_invalid(self):
        """Test that malformed dates are rejected."""
        with pytest.raises(InvalidInputError):
            YearMonth.parse("2024")
        with pytest.raises(InvalidInputError):
            YearMonth.parse("2024-13-01")
        with pytest.raises(InvalidInputError):
            YearMonth.parse("abcd-ef")
        with pytest.raises(InvalidInputError):
            YearMonth.parse("0000-05")

    def test_plus_months_rolls_over_year(self):
        """Test month addition across year boundaries."""
        start = YearMonth(year=2024, month=11)

        assert start.plus_months(0) == start
        assert str(start.plus_months(2)) == "2025-01"
        assert str(start.plus_months(14)) == "2026-01"
        assert str(start.plus_months(-11)) == "2023-12"

    def test_plus_months_has_no_upper_year_bound(self):
        """Test that stepping far into the future keeps working."""
        start = YearMonth.parse("2190-01")

        assert str(start.plus_months(360)) == "2220-01"
        assert str(YearMonth.parse("9999-12").plus_months(1)) == "10000-01"

    def test_ordering(self):
        """Test month comparisons."""
        a = YearMonth(year=2024, month=1)
        b = YearMonth(year=2054, month=1)

        assert a.plus_months(360) == b
        assert a < b
        assert b >= a
        assert sorted([b, a]) == [a, b]

    def test_serializes_as_text(self):
        """Test that dumped models carry YYYY-MM strings."""
        ym = YearMonth(year=2031, month=7)

        assert ym.model_dump() == "2031-07"
        assert YearMonth.model_validate("2031-07-20") == ym
        assert YearMonth.model_validate(date(2031, 7, 1)) == ym


class TestCompounding:
    """Test compounding helpers."""

    def test_compound(self):
        """Test multi-period compounding."""
        assert compound(1000, 0.05, 0) == 1000
        assert compound(1000, 0.05, 2) == pytest.approx(1102.5)
        assert compound(1000, 0.0, 10) == 1000

    def test_step_grows_then_adds_contribution(self):
        """Test that growth applies before the contribution."""
        assert TimeStepper.step(1000, 0.01, 100) == pytest.approx(1110)

    def test_grow_leaves_empty_balance(self):
        """Test that empty balances do not grow."""
        assert TimeStepper.grow(0.0, 0.07) == 0.0
        assert TimeStepper.grow(100.0, 0.10) == pytest.approx(110.0)

    def test_step_interest(self):
        """Test single-period interest."""
        assert TimeStepper.step_interest(300000, 0.005) == pytest.approx(1500)


class TestInflationAdjuster:
    """Test inflation adjustments."""

    def test_round_trip(self):
        """Test converting real to nominal and back."""
        adjuster = InflationAdjuster(inflation_rate=0.03, base_year=2024)

        nominal = adjuster.to_nominal_value(100000, 2034)
        assert nominal == pytest.approx(100000 * 1.03**10)
        assert adjuster.to_real_value(nominal, 2034) == pytest.approx(100000)

    def test_same_year_is_identity(self):
        """Test that no adjustment happens within the base year."""
        adjuster = InflationAdjuster(inflation_rate=0.03, base_year=2024)

        assert adjuster.adjust_for_inflation(500, 2024, 2024) == 500
