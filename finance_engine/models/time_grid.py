"""
Time stepping primitives for the projection engine.

This module provides the calendar value used to label simulated months,
compounding helpers shared by every projector, and inflation adjustment
between real and nominal dollars.
"""

from datetime import date, datetime
from functools import total_ordering
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

from .errors import InvalidInputError


@total_ordering
class YearMonth(BaseModel):
    """A calendar month, rendered as ``YYYY-MM``."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, description="Calendar year")
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12)")

    @model_validator(mode="before")
    @classmethod
    def parse_text(cls, data: Any) -> Any:
        """Accept ``YYYY-MM`` strings and dates wherever a YearMonth is expected."""
        if isinstance(data, (str, date)):
            parsed = cls.parse(data)
            return {"year": parsed.year, "month": parsed.month}
        return data

    @model_serializer
    def serialize(self) -> str:
        return str(self)

    @classmethod
    def parse(cls, value: Union[str, date, "YearMonth"]) -> "YearMonth":
        """
        Build a YearMonth from ``YYYY-MM``, ``YYYY-MM-DD``, a date or a YearMonth.

        Raises:
            InvalidInputError: If the string cannot be parsed
        """
        if isinstance(value, YearMonth):
            return value
        if isinstance(value, (date, datetime)):
            return cls(year=value.year, month=value.month)

        parts = str(value).strip().split("-")
        if len(parts) < 2:
            raise InvalidInputError(f"Expected YYYY-MM or YYYY-MM-DD, got {value!r}")
        try:
            year, month = int(parts[0]), int(parts[1])
        except ValueError as e:
            raise InvalidInputError(f"Invalid date {value!r}: {e}") from e
        if year < 1:
            raise InvalidInputError(f"Year must be positive, got {year}")
        if not 1 <= month <= 12:
            raise InvalidInputError(f"Month must be between 1 and 12, got {month}")
        return cls(year=year, month=month)

    def plus_months(self, months: int) -> "YearMonth":
        """Return the month ``months`` after this one."""
        index = self.year * 12 + (self.month - 1) + months
        return YearMonth(year=index // 12, month=index % 12 + 1)

    def __lt__(self, other: "YearMonth") -> bool:
        if not isinstance(other, YearMonth):
            return NotImplemented
        return (self.year, self.month) < (other.year, other.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def compound(amount: float, rate: float, periods: float) -> float:
    """
    Compound an amount at a per-period fractional rate.

    Args:
        amount: Starting amount
        rate: Per-period rate as a decimal (0.05 = 5%)
        periods: Number of periods (may be fractional)

    Returns:
        ``amount * (1 + rate) ** periods``
    """
    if periods == 0:
        return amount
    return amount * (1 + rate) ** periods


class TimeStepper:
    """Single-period state transitions shared by the projectors."""

    @staticmethod
    def step(balance: float, rate: float, contribution: float = 0.0) -> float:
        """Apply one period of growth, then add the period's contribution."""
        return balance * (1 + rate) + contribution

    @staticmethod
    def step_interest(balance: float, rate: float) -> float:
        """Interest accrued on a balance over one period."""
        return balance * rate

    @staticmethod
    def grow(balance: float, rate: float) -> float:
        """Apply one period of growth to a positive balance; empty balances stay empty."""
        if balance <= 0:
            return balance
        return balance * (1 + rate)


class InflationAdjuster(BaseModel):
    """Handles inflation adjustments for real vs nominal values."""

    model_config = ConfigDict(frozen=True)

    inflation_rate: float = Field(
        ..., gt=-1, description="Annual inflation rate (fraction)"
    )
    base_year: int = Field(..., description="Base year or offset for calculations")

    def adjust_for_inflation(
        self, amount: float, from_year: int, to_year: int
    ) -> float:
        """
        Adjust an amount for inflation between two years.

        Args:
            amount: The amount to adjust
            from_year: The year the amount is from
            to_year: The year to adjust to

        Returns:
            The inflation-adjusted amount
        """
        return compound(amount, self.inflation_rate, to_year - from_year)

    def to_real_value(self, nominal_amount: float, year: int) -> float:
        """Convert nominal value to real value (base year dollars)."""
        return self.adjust_for_inflation(nominal_amount, year, self.base_year)

    def to_nominal_value(self, real_amount: float, year: int) -> float:
        """Convert real value to nominal value (year dollars)."""
        return self.adjust_for_inflation(real_amount, self.base_year, year)


def current_year_month() -> YearMonth:
    """The current calendar month. Only used at the service/HTTP boundary."""
    return YearMonth.parse(datetime.now().date())
