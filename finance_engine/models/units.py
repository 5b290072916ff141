"""
Rate and money unit conventions.

Two rate conventions coexist at the engine boundary:

- ``PercentRate``: annual percentage, e.g. ``6.5`` for 6.5%. Used by the
  amortization, refinance and healthcare projectors.
- ``FractionRate``: annual decimal fraction, e.g. ``0.065``. Used by the FIRE
  projector and per-account return rates in retirement income sequencing.

Callers are responsible for passing the right unit; nothing here guesses.
"""

from typing import Annotated

from pydantic import Field

from .errors import InvalidInputError

# Rates at or below -100% would flip the sign of a balance when compounded.
PercentRate = Annotated[float, Field(gt=-100, description="Annual rate in percent")]
FractionRate = Annotated[float, Field(gt=-1, description="Annual rate as a fraction")]
Money = Annotated[float, Field(ge=0, description="Non-negative dollar amount")]

BALANCE_TOLERANCE = 0.01


def percent_to_monthly_rate(annual_rate_percent: float) -> float:
    """Convert an annual percentage (6.5) to a monthly fraction (0.0054166...)."""
    return annual_rate_percent / 1200


def percent_to_fraction(rate_percent: float) -> float:
    """Convert a percentage (5.0) to a fraction (0.05)."""
    return rate_percent / 100


def fraction_to_monthly_rate(annual_rate: float) -> float:
    """Convert an annual fraction (0.07) to a simple monthly fraction."""
    return annual_rate / 12


def require_percent_rate(name: str, value: float) -> float:
    """Reject percentage rates at or below -100%."""
    if value <= -100:
        raise InvalidInputError(f"{name} must be greater than -100%, got {value}")
    return value


def require_fraction_rate(name: str, value: float) -> float:
    """Reject fractional rates at or below -1."""
    if value <= -1:
        raise InvalidInputError(f"{name} must be greater than -1.0, got {value}")
    return value


def require_non_negative(name: str, value: float) -> float:
    """Reject negative amounts."""
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}")
    return value
