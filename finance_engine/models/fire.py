"""
FIRE (Financial Independence, Retire Early) projection.

Simulates month-by-month net-worth growth against an inflation-adjusted
independence target and finds the first month the balance catches up.

All rates here are decimal fractions (0.07 = 7%), unlike the percentage rates
taken by the loan calculators.
"""

import logging
import math
from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidInputError
from .time_grid import TimeStepper, YearMonth
from .units import FractionRate, Money, fraction_to_monthly_rate, require_fraction_rate

logger = logging.getLogger(__name__)

MAX_MONTHS = 720
MONTHS_PAST_FI = 60
SAMPLE_EVERY_MONTHS = 3


class FireInputs(BaseModel):
    """Inputs for a FIRE projection. Rates are fractions, not percentages."""

    model_config = ConfigDict(frozen=True)

    current_net_worth: float = Field(..., description="Invested net worth today")
    annual_income: Money = Field(..., description="Gross annual income")
    annual_expenses: Money = Field(..., description="Current annual expenses")
    annual_savings: Money = Field(..., description="Amount invested each year")
    retirement_annual_expenses: Money = Field(
        ..., description="Annual spending in retirement, today's dollars"
    )
    expected_return_rate: FractionRate = Field(default=0.07)
    withdrawal_rate: float = Field(default=0.04, description="Safe withdrawal rate")
    inflation_rate: FractionRate = Field(default=0.025)


class FireProjectionPoint(BaseModel):
    """Net worth and inflation-adjusted FI target at a sampled month."""

    model_config = ConfigDict(frozen=True)

    month_index: int = Field(..., ge=0)
    date: YearMonth
    net_worth: float
    fi_number: float = Field(..., ge=0)


class FireResult(BaseModel):
    """Outcome of a FIRE projection."""

    model_config = ConfigDict(frozen=True)

    fi_number: float = Field(..., ge=0, description="Target in today's dollars")
    coast_fire_number: float = Field(..., ge=0)
    current_progress: float = Field(..., ge=0, le=1)
    savings_rate: float
    years_to_fi: float = Field(..., description="inf if FI is not reached within the cap")
    fi_reached_month: Optional[int] = Field(default=None, ge=0)
    fi_date: Optional[YearMonth] = None
    monthly_projection: List[FireProjectionPoint] = Field(..., min_length=1)

    @property
    def reaches_fi(self) -> bool:
        return self.fi_reached_month is not None


def _validate_inputs(inputs: FireInputs) -> None:
    if inputs.withdrawal_rate <= 0:
        raise InvalidInputError(
            f"withdrawal_rate must be positive, got {inputs.withdrawal_rate}"
        )
    require_fraction_rate("expected_return_rate", inputs.expected_return_rate)
    require_fraction_rate("inflation_rate", inputs.inflation_rate)


def calculate_fire(
    inputs: FireInputs,
    start_date: Union[str, date, YearMonth],
    max_months: int = MAX_MONTHS,
    months_past_fi: int = MONTHS_PAST_FI,
) -> FireResult:
    """
    Run a monthly FIRE projection.

    Each month the balance grows by the monthly return and then receives the
    monthly savings, and the FI target grows by monthly inflation. The loop
    stops ``months_past_fi`` months after the crossover or at ``max_months``.

    Args:
        inputs: Net worth, savings and rate assumptions
        start_date: Month of the starting point
        max_months: Hard cap on simulated months
        months_past_fi: Months kept after the crossover for chart context

    Returns:
        FireResult with a quarterly-sampled projection

    Raises:
        InvalidInputError: If the withdrawal rate is not positive or a rate is <= -100%
    """
    _validate_inputs(inputs)
    if max_months <= 0:
        raise InvalidInputError(f"max_months must be positive, got {max_months}")
    start = YearMonth.parse(start_date)

    fi_number = inputs.retirement_annual_expenses / inputs.withdrawal_rate
    savings_rate = (
        inputs.annual_savings / inputs.annual_income if inputs.annual_income > 0 else 0.0
    )

    monthly_return = fraction_to_monthly_rate(inputs.expected_return_rate)
    monthly_inflation = fraction_to_monthly_rate(inputs.inflation_rate)
    monthly_savings = inputs.annual_savings / 12

    balance = inputs.current_net_worth
    fi_target = fi_number
    fi_reached_month: Optional[int] = None

    projection = [
        FireProjectionPoint(month_index=0, date=start, net_worth=balance, fi_number=fi_target)
    ]

    for month in range(1, max_months + 1):
        balance = TimeStepper.step(balance, monthly_return, monthly_savings)
        fi_target = TimeStepper.step(fi_target, monthly_inflation)

        if month % SAMPLE_EVERY_MONTHS == 0:
            projection.append(
                FireProjectionPoint(
                    month_index=month,
                    date=start.plus_months(month),
                    net_worth=balance,
                    fi_number=fi_target,
                )
            )

        if fi_reached_month is None and balance >= fi_target:
            fi_reached_month = month

        if fi_reached_month is not None and month >= fi_reached_month + months_past_fi:
            break

    years_to_fi = fi_reached_month / 12 if fi_reached_month is not None else math.inf

    coast_fire_number = 0.0
    if math.isfinite(years_to_fi) and years_to_fi > 0:
        coast_fire_number = fi_number / (1 + inputs.expected_return_rate) ** years_to_fi

    current_progress = 0.0
    if fi_number > 0:
        current_progress = min(max(inputs.current_net_worth / fi_number, 0.0), 1.0)

    logger.debug(
        "FIRE projection: target %.2f reached at month %s", fi_number, fi_reached_month
    )

    return FireResult(
        fi_number=fi_number,
        coast_fire_number=coast_fire_number,
        current_progress=current_progress,
        savings_rate=savings_rate,
        years_to_fi=years_to_fi,
        fi_reached_month=fi_reached_month,
        fi_date=start.plus_months(fi_reached_month) if fi_reached_month is not None else None,
        monthly_projection=projection,
    )
