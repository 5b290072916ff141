"""
Lifetime healthcare cost projection.

Models annual healthcare costs across three phases of life and how far an
HSA balance stretches against them:

1. Pre-retirement: employer-subsidized premiums and out-of-pocket costs
2. Early retirement: marketplace coverage until Medicare eligibility
3. Medicare: Part B, Part D and a supplement plan

Rates are annual percentages (5.0 = 5%), matching the loan calculators.
"""

import logging
from enum import Enum
from typing import List, Literal, Tuple, get_args

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidInputError
from .time_grid import InflationAdjuster, TimeStepper, compound
from .units import (
    Money,
    PercentRate,
    percent_to_fraction,
    require_non_negative,
    require_percent_rate,
)

logger = logging.getLogger(__name__)

# 2024 Medicare Part B base premium (monthly)
MEDICARE_PART_B_BASE = 174.70
# Average Part D premium (monthly)
MEDICARE_PART_D_AVG = 55.0
# Average Medigap/supplement premium (monthly)
MEDIGAP_AVG = 200.0

# Average marketplace premium for the 60-64 age bracket (monthly)
MARKETPLACE_BASE_MONTHLY_PREMIUM = 600.0
MARKETPLACE_AGE_STEP = 0.05

EARLY_RETIREMENT_OOP_MULTIPLIER = 1.5
MEDICARE_OOP_MULTIPLIER = 0.7


class HealthcarePhase(str, Enum):
    """Coverage phase, determined by age alone."""

    PRE_RETIREMENT = "PRE_RETIREMENT"
    EARLY_RETIREMENT = "EARLY_RETIREMENT"
    MEDICARE = "MEDICARE"


PHASE_ORDER = (
    HealthcarePhase.PRE_RETIREMENT,
    HealthcarePhase.EARLY_RETIREMENT,
    HealthcarePhase.MEDICARE,
)


class HealthcareInputs(BaseModel):
    """Inputs for a healthcare cost projection. Rates are percentages."""

    model_config = ConfigDict(frozen=True)

    current_age: int = Field(..., ge=0, le=120)
    retirement_age: int = Field(..., ge=0, le=120)
    medicare_age: int = Field(default=65, ge=0, le=120)
    life_expectancy: int = Field(..., ge=0, le=120)
    current_annual_premium: Money = Field(..., description="Employee share of premiums")
    annual_out_of_pocket: Money = Field(..., description="Expected yearly out-of-pocket")
    hsa_balance: Money = Field(default=0.0)
    hsa_annual_contribution: Money = Field(default=0.0)
    healthcare_inflation: PercentRate = Field(default=5.0)
    general_inflation: PercentRate = Field(default=2.5)
    investment_return: PercentRate = Field(default=6.0)


class HealthcareProjection(BaseModel):
    """One projected year of healthcare costs."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=0, description="Years from today")
    age: int
    phase: HealthcarePhase
    premium: float = Field(..., ge=0)
    out_of_pocket: float = Field(..., ge=0)
    total_cost: float = Field(..., ge=0)
    hsa_balance: float = Field(..., ge=0, description="HSA balance after this year's costs")
    hsa_contribution: float = Field(..., ge=0)
    net_cost_after_hsa: float = Field(..., ge=0)
    cumulative_cost: float = Field(..., ge=0)


class HealthcareResult(BaseModel):
    """Lifetime healthcare cost summary."""

    model_config = ConfigDict(frozen=True)

    projections: List[HealthcareProjection] = Field(..., min_length=1)
    total_lifetime_cost: float = Field(..., ge=0)
    pre_retirement_cost: float = Field(..., ge=0)
    early_retirement_cost: float = Field(..., ge=0)
    medicare_cost: float = Field(..., ge=0)
    hsa_projected_balance: float = Field(..., ge=0)
    hsa_coverage_years: int = Field(..., ge=0)
    monthly_budget_needed: float = Field(..., ge=0)


SensitivityVariable = Literal["healthcare_inflation", "investment_return"]


class SensitivityRequest(BaseModel):
    """Which assumption to vary and the percentage values to try."""

    model_config = ConfigDict(frozen=True)

    variable: SensitivityVariable
    values: List[PercentRate] = Field(..., min_length=1)


class SensitivityPoint(BaseModel):
    """Lifetime cost under one value of the varied assumption."""

    model_config = ConfigDict(frozen=True)

    value: float
    total_cost: float
    hsa_coverage_years: int


def determine_phase(age: int, retirement_age: int, medicare_age: int) -> HealthcarePhase:
    """Coverage phase for an age. Employer coverage continues while still working."""
    if age < retirement_age:
        return HealthcarePhase.PRE_RETIREMENT
    if age < medicare_age:
        return HealthcarePhase.EARLY_RETIREMENT
    return HealthcarePhase.MEDICARE


def _phase_costs(
    phase: HealthcarePhase,
    age: int,
    year: int,
    inputs: HealthcareInputs,
    general_prices: InflationAdjuster,
) -> Tuple[float, float]:
    """Premium and out-of-pocket cost for one year of the given phase."""
    healthcare_inflation = percent_to_fraction(inputs.healthcare_inflation)
    out_of_pocket = compound(inputs.annual_out_of_pocket, healthcare_inflation, year)

    if phase is HealthcarePhase.PRE_RETIREMENT:
        premium = compound(inputs.current_annual_premium, healthcare_inflation, year)
        return premium, out_of_pocket

    if phase is HealthcarePhase.EARLY_RETIREMENT:
        base_monthly = MARKETPLACE_BASE_MONTHLY_PREMIUM * (
            1 + (age - inputs.retirement_age) * MARKETPLACE_AGE_STEP
        )
        premium = compound(base_monthly * 12, healthcare_inflation, year)
        return premium, out_of_pocket * EARLY_RETIREMENT_OOP_MULTIPLIER

    # Medicare premiums track general rather than medical inflation
    medicare_base = (MEDICARE_PART_B_BASE + MEDICARE_PART_D_AVG + MEDIGAP_AVG) * 12
    premium = general_prices.to_nominal_value(medicare_base, year)
    return premium, out_of_pocket * MEDICARE_OOP_MULTIPLIER


def _validate_inputs(inputs: HealthcareInputs) -> None:
    if inputs.life_expectancy < inputs.current_age:
        raise InvalidInputError(
            f"life_expectancy ({inputs.life_expectancy}) must be >= current_age "
            f"({inputs.current_age})"
        )
    for name in ("healthcare_inflation", "general_inflation", "investment_return"):
        require_percent_rate(name, getattr(inputs, name))
    for name in (
        "current_annual_premium",
        "annual_out_of_pocket",
        "hsa_balance",
        "hsa_annual_contribution",
    ):
        require_non_negative(name, getattr(inputs, name))


def calculate_healthcare_costs(inputs: HealthcareInputs) -> HealthcareResult:
    """
    Project healthcare costs for every year from current age to life expectancy.

    Each year the HSA first receives the year's contribution (only while
    working and before Medicare), then grows at the investment return, then
    absorbs as much of the year's cost as it can.

    Args:
        inputs: Ages, current costs, HSA position and rate assumptions

    Returns:
        HealthcareResult with one projection row per year

    Raises:
        InvalidInputError: If ages are out of order or amounts are negative
    """
    _validate_inputs(inputs)

    # Year 0 is today; later years are expressed in nominal dollars
    general_prices = InflationAdjuster(
        inflation_rate=percent_to_fraction(inputs.general_inflation), base_year=0
    )
    investment_return = percent_to_fraction(inputs.investment_return)

    projections: List[HealthcareProjection] = []
    hsa_balance = inputs.hsa_balance
    cumulative_cost = 0.0
    hsa_coverage_years = 0

    for year in range(inputs.life_expectancy - inputs.current_age + 1):
        age = inputs.current_age + year
        phase = determine_phase(age, inputs.retirement_age, inputs.medicare_age)
        premium, out_of_pocket = _phase_costs(
            phase, age, year, inputs, general_prices
        )
        total_cost = premium + out_of_pocket

        hsa_contribution = 0.0
        if age < inputs.medicare_age and age < inputs.retirement_age:
            hsa_contribution = general_prices.to_nominal_value(
                inputs.hsa_annual_contribution, year
            )

        hsa_balance = TimeStepper.grow(hsa_balance + hsa_contribution, investment_return)

        if hsa_balance >= total_cost:
            hsa_balance -= total_cost
            net_cost_after_hsa = 0.0
            hsa_coverage_years += 1
        else:
            net_cost_after_hsa = total_cost - max(hsa_balance, 0.0)
            hsa_balance = 0.0

        cumulative_cost += net_cost_after_hsa

        projections.append(
            HealthcareProjection(
                year=year,
                age=age,
                phase=phase,
                premium=premium,
                out_of_pocket=out_of_pocket,
                total_cost=total_cost,
                hsa_balance=hsa_balance,
                hsa_contribution=hsa_contribution,
                net_cost_after_hsa=net_cost_after_hsa,
                cumulative_cost=cumulative_cost,
            )
        )

    net_costs = np.array([p.net_cost_after_hsa for p in projections], dtype=np.float64)
    phases = np.array([p.phase.value for p in projections])
    phase_totals = {
        phase: float(net_costs[phases == phase.value].sum()) for phase in PHASE_ORDER
    }

    retirement_years = inputs.life_expectancy - inputs.retirement_age
    retirement_total = (
        phase_totals[HealthcarePhase.EARLY_RETIREMENT]
        + phase_totals[HealthcarePhase.MEDICARE]
    )
    monthly_budget_needed = (
        retirement_total / retirement_years / 12 if retirement_years > 0 else 0.0
    )

    logger.debug(
        "Healthcare projection ages %d-%d: lifetime net cost %.2f, HSA covered %d years",
        inputs.current_age,
        inputs.life_expectancy,
        cumulative_cost,
        hsa_coverage_years,
    )

    return HealthcareResult(
        projections=projections,
        total_lifetime_cost=cumulative_cost,
        pre_retirement_cost=phase_totals[HealthcarePhase.PRE_RETIREMENT],
        early_retirement_cost=phase_totals[HealthcarePhase.EARLY_RETIREMENT],
        medicare_cost=phase_totals[HealthcarePhase.MEDICARE],
        hsa_projected_balance=hsa_balance,
        hsa_coverage_years=hsa_coverage_years,
        monthly_budget_needed=monthly_budget_needed,
    )


def calculate_sensitivity(
    inputs: HealthcareInputs,
    variable: SensitivityVariable,
    values: List[float],
) -> List[SensitivityPoint]:
    """
    Rerun the projection with one assumption varied.

    Args:
        inputs: Base inputs
        variable: Which percentage assumption to vary
        values: Values to substitute, in percent

    Returns:
        One SensitivityPoint per value, in the order given

    Raises:
        InvalidInputError: If the variable is not supported
        pydantic.ValidationError: If a value is not a valid percentage rate
    """
    if variable not in get_args(SensitivityVariable):
        raise InvalidInputError(f"Unsupported sensitivity variable: {variable}")

    base = inputs.model_dump()
    points = []
    for value in values:
        varied = HealthcareInputs.model_validate({**base, variable: value})
        result = calculate_healthcare_costs(varied)
        points.append(
            SensitivityPoint(
                value=value,
                total_cost=result.total_lifetime_cost,
                hsa_coverage_years=result.hsa_coverage_years,
            )
        )
    return points
