"""
Retirement income sequencing.

This module steps through retirement one year at a time, combining Social
Security and pension income with account withdrawals drawn in a tax-efficient
order (taxable, then traditional, then Roth) to meet an annual income target.

Per-year ordering is fixed: balances left over from the prior year grow first,
then guaranteed income is counted, then the remaining gap (or the required
minimum distribution, whichever is larger) is withdrawn. When the accounts run
dry the year's income falls short of the target; that shortfall is reported in
the projection rather than raised.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidInputError
from .time_grid import InflationAdjuster, compound
from .units import BALANCE_TOLERANCE, FractionRate, Money

logger = logging.getLogger(__name__)

FULL_RETIREMENT_AGE = 67
EARLIEST_CLAIM_AGE = 62
LATEST_CLAIM_AGE = 70
ESTIMATE_CLAIM_AGES = (62, 67, 70)

RMD_START_AGE = 73
RMD_START_FACTOR = 26.5

# Simplified flat rates for the tax estimate
TRADITIONAL_WITHDRAWAL_TAX_RATE = 0.15
SOCIAL_SECURITY_TAX_RATE = 0.15

PRIORITY_TAXABLE = 1
PRIORITY_TRADITIONAL = 2
PRIORITY_ROTH = 3

_WITHDRAWAL_RATIONALE: Dict[str, Tuple[int, str]] = {
    "BROKERAGE": (
        PRIORITY_TAXABLE,
        "Taxable brokerage accounts are withdrawn first because long-term gains "
        "are taxed at capital-gains rates, leaving tax-advantaged accounts to grow.",
    ),
    "TAXABLE": (
        PRIORITY_TAXABLE,
        "Taxable accounts are withdrawn first to use lower capital-gains rates "
        "while tax-advantaged accounts keep growing.",
    ),
    "401K": (
        PRIORITY_TRADITIONAL,
        "Traditional 401(k) withdrawals are ordinary income; drawn second to "
        "manage taxable income while Roth accounts grow tax-free.",
    ),
    "TRADITIONAL_IRA": (
        PRIORITY_TRADITIONAL,
        "Traditional IRA withdrawals are ordinary income; drawn after taxable "
        "accounts to control the yearly tax bracket.",
    ),
    "IRA": (
        PRIORITY_TRADITIONAL,
        "Traditional IRA withdrawals are ordinary income; drawn after taxable "
        "accounts to control the yearly tax bracket.",
    ),
    "ROTH_401K": (
        PRIORITY_ROTH,
        "Roth 401(k) withdrawals are tax-free; drawn last to maximize years of "
        "tax-free compounding.",
    ),
    "ROTH_IRA": (
        PRIORITY_ROTH,
        "Roth IRA withdrawals are tax-free; drawn last to maximize tax-free "
        "compounding and leave a tax-free legacy.",
    ),
    "ROTH": (
        PRIORITY_ROTH,
        "Roth accounts are withdrawn last because qualified distributions are "
        "tax-free.",
    ),
}

_DEFAULT_RATIONALE = (
    PRIORITY_TRADITIONAL,
    "Withdrawn in the standard order. Consult a tax advisor for account-specific guidance.",
)


def is_traditional(account_type: str) -> bool:
    """Pre-tax accounts subject to ordinary income tax and RMDs."""
    upper = account_type.upper()
    return upper in ("401K", "TRADITIONAL_IRA", "IRA") or "TRADITIONAL" in upper


def is_roth(account_type: str) -> bool:
    upper = account_type.upper()
    return upper in ("ROTH", "ROTH_IRA", "ROTH_401K")


def withdrawal_priority(account_type: str) -> int:
    if is_roth(account_type):
        return PRIORITY_ROTH
    if is_traditional(account_type):
        return PRIORITY_TRADITIONAL
    return PRIORITY_TAXABLE


class RetirementAccount(BaseModel):
    """An investment account drawn on in retirement."""

    model_config = ConfigDict(frozen=True)

    account_type: str = Field(..., min_length=1, description="BROKERAGE, 401K, ROTH_IRA, ...")
    balance: Money = Field(..., description="Balance today")
    return_rate: FractionRate = Field(
        default=0.05, description="Annual return as a fraction (0.07 = 7%)"
    )


class SSBenefitEstimate(BaseModel):
    """Social Security benefit for a given claim age, rounded to whole dollars."""

    model_config = ConfigDict(frozen=True)

    claim_age: int
    monthly_benefit: float = Field(..., ge=0)
    annual_benefit: float = Field(..., ge=0)
    cumulative_by_80: float = Field(..., ge=0)
    cumulative_by_85: float = Field(..., ge=0)
    cumulative_by_90: float = Field(..., ge=0)


class WithdrawalRecommendation(BaseModel):
    """Position of an account type in the withdrawal order."""

    model_config = ConfigDict(frozen=True)

    order: int = Field(..., ge=1)
    account_type: str
    rationale: str


class RetirementIncomeInputs(BaseModel):
    """Household inputs for a retirement income projection."""

    model_config = ConfigDict(frozen=True)

    current_age: int = Field(..., ge=0, le=120)
    retirement_age: int = Field(..., ge=0, le=120)
    end_age: int = Field(default=95, ge=0, le=120, description="Last simulated age")
    target_income: Money = Field(..., description="Annual spending target")
    target_growth_rate: FractionRate = Field(
        default=0.0, description="Annual growth of the spending target (fraction)"
    )
    ss_monthly_benefit: Money = Field(
        default=0.0, description="Monthly Social Security benefit at full retirement age"
    )
    ss_claim_age: int = Field(
        default=FULL_RETIREMENT_AGE, ge=EARLIEST_CLAIM_AGE, le=LATEST_CLAIM_AGE
    )
    pension_annual: Money = Field(default=0.0, description="Annual pension income")
    pension_start_age: Optional[int] = Field(
        default=None, ge=0, le=120, description="Defaults to the retirement age"
    )
    ss_schedule: Optional[Dict[int, float]] = Field(
        default=None, description="Annual Social Security income by age, overrides the estimate"
    )
    pension_schedule: Optional[Dict[int, float]] = Field(
        default=None, description="Annual pension income by age, overrides pension_annual"
    )
    accounts: List[RetirementAccount] = Field(default_factory=list)


class RetirementYearProjection(BaseModel):
    """One simulated year of retirement income."""

    model_config = ConfigDict(frozen=True)

    age: int
    year: int
    ss_income: float = Field(..., ge=0)
    pension_income: float = Field(..., ge=0)
    account_withdrawals: float = Field(..., ge=0)
    total_income: float = Field(..., ge=0)
    target_income: float = Field(..., ge=0)
    shortfall: float = Field(..., ge=0, description="Target minus total income, if positive")
    rmd_amount: float = Field(..., ge=0, description="Required minimum distribution")
    rmd_reinvested: float = Field(
        ..., ge=0, description="RMD in excess of spending moved to a taxable account"
    )
    estimated_taxes: float = Field(..., ge=0)
    net_income: float
    remaining_balance: float = Field(..., ge=0, description="Account balances at year end")


class RetirementIncomeResult(BaseModel):
    """Complete retirement income projection."""

    model_config = ConfigDict(frozen=True)

    ss_benefits: List[SSBenefitEstimate]
    withdrawal_order: List[WithdrawalRecommendation]
    projection: List[RetirementYearProjection] = Field(..., min_length=1)
    total_lifetime_income: float = Field(..., description="Sum of net income")
    first_shortfall_age: Optional[int] = Field(
        default=None, description="First age the income target was not met"
    )
    depletion_age: Optional[int] = Field(
        default=None, description="Age at which invested balances ran out"
    )

    @property
    def has_shortfall(self) -> bool:
        return self.first_shortfall_age is not None


def adjusted_ss_monthly_benefit(monthly_benefit_at_fra: float, claim_age: int) -> float:
    """
    Adjust a full-retirement-age benefit for claiming early or late.

    Early claims lose 5/9 of 1% per month for the first 36 months and 5/12 of
    1% per month beyond that. Delayed claims earn 2/3 of 1% per month.
    """
    if claim_age < FULL_RETIREMENT_AGE:
        months_early = (FULL_RETIREMENT_AGE - claim_age) * 12
        first_36 = min(months_early, 36)
        beyond_36 = max(months_early - 36, 0)
        reduction = first_36 * (5 / 9 / 100) + beyond_36 * (5 / 12 / 100)
        return monthly_benefit_at_fra * (1 - reduction)
    if claim_age > FULL_RETIREMENT_AGE:
        months_late = (claim_age - FULL_RETIREMENT_AGE) * 12
        return monthly_benefit_at_fra * (1 + months_late * (2 / 3 / 100))
    return monthly_benefit_at_fra


def estimate_ss_benefits(monthly_benefit_at_fra: float) -> List[SSBenefitEstimate]:
    """
    Estimate Social Security benefits for claiming at 62, 67 and 70.

    Args:
        monthly_benefit_at_fra: Primary insurance amount at full retirement age (67)

    Returns:
        One estimate per claim age with cumulative totals by ages 80, 85 and 90
    """
    if monthly_benefit_at_fra < 0:
        raise InvalidInputError("monthly_benefit_at_fra must be non-negative")

    estimates = []
    for claim_age in ESTIMATE_CLAIM_AGES:
        monthly = adjusted_ss_monthly_benefit(monthly_benefit_at_fra, claim_age)
        annual = monthly * 12

        def cumulative_by(target_age: int) -> float:
            return annual * max(target_age - claim_age, 0)

        estimates.append(
            SSBenefitEstimate(
                claim_age=claim_age,
                monthly_benefit=round(monthly),
                annual_benefit=round(annual),
                cumulative_by_80=round(cumulative_by(80)),
                cumulative_by_85=round(cumulative_by(85)),
                cumulative_by_90=round(cumulative_by(90)),
            )
        )
    return estimates


def plan_withdrawal_order(account_types: List[str]) -> List[WithdrawalRecommendation]:
    """
    Order account types for tax-efficient withdrawals.

    Duplicate types are collapsed and types sharing a priority share an order
    number; order numbers are consecutive starting at 1.
    """
    unique = list(dict.fromkeys(account_types))
    ranked = sorted(
        (
            (_WITHDRAWAL_RATIONALE.get(t.upper(), _DEFAULT_RATIONALE), t)
            for t in unique
        ),
        key=lambda item: item[0][0],
    )

    recommendations = []
    order = 0
    last_priority = None
    for (priority, rationale), account_type in ranked:
        if priority != last_priority:
            order += 1
            last_priority = priority
        recommendations.append(
            WithdrawalRecommendation(
                order=order, account_type=account_type, rationale=rationale
            )
        )
    return recommendations


def rmd_divisor(age: int) -> Optional[float]:
    """Simplified Uniform Lifetime Table divisor; None before RMDs start."""
    if age < RMD_START_AGE:
        return None
    return max(RMD_START_FACTOR - (age - RMD_START_AGE), 1.0)


def _validate_inputs(inputs: RetirementIncomeInputs) -> None:
    if inputs.retirement_age < inputs.current_age:
        raise InvalidInputError(
            f"retirement_age ({inputs.retirement_age}) must be >= current_age "
            f"({inputs.current_age})"
        )
    if inputs.end_age < inputs.retirement_age:
        raise InvalidInputError(
            f"end_age ({inputs.end_age}) must be >= retirement_age ({inputs.retirement_age})"
        )
    for schedule_name in ("ss_schedule", "pension_schedule"):
        schedule = getattr(inputs, schedule_name)
        if schedule and any(amount < 0 for amount in schedule.values()):
            raise InvalidInputError(f"{schedule_name} amounts must be non-negative")


def _withdraw(
    balances: NDArray[np.float64], indices: List[int], amount: float
) -> Tuple[float, NDArray[np.float64]]:
    """
    Withdraw up to ``amount`` from the accounts at ``indices``, in order.

    Returns:
        Tuple of (amount actually withdrawn, per-account withdrawals)
    """
    taken = np.zeros_like(balances)
    remaining = amount
    for i in indices:
        if remaining <= 0:
            break
        if balances[i] <= 0:
            continue
        draw = min(remaining, balances[i])
        balances[i] -= draw
        taken[i] += draw
        remaining -= draw
    return amount - max(remaining, 0.0), taken


def project_retirement_income(
    inputs: RetirementIncomeInputs, as_of_year: int
) -> RetirementIncomeResult:
    """
    Project retirement income year by year from retirement age to end age.

    Args:
        inputs: Household ages, income sources, accounts and spending target
        as_of_year: Calendar year in which the household is ``current_age``

    Returns:
        RetirementIncomeResult with one row per simulated year

    Raises:
        InvalidInputError: If the ages are out of order or amounts are negative
    """
    _validate_inputs(inputs)

    account_types = [a.account_type for a in inputs.accounts]
    withdrawal_order = plan_withdrawal_order(
        account_types or ["BROKERAGE", "401K", "ROTH_IRA"]
    )
    ss_benefits = estimate_ss_benefits(inputs.ss_monthly_benefit)

    # Stable sort keeps the caller's order within a priority tier
    accounts = sorted(inputs.accounts, key=lambda a: withdrawal_priority(a.account_type))
    types = [a.account_type for a in accounts]
    rates = np.array([a.return_rate for a in accounts], dtype=np.float64)
    years_to_retirement = inputs.retirement_age - inputs.current_age
    balances = np.array(
        [compound(a.balance, a.return_rate, years_to_retirement) for a in accounts],
        dtype=np.float64,
    )

    spend_order = list(range(len(accounts)))
    traditional_idx = [i for i, t in enumerate(types) if is_traditional(t)]
    taxable_idx = [i for i, t in enumerate(types) if withdrawal_priority(t) == PRIORITY_TAXABLE]
    if traditional_idx and not taxable_idx:
        # Reinvested RMDs need a taxable home
        types.append("TAXABLE")
        rates = np.append(rates, rates[traditional_idx[0]])
        balances = np.append(balances, 0.0)
        taxable_idx = [len(types) - 1]
        spend_order = taxable_idx + spend_order

    ss_annual = adjusted_ss_monthly_benefit(inputs.ss_monthly_benefit, inputs.ss_claim_age) * 12
    pension_start = (
        inputs.pension_start_age
        if inputs.pension_start_age is not None
        else inputs.retirement_age
    )
    retirement_year = as_of_year + years_to_retirement
    spending = InflationAdjuster(
        inflation_rate=inputs.target_growth_rate, base_year=retirement_year
    )

    projection: List[RetirementYearProjection] = []
    first_shortfall_age: Optional[int] = None
    depletion_age: Optional[int] = None

    for offset in range(inputs.end_age - inputs.retirement_age + 1):
        age = inputs.retirement_age + offset

        # 1. Growth on balances carried over from last year
        if offset > 0:
            balances = np.where(balances > 0, balances * (1 + rates), balances)
        start_balance = float(balances.sum())

        # 2. Guaranteed income
        if inputs.ss_schedule is not None:
            ss_income = float(inputs.ss_schedule.get(age, 0.0))
        else:
            ss_income = ss_annual if age >= inputs.ss_claim_age else 0.0
        if inputs.pension_schedule is not None:
            pension_income = float(inputs.pension_schedule.get(age, 0.0))
        else:
            pension_income = inputs.pension_annual if age >= pension_start else 0.0

        # 3. Required minimum distribution from traditional accounts
        divisor = rmd_divisor(age)
        rmd_amount = 0.0
        if divisor is not None and traditional_idx:
            rmd_amount = float(balances[traditional_idx].clip(min=0).sum() / divisor)

        # 4. Spending gap, drawn in priority order
        target = spending.to_nominal_value(inputs.target_income, retirement_year + offset)
        gap = max(target - ss_income - pension_income, 0.0)
        withdrawn, taken = _withdraw(balances, spend_order, gap)

        # 5. RMD not already covered by spending is moved to a taxable account
        rmd_reinvested = 0.0
        traditional_taken = float(taken[traditional_idx].sum()) if traditional_idx else 0.0
        if rmd_amount > traditional_taken:
            rmd_reinvested, _ = _withdraw(
                balances, traditional_idx, rmd_amount - traditional_taken
            )
            balances[taxable_idx[0]] += rmd_reinvested

        total_income = ss_income + pension_income + withdrawn
        shortfall = max(target - total_income, 0.0)
        estimated_taxes = (
            (traditional_taken + rmd_reinvested) * TRADITIONAL_WITHDRAWAL_TAX_RATE
            + ss_income * SOCIAL_SECURITY_TAX_RATE
        )
        remaining_balance = float(balances.clip(min=0).sum())

        if first_shortfall_age is None and shortfall > BALANCE_TOLERANCE:
            first_shortfall_age = age
        if (
            depletion_age is None
            and start_balance > BALANCE_TOLERANCE
            and remaining_balance <= BALANCE_TOLERANCE
        ):
            depletion_age = age

        projection.append(
            RetirementYearProjection(
                age=age,
                year=retirement_year + offset,
                ss_income=ss_income,
                pension_income=pension_income,
                account_withdrawals=withdrawn,
                total_income=total_income,
                target_income=target,
                shortfall=shortfall,
                rmd_amount=rmd_amount,
                rmd_reinvested=rmd_reinvested,
                estimated_taxes=estimated_taxes,
                net_income=total_income - estimated_taxes,
                remaining_balance=remaining_balance,
            )
        )

    total_lifetime_income = float(np.sum([p.net_income for p in projection]))

    logger.debug(
        "Projected retirement income for ages %d-%d; first shortfall at %s",
        inputs.retirement_age,
        inputs.end_age,
        first_shortfall_age,
    )

    return RetirementIncomeResult(
        ss_benefits=ss_benefits,
        withdrawal_order=withdrawal_order,
        projection=projection,
        total_lifetime_income=total_lifetime_income,
        first_shortfall_age=first_shortfall_age,
        depletion_age=depletion_age,
    )
