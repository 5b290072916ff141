"""
Refinance comparison.

Compares the remaining schedule of a current loan against a proposed
refinance of the same balance and derives monthly savings, interest saved
and the break-even point for closing costs.
"""

import logging
import math
from datetime import date
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field

from .amortization import AmortizationPoint, AmortizationResult, AmortizationSimulator
from .time_grid import YearMonth
from .units import Money, PercentRate

logger = logging.getLogger(__name__)


class CurrentLoan(BaseModel):
    """The loan as it stands today."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="Current loan", description="Display name")
    balance: Money = Field(..., description="Current outstanding balance")
    annual_rate_percent: PercentRate = Field(..., description="Annual rate in percent")
    monthly_payment: Money = Field(..., description="Current monthly payment")
    remaining_months: int = Field(..., gt=0, description="Payments left on the loan")


class ProposedLoan(BaseModel):
    """Terms offered for the refinance."""

    model_config = ConfigDict(frozen=True)

    annual_rate_percent: PercentRate = Field(..., description="Annual rate in percent")
    term_months: int = Field(..., gt=0, description="New loan term in months")
    closing_costs: Money = Field(default=0.0, description="Closing costs in dollars")
    points: float = Field(
        default=0.0, ge=0, description="Discount points, percent of balance (1.0 = 1 point)"
    )


class RefinanceLeg(BaseModel):
    """
    Summary of one side of the comparison.

    A current loan whose payment cannot retire the balance within
    ``remaining_months`` ends with ``final_balance`` still owed, so its totals
    cover less principal than the refinanced leg.
    """

    model_config = ConfigDict(frozen=True)

    monthly_payment: float = Field(..., ge=0)
    total_interest: float = Field(..., description="Interest paid over the schedule")
    total_cost: float = Field(..., description="Payments made over the schedule")
    payoff_months: int = Field(..., ge=0)
    final_balance: float = Field(..., ge=0, description="Balance left when the schedule ends")
    schedule: List[AmortizationPoint] = Field(..., min_length=1)

    @classmethod
    def from_result(cls, result: AmortizationResult) -> "RefinanceLeg":
        return cls(
            monthly_payment=result.monthly_payment,
            total_interest=result.total_interest,
            total_cost=result.total_payments,
            payoff_months=result.payoff_months,
            final_balance=result.final_balance,
            schedule=result.schedule,
        )


class RefinanceComparison(BaseModel):
    """Current loan vs proposed refinance."""

    model_config = ConfigDict(frozen=True)

    current: RefinanceLeg
    refinanced: RefinanceLeg
    monthly_savings: float = Field(..., description="Current minus new payment")
    total_interest_saved: float = Field(..., description="Current minus new interest")
    total_cost_difference: float = Field(
        ..., description="Current total cost minus new total cost and closing costs"
    )
    break_even_months: float = Field(
        ..., description="Months to recoup closing costs; inf if never"
    )
    closing_cost_total: float = Field(..., ge=0)

    @property
    def breaks_even(self) -> bool:
        return math.isfinite(self.break_even_months)


class RefinanceComparator:
    """Runs the current and proposed loans side by side."""

    @staticmethod
    def calculate_closing_cost_total(balance: float, proposed: ProposedLoan) -> float:
        """Closing costs plus points, where each point is 1% of the balance."""
        return proposed.closing_costs + proposed.points / 100 * balance

    @staticmethod
    def calculate_break_even_months(
        closing_cost_total: float, monthly_savings: float
    ) -> float:
        """
        Months of payment savings needed to recover closing costs.

        Future savings are not discounted. Returns ``math.inf`` when the new
        payment is not lower than the current one.
        """
        if monthly_savings <= 0:
            return math.inf
        return float(math.ceil(closing_cost_total / monthly_savings))

    @staticmethod
    def compare(
        current: CurrentLoan,
        proposed: ProposedLoan,
        start_date: Union[str, date, YearMonth],
    ) -> RefinanceComparison:
        """
        Compare keeping the current loan against refinancing its balance.

        Args:
            current: Current balance, rate, payment and remaining term
            proposed: Proposed rate, term, closing costs and points
            start_date: Month of the comparison (month 0 on both schedules)

        Returns:
            RefinanceComparison with both schedules and derived savings

        Raises:
            InvalidInputError: For invalid loan terms
            NonAmortizingPaymentError: If the current payment does not cover interest
        """
        current_result = AmortizationSimulator.generate_schedule(
            current.balance,
            current.annual_rate_percent,
            current.remaining_months,
            start_date,
            monthly_payment=current.monthly_payment,
        )
        refinanced_result = AmortizationSimulator.generate_schedule(
            current.balance,
            proposed.annual_rate_percent,
            proposed.term_months,
            start_date,
        )

        closing_cost_total = RefinanceComparator.calculate_closing_cost_total(
            current.balance, proposed
        )
        monthly_savings = current_result.monthly_payment - refinanced_result.monthly_payment
        break_even_months = RefinanceComparator.calculate_break_even_months(
            closing_cost_total, monthly_savings
        )

        comparison = RefinanceComparison(
            current=RefinanceLeg.from_result(current_result),
            refinanced=RefinanceLeg.from_result(refinanced_result),
            monthly_savings=monthly_savings,
            total_interest_saved=(
                current_result.total_interest - refinanced_result.total_interest
            ),
            total_cost_difference=current_result.total_payments
            - (refinanced_result.total_payments + closing_cost_total),
            break_even_months=break_even_months,
            closing_cost_total=closing_cost_total,
        )

        logger.debug(
            "Refinance of %s: savings %.2f/month, break-even %s months",
            current.name,
            monthly_savings,
            break_even_months,
        )
        return comparison
