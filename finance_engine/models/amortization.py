"""
Loan amortization calculations.

This module produces month-by-month payment schedules for fixed-rate loans,
splitting each payment into interest and principal. Rates are annual
percentages (6.5 means 6.5%).
"""

import logging
from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidInputError, NonAmortizingPaymentError
from .time_grid import TimeStepper, YearMonth
from .units import (
    BALANCE_TOLERANCE,
    Money,
    PercentRate,
    percent_to_monthly_rate,
    require_non_negative,
    require_percent_rate,
)

logger = logging.getLogger(__name__)


class LoanTerms(BaseModel):
    """Fixed terms of a loan as supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    balance: Money = Field(..., description="Outstanding principal")
    annual_rate_percent: PercentRate = Field(
        ..., description="Annual interest rate in percent (6.5 = 6.5%)"
    )
    term_months: int = Field(..., gt=0, description="Number of monthly payments")
    monthly_payment: Optional[Money] = Field(
        default=None, description="Actual payment; computed from PMT when omitted"
    )
    extra_payment: Money = Field(
        default=0.0, description="Extra principal paid every month"
    )


class AmortizationPoint(BaseModel):
    """One month of an amortization schedule. Month 0 holds the starting balance."""

    model_config = ConfigDict(frozen=True)

    month_index: int = Field(..., ge=0, description="Months since the schedule start")
    date: YearMonth = Field(..., description="Calendar month of the payment")
    payment: float = Field(..., ge=0, description="Total paid this month")
    principal_portion: float = Field(..., ge=0, description="Principal repaid")
    interest_portion: float = Field(..., description="Interest charged")
    balance: float = Field(..., ge=0, description="Balance after the payment")
    cumulative_interest: float = Field(..., description="Interest paid to date")
    cumulative_principal: float = Field(..., ge=0, description="Principal paid to date")


class AmortizationResult(BaseModel):
    """Complete amortization schedule with totals."""

    model_config = ConfigDict(frozen=True)

    schedule: List[AmortizationPoint] = Field(..., min_length=1)
    monthly_payment: float = Field(..., ge=0, description="Scheduled monthly payment")
    total_interest: float = Field(..., description="Interest paid over the schedule")
    total_principal: float = Field(..., ge=0, description="Principal repaid")
    total_payments: float = Field(..., description="Total dollars paid")
    payoff_date: YearMonth = Field(..., description="Month of the final payment")
    payoff_months: int = Field(..., ge=0, description="Number of payments made")

    @property
    def final_balance(self) -> float:
        return self.schedule[-1].balance


class AmortizationSimulator:
    """Calculator for loan payments and amortization schedules."""

    @staticmethod
    def calculate_pmt(
        principal: float, annual_rate_percent: float, term_months: int
    ) -> float:
        """
        Calculate the level monthly payment using the standard annuity formula.

        Args:
            principal: Loan principal amount
            annual_rate_percent: Annual interest rate as a percentage (6.5 for 6.5%)
            term_months: Loan term in months

        Returns:
            Monthly payment amount (unrounded)

        Raises:
            InvalidInputError: If the term is not positive or the rate is <= -100%
        """
        if term_months <= 0:
            raise InvalidInputError(f"term_months must be positive, got {term_months}")
        require_percent_rate("annual_rate_percent", annual_rate_percent)
        if principal <= 0:
            return 0.0

        monthly_rate = percent_to_monthly_rate(annual_rate_percent)
        if monthly_rate == 0:
            return principal / term_months

        factor = (1 + monthly_rate) ** term_months
        return principal * (monthly_rate * factor) / (factor - 1)

    @staticmethod
    def generate_schedule(
        balance: float,
        annual_rate_percent: float,
        term_months: int,
        start_date: Union[str, date, YearMonth],
        monthly_payment: Optional[float] = None,
        extra_payment: float = 0.0,
    ) -> AmortizationResult:
        """
        Generate a month-by-month amortization schedule.

        The loop stops once the balance falls to 0.01 or below, or after
        ``term_months`` payments, whichever comes first.

        Args:
            balance: Starting balance
            annual_rate_percent: Annual interest rate as a percentage
            term_months: Maximum number of monthly payments
            start_date: Month of the starting balance (month 0)
            monthly_payment: Scheduled payment; PMT over ``term_months`` when None
            extra_payment: Extra principal added to every payment

        Returns:
            AmortizationResult with ``payoff_months + 1`` schedule points

        Raises:
            InvalidInputError: For negative balances or payments, non-positive
                terms, or rates at or below -100%
            NonAmortizingPaymentError: If the payment does not exceed the first
                month's interest
        """
        require_non_negative("balance", balance)
        require_non_negative("extra_payment", extra_payment)
        if monthly_payment is not None:
            require_non_negative("monthly_payment", monthly_payment)
        if term_months <= 0:
            raise InvalidInputError(f"term_months must be positive, got {term_months}")
        require_percent_rate("annual_rate_percent", annual_rate_percent)
        start = YearMonth.parse(start_date)

        if monthly_payment is None:
            monthly_payment = AmortizationSimulator.calculate_pmt(
                balance, annual_rate_percent, term_months
            )
        monthly_rate = percent_to_monthly_rate(annual_rate_percent)
        scheduled = monthly_payment + extra_payment

        # First-month interest bounds every later month.
        first_interest = TimeStepper.step_interest(balance, monthly_rate)
        if balance > BALANCE_TOLERANCE and scheduled - first_interest <= 0:
            raise NonAmortizingPaymentError(scheduled, first_interest)

        schedule = [
            AmortizationPoint(
                month_index=0,
                date=start,
                payment=0.0,
                principal_portion=0.0,
                interest_portion=0.0,
                balance=balance,
                cumulative_interest=0.0,
                cumulative_principal=0.0,
            )
        ]

        remaining = balance
        cumulative_interest = 0.0
        cumulative_principal = 0.0
        month = 0

        while remaining > BALANCE_TOLERANCE and month < term_months:
            month += 1
            interest = TimeStepper.step_interest(remaining, monthly_rate)
            payment = min(scheduled, remaining + interest)
            principal = payment - interest
            remaining = max(0.0, remaining - principal)

            cumulative_interest += interest
            cumulative_principal += principal

            schedule.append(
                AmortizationPoint(
                    month_index=month,
                    date=start.plus_months(month),
                    payment=payment,
                    principal_portion=principal,
                    interest_portion=interest,
                    balance=remaining,
                    cumulative_interest=cumulative_interest,
                    cumulative_principal=cumulative_principal,
                )
            )

        logger.debug(
            "Amortized %.2f at %.3f%% over %d months (cap %d), final balance %.4f",
            balance,
            annual_rate_percent,
            month,
            term_months,
            remaining,
        )

        return AmortizationResult(
            schedule=schedule,
            monthly_payment=monthly_payment,
            total_interest=cumulative_interest,
            total_principal=cumulative_principal,
            total_payments=cumulative_interest + cumulative_principal,
            payoff_date=schedule[-1].date,
            payoff_months=month,
        )

    @staticmethod
    def generate_schedule_for_terms(
        terms: LoanTerms, start_date: Union[str, date, YearMonth]
    ) -> AmortizationResult:
        """Generate a schedule from a validated LoanTerms record."""
        return AmortizationSimulator.generate_schedule(
            terms.balance,
            terms.annual_rate_percent,
            terms.term_months,
            start_date,
            monthly_payment=terms.monthly_payment,
            extra_payment=terms.extra_payment,
        )
