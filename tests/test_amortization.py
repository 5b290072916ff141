"""
Tests for loan amortization calculations.

This module tests payment calculation, schedule generation, zero-rate loans,
extra payments and input validation.
"""

import pytest

from finance_engine.models.amortization import (
    AmortizationResult,
    AmortizationSimulator,
    LoanTerms,
)
from finance_engine.models.errors import InvalidInputError, NonAmortizingPaymentError
from finance_engine.models.time_grid import YearMonth


class TestCalculatePMT:
    """Test cases for the annuity payment formula."""

    def test_standard_thirty_year_loan(self):
        """Test a $300,000 loan at 6.5% over 30 years."""
        payment = AmortizationSimulator.calculate_pmt(300000, 6.5, 360)

        assert payment == pytest.approx(1896.20, abs=0.01)

    def test_zero_rate(self):
        """Test straight-line payment with zero interest."""
        payment = AmortizationSimulator.calculate_pmt(300000, 0.0, 360)

        assert payment == pytest.approx(300000 / 360)

    def test_zero_principal(self):
        """Test that a zero balance needs no payment."""
        assert AmortizationSimulator.calculate_pmt(0, 6.0, 360) == 0.0

    def test_invalid_term_and_rate(self):
        """Test that non-positive terms and rates at -100% are rejected."""
        with pytest.raises(InvalidInputError):
            AmortizationSimulator.calculate_pmt(1000, 5.0, 0)
        with pytest.raises(InvalidInputError):
            AmortizationSimulator.calculate_pmt(1000, -100.0, 12)


class TestGenerateSchedule:
    """Test cases for amortization schedule generation."""

    def test_thirty_year_schedule(self):
        """Test the full schedule of a standard mortgage."""
        result = AmortizationSimulator.generate_schedule(300000, 6.5, 360, "2024-01-01")

        assert isinstance(result, AmortizationResult)
        assert len(result.schedule) == 361
        assert result.monthly_payment == pytest.approx(1896.20, abs=0.01)
        assert result.final_balance <= 0.01
        assert result.payoff_months == 360
        assert str(result.payoff_date) == "2054-01"

    def test_month_zero_is_starting_balance(self):
        """Test the synthetic starting point."""
        result = AmortizationSimulator.generate_schedule(100000, 5.0, 360, "2024-03")

        first = result.schedule[0]
        assert first.month_index == 0
        assert first.balance == 100000
        assert first.payment == 0.0
        assert first.date == YearMonth(year=2024, month=3)
        assert result.schedule[1].date == YearMonth(year=2024, month=4)

    def test_principal_sums_to_balance(self):
        """Test that repaid principal adds up to the starting balance."""
        result = AmortizationSimulator.generate_schedule(250000, 7.25, 180, "2024-01")

        total_principal = sum(p.principal_portion for p in result.schedule)
        assert total_principal == pytest.approx(250000, abs=0.02)
        assert result.total_principal == pytest.approx(250000, abs=0.02)
        assert result.total_payments == pytest.approx(
            result.total_interest + result.total_principal
        )

    def test_balance_non_increasing_and_chronological(self):
        """Test schedule ordering and monotonic balance."""
        result = AmortizationSimulator.generate_schedule(50000, 4.0, 60, "2024-01")

        for prev, curr in zip(result.schedule, result.schedule[1:]):
            assert curr.month_index == prev.month_index + 1
            assert curr.date == prev.date.plus_months(1)
            assert curr.balance <= prev.balance
            assert curr.payment == pytest.approx(
                curr.principal_portion + curr.interest_portion
            )

    def test_zero_rate_straight_line(self):
        """Test that a zero rate repays equal principal with no interest."""
        result = AmortizationSimulator.generate_schedule(12000, 0.0, 12, "2024-01")

        assert len(result.schedule) == 13
        for point in result.schedule[1:]:
            assert point.principal_portion == pytest.approx(1000)
            assert point.interest_portion == 0.0
        assert result.total_interest == 0.0
        assert result.final_balance <= 0.01

    def test_explicit_payment_pays_off_early(self):
        """Test that a higher payment shortens the schedule."""
        result = AmortizationSimulator.generate_schedule(
            100000, 5.0, 360, "2024-01", monthly_payment=1500
        )

        assert result.payoff_months < 360
        assert result.final_balance <= 0.01
        # Last payment only covers what is left
        assert result.schedule[-1].payment < 1500

    def test_extra_payment_reduces_interest(self):
        """Test that extra principal shortens the loan and saves interest."""
        base = AmortizationSimulator.generate_schedule(100000, 5.0, 360, "2024-01")
        extra = AmortizationSimulator.generate_schedule(
            100000, 5.0, 360, "2024-01", extra_payment=100
        )

        assert extra.payoff_months < base.payoff_months
        assert extra.total_interest < base.total_interest

    def test_term_cap_truncates_schedule(self):
        """Test that the term caps the number of payments."""
        result = AmortizationSimulator.generate_schedule(
            300000, 6.5, 300, "2024-01", monthly_payment=1896.20
        )

        assert len(result.schedule) == 301
        assert result.final_balance > 0.01

    def test_zero_balance(self):
        """Test that an already paid-off loan has a single point."""
        result = AmortizationSimulator.generate_schedule(0, 6.0, 360, "2024-01")

        assert len(result.schedule) == 1
        assert result.payoff_months == 0
        assert result.payoff_date == YearMonth(year=2024, month=1)

    def test_idempotent(self):
        """Test that identical inputs give identical schedules."""
        a = AmortizationSimulator.generate_schedule(180000, 5.75, 240, "2024-01")
        b = AmortizationSimulator.generate_schedule(180000, 5.75, 240, "2024-01")

        assert a == b

    def test_late_start_date_completes(self):
        """Test a schedule whose payments run past the 23rd century."""
        result = AmortizationSimulator.generate_schedule(300000, 6.5, 360, "2190-01")

        assert len(result.schedule) == 361
        assert result.payoff_date == YearMonth(year=2220, month=1)
        assert result.final_balance <= 0.01

    def test_from_loan_terms(self):
        """Test generating a schedule from a LoanTerms record."""
        terms = LoanTerms(balance=20000, annual_rate_percent=3.0, term_months=48)
        result = AmortizationSimulator.generate_schedule_for_terms(terms, "2024-01")

        assert len(result.schedule) == 49
        assert result.final_balance <= 0.01


class TestScheduleValidation:
    """Test cases for invalid inputs."""

    def test_negative_balance(self):
        """Test that a negative balance is rejected."""
        with pytest.raises(InvalidInputError):
            AmortizationSimulator.generate_schedule(-1, 5.0, 360, "2024-01")

    def test_non_positive_term(self):
        """Test that a zero term is rejected."""
        with pytest.raises(InvalidInputError):
            AmortizationSimulator.generate_schedule(1000, 5.0, 0, "2024-01")

    def test_rate_at_minus_one_hundred_percent(self):
        """Test that a -100% rate is rejected."""
        with pytest.raises(InvalidInputError):
            AmortizationSimulator.generate_schedule(1000, -100.0, 12, "2024-01")

    def test_payment_equal_to_interest(self):
        """Test that an interest-only payment fails fast."""
        # 12% on 100,000 is 1,000 a month in interest
        with pytest.raises(NonAmortizingPaymentError) as exc_info:
            AmortizationSimulator.generate_schedule(
                100000, 12.0, 360, "2024-01", monthly_payment=1000
            )
        assert exc_info.value.interest == pytest.approx(1000)

    def test_payment_below_interest(self):
        """Test that a payment below interest fails fast."""
        with pytest.raises(NonAmortizingPaymentError):
            AmortizationSimulator.generate_schedule(
                100000, 12.0, 360, "2024-01", monthly_payment=500
            )

    def test_zero_payment_at_zero_rate(self):
        """Test that a zero payment on a zero-rate loan fails fast."""
        with pytest.raises(NonAmortizingPaymentError):
            AmortizationSimulator.generate_schedule(
                1000, 0.0, 12, "2024-01", monthly_payment=0
            )

    def test_loan_terms_model_validation(self):
        """Test that LoanTerms rejects malformed fields."""
        with pytest.raises(ValueError):
            LoanTerms(balance=-5, annual_rate_percent=5.0, term_months=12)
        with pytest.raises(ValueError):
            LoanTerms(balance=5, annual_rate_percent=5.0, term_months=0)
