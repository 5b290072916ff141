"""Projection engines and their data models."""

from .errors import InvalidInputError, NonAmortizingPaymentError, ProjectionError
from .time_grid import InflationAdjuster, TimeStepper, YearMonth, compound
from .amortization import (
    AmortizationPoint,
    AmortizationResult,
    AmortizationSimulator,
    LoanTerms,
)
from .refinance import (
    CurrentLoan,
    ProposedLoan,
    RefinanceComparator,
    RefinanceComparison,
    RefinanceLeg,
)
from .retirement_income import (
    RetirementAccount,
    RetirementIncomeInputs,
    RetirementIncomeResult,
    RetirementYearProjection,
    estimate_ss_benefits,
    plan_withdrawal_order,
    project_retirement_income,
)
from .fire import FireInputs, FireProjectionPoint, FireResult, calculate_fire
from .healthcare import (
    HealthcareInputs,
    HealthcarePhase,
    HealthcareProjection,
    HealthcareResult,
    SensitivityRequest,
    calculate_healthcare_costs,
    calculate_sensitivity,
)

__all__ = [
    "ProjectionError",
    "InvalidInputError",
    "NonAmortizingPaymentError",
    "YearMonth",
    "TimeStepper",
    "InflationAdjuster",
    "compound",
    "LoanTerms",
    "AmortizationPoint",
    "AmortizationResult",
    "AmortizationSimulator",
    "CurrentLoan",
    "ProposedLoan",
    "RefinanceLeg",
    "RefinanceComparison",
    "RefinanceComparator",
    "RetirementAccount",
    "RetirementIncomeInputs",
    "RetirementYearProjection",
    "RetirementIncomeResult",
    "estimate_ss_benefits",
    "plan_withdrawal_order",
    "project_retirement_income",
    "FireInputs",
    "FireProjectionPoint",
    "FireResult",
    "calculate_fire",
    "HealthcareInputs",
    "HealthcarePhase",
    "HealthcareProjection",
    "HealthcareResult",
    "SensitivityRequest",
    "calculate_healthcare_costs",
    "calculate_sensitivity",
]
