"""
Projection service for running financial projections from plain payloads.

This service maps a projection type and a JSON-style payload onto the matching
pure simulator, injects the "now" date when the caller did not supply one, and
returns JSON-ready results.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from finance_engine.config import Settings
from finance_engine.models.amortization import AmortizationSimulator, LoanTerms
from finance_engine.models.errors import InvalidInputError
from finance_engine.models.fire import (
    MAX_MONTHS,
    MONTHS_PAST_FI,
    FireInputs,
    calculate_fire,
)
from finance_engine.models.healthcare import (
    HealthcareInputs,
    HealthcareResult,
    SensitivityPoint,
    SensitivityRequest,
    calculate_healthcare_costs,
    calculate_sensitivity,
)
from finance_engine.models.refinance import (
    CurrentLoan,
    ProposedLoan,
    RefinanceComparator,
)
from finance_engine.models.retirement_income import (
    RetirementIncomeInputs,
    project_retirement_income,
)
from finance_engine.models.time_grid import YearMonth, current_year_month

logger = logging.getLogger(__name__)

PROJECTION_TYPES = ("amortization", "refinance", "retirement_income", "fire", "healthcare")


class UnknownProjectionError(LookupError):
    """Raised when a projection type is not registered."""


def to_json_ready(value: Any) -> Any:
    """Dump models to plain data, rendering infinite or NaN floats as None."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: to_json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_ready(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class HealthcareWithSensitivity(BaseModel):
    """Healthcare result bundled with a sensitivity sweep."""

    result: HealthcareResult
    sensitivity: List[SensitivityPoint]


class ProjectionService:
    """Service for dispatching projection requests to the simulators."""

    def __init__(
        self,
        default_end_age: int = 95,
        fire_max_months: int = MAX_MONTHS,
        fire_months_past_fi: int = MONTHS_PAST_FI,
    ) -> None:
        """Initialize the projection service.

        Args:
            default_end_age: Last simulated age for retirement income when not given
            fire_max_months: Iteration cap for the FIRE projection
            fire_months_past_fi: Months simulated past the FI crossover
        """
        self.logger = logging.getLogger(__name__)
        self.default_end_age = default_end_age
        self.fire_max_months = fire_max_months
        self.fire_months_past_fi = fire_months_past_fi
        self._handlers: Dict[str, Callable[[Dict[str, Any], YearMonth], BaseModel]] = {
            "amortization": self._run_amortization,
            "refinance": self._run_refinance,
            "retirement_income": self._run_retirement_income,
            "fire": self._run_fire,
            "healthcare": self._run_healthcare,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProjectionService":
        """Build a service using the configured projection defaults."""
        return cls(
            default_end_age=settings.default_end_age,
            fire_max_months=settings.fire_max_months,
            fire_months_past_fi=settings.fire_months_past_fi,
        )

    def run_projection(
        self,
        projection_type: str,
        payload: Dict[str, Any],
        as_of: Optional[YearMonth] = None,
    ) -> Dict[str, Any]:
        """Run a projection and return its JSON-ready result.

        Args:
            projection_type: One of PROJECTION_TYPES
            payload: Inputs for the projection
            as_of: Month treated as "now" when the payload has no start date

        Returns:
            Dictionary containing the projection result

        Raises:
            UnknownProjectionError: If the projection type is not supported
            InvalidInputError: If the inputs are out of range
            NonAmortizingPaymentError: If a loan payment never reduces the balance
            pydantic.ValidationError: If the payload does not match the input model
        """
        handler = self._handlers.get(projection_type)
        if handler is None:
            raise UnknownProjectionError(
                f"Unsupported projection type: {projection_type}"
            )

        try:
            self.logger.info(f"Starting {projection_type} projection")
            result = handler(dict(payload), as_of or current_year_month())
            self.logger.info(f"Completed {projection_type} projection")
            return to_json_ready(result)
        except Exception as e:
            self.logger.error(f"{projection_type} projection failed: {str(e)}")
            raise

    @staticmethod
    def _start_date(payload: Dict[str, Any], as_of: YearMonth) -> YearMonth:
        start_date = payload.pop("start_date", None)
        return YearMonth.parse(start_date) if start_date else as_of

    @staticmethod
    def _as_of_year(payload: Dict[str, Any], as_of: YearMonth) -> int:
        value = payload.pop("as_of_year", None)
        if value is None:
            return as_of.year
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"as_of_year must be an integer, got {value!r}") from e

    def _run_amortization(self, payload: Dict[str, Any], as_of: YearMonth) -> BaseModel:
        start = self._start_date(payload, as_of)
        terms = LoanTerms.model_validate(payload)
        return AmortizationSimulator.generate_schedule_for_terms(terms, start)

    def _run_refinance(self, payload: Dict[str, Any], as_of: YearMonth) -> BaseModel:
        start = self._start_date(payload, as_of)
        if "current" not in payload or "proposed" not in payload:
            raise InvalidInputError("Refinance payload needs 'current' and 'proposed' loans")
        current = CurrentLoan.model_validate(payload["current"])
        proposed = ProposedLoan.model_validate(payload["proposed"])
        return RefinanceComparator.compare(current, proposed, start)

    def _run_retirement_income(
        self, payload: Dict[str, Any], as_of: YearMonth
    ) -> BaseModel:
        as_of_year = self._as_of_year(payload, as_of)
        payload.setdefault("end_age", self.default_end_age)
        inputs = RetirementIncomeInputs.model_validate(payload)
        return project_retirement_income(inputs, as_of_year)

    def _run_fire(self, payload: Dict[str, Any], as_of: YearMonth) -> BaseModel:
        start = self._start_date(payload, as_of)
        inputs = FireInputs.model_validate(payload)
        return calculate_fire(
            inputs,
            start,
            max_months=self.fire_max_months,
            months_past_fi=self.fire_months_past_fi,
        )

    def _run_healthcare(self, payload: Dict[str, Any], as_of: YearMonth) -> BaseModel:
        sensitivity = payload.pop("sensitivity", None)
        inputs = HealthcareInputs.model_validate(payload)
        result = calculate_healthcare_costs(inputs)
        if not sensitivity:
            return result

        request = SensitivityRequest.model_validate(sensitivity)
        points = calculate_sensitivity(inputs, request.variable, request.values)
        return HealthcareWithSensitivity(result=result, sensitivity=points)
