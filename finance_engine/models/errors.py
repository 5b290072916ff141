"""
Projection engine exceptions.

All input validation happens before a simulation loop starts, so any of these
exceptions means no partial result was produced.
"""


class ProjectionError(Exception):
    """Base exception for projection engine errors."""


class InvalidInputError(ProjectionError, ValueError):
    """Raised when simulation inputs are out of range (negative balance, bad term, etc.)."""


class NonAmortizingPaymentError(ProjectionError):
    """Raised when a loan payment never reduces the outstanding balance."""

    def __init__(self, payment: float, interest: float):
        self.payment = payment
        self.interest = interest
        super().__init__(
            f"Monthly payment {payment:.2f} does not cover monthly interest "
            f"{interest:.2f}; the balance would never decrease"
        )
