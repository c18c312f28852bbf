# gymgain/errors.py
# Error taxonomy for booking, cancellation and routine writes.
# Every error carries a stable `reason` code and a user-facing `message`;
# routes flash the message and redirect, nothing here is fatal to the process.

from __future__ import annotations

from .policy import Rejection


class BookingError(Exception):
    """Base class for failures reported back to the member."""

    reason = "error"
    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, reason: str | None = None):
        if message:
            self.message = message
        if reason:
            self.reason = reason
        super().__init__(self.message)


class ValidationError(BookingError):
    """Malformed or missing request input; raised before any database work."""

    reason = "invalid request"
    message = "Invalid request."

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> "ValidationError":
        return cls(rejection.message, rejection.reason)


class PolicyRejection(BookingError):
    """A capacity, balance, tier, duplicate or ownership rule said no."""

    def __init__(self, rejection: Rejection):
        self.rejection = rejection
        super().__init__(rejection.message, rejection.reason)


class TransientStoreError(BookingError):
    """Connection, query or commit failure. The transaction has been rolled back."""

    reason = "store error"
    message = "System error. Please try again."


class InvariantViolation(TransientStoreError):
    """A write inside the transaction did not affect the row it had to."""

    reason = "invariant violation"
