"""
Exceptions for the appointments app.

Every exception carries a stable reason code and a human-readable message
so API endpoints can translate it without inspecting the type further.
Infrastructure failures (database errors) are never wrapped in these.
"""

from typing import TYPE_CHECKING

from apps.appointments.constants import REASON_MESSAGES, Reason

if TYPE_CHECKING:
    from apps.appointments.conflicts import BookingDecision


class BookingError(Exception):
    """Base exception for booking operations."""

    reason: Reason = Reason.VALIDATION_ERROR

    def __init__(self, message: str | None = None, reason: Reason | None = None) -> None:
        if reason is not None:
            self.reason = reason
        self.message = message or REASON_MESSAGES[self.reason]
        super().__init__(self.message)


class NotFoundError(BookingError):
    """Organization, service, staff, customer or appointment does not exist in the tenant."""

    reason = Reason.NOT_FOUND


class BookingValidationError(BookingError):
    """Malformed duration, price, time or contact data."""

    reason = Reason.VALIDATION_ERROR


class InvalidTransitionError(BookingError):
    """Requested status change is not an edge of the lifecycle state machine."""

    reason = Reason.INVALID_TRANSITION


class AppointmentLockedError(BookingError):
    """Appointment cannot be removed because customer statistics include it."""

    reason = Reason.AGGREGATES_APPLIED


class BookingRejectedError(BookingError):
    """The conflict gate refused the slot."""

    def __init__(self, decision: "BookingDecision") -> None:
        self.decision = decision
        super().__init__(decision.message, reason=decision.reason)
