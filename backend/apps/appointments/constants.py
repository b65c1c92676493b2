"""
Constants for the appointments app.

Reason codes are part of the public API contract: clients branch on them,
so values must never change.
"""

from enum import StrEnum


class Reason(StrEnum):
    """Machine-readable reason codes for rejected or failed booking operations."""

    ORGANIZATION_INACTIVE = "organization_inactive"
    TRIAL_EXPIRED = "trial_expired"
    DOUBLE_BOOKING = "double_booking"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"
    CLOSED = "closed"
    PAST_SLOT = "past_slot"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    INVALID_TRANSITION = "invalid_transition"
    AGGREGATES_APPLIED = "aggregates_applied"


REASON_MESSAGES: dict[Reason, str] = {
    Reason.ORGANIZATION_INACTIVE: "This business is not accepting bookings at the moment.",
    Reason.TRIAL_EXPIRED: "This business's trial period has expired.",
    Reason.DOUBLE_BOOKING: "This time is already taken for the selected staff member.",
    Reason.OUTSIDE_BUSINESS_HOURS: "The requested time is outside business hours.",
    Reason.CLOSED: "The business is closed on this day.",
    Reason.PAST_SLOT: "The requested time is in the past.",
    Reason.NOT_FOUND: "The requested resource was not found.",
    Reason.VALIDATION_ERROR: "The request is invalid.",
    Reason.INVALID_TRANSITION: "This status change is not allowed.",
    Reason.AGGREGATES_APPLIED: "This appointment already counts toward customer history.",
}


class UnassignedPolicy(StrEnum):
    """How bookings without a staff member are checked for conflicts."""

    POOL = "pool"
    """Overlapping active appointments must stay below the active staff count."""

    BYPASS = "bypass"
    """No overlap check at all for unassigned bookings."""
