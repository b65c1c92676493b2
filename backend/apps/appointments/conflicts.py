"""
Conflict gate - decides whether a concrete slot may be committed.

Unavailability is a normal return value (BookingDecision with
available=False), never an exception. Database errors propagate untouched
so an outage is never reported as "slot taken".

The check alone does not make a booking safe against concurrent requests;
callers that insert afterwards must hold the staff (or organization) row
lock from TenantScope inside the same transaction.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from django.conf import settings
from django.utils import timezone

from apps.appointments.availability import (
    business_hours_violation,
    day_of_week,
    resolve_day_hours,
)
from apps.appointments.constants import REASON_MESSAGES, Reason, UnassignedPolicy
from apps.appointments.exceptions import BookingValidationError
from apps.appointments.models import Appointment
from apps.appointments.scope import TenantScope
from apps.core.logging import get_logger
from apps.organizations.models import Organization

logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingDecision:
    """Outcome of a conflict check."""

    available: bool
    reason: Reason | None = None
    message: str | None = None
    conflicting_ids: tuple[int, ...] = field(default=())

    @classmethod
    def ok(cls) -> "BookingDecision":
        return cls(available=True)

    @classmethod
    def reject(
        cls,
        reason: Reason,
        message: str | None = None,
        conflicting_ids: tuple[int, ...] = (),
    ) -> "BookingDecision":
        return cls(
            available=False,
            reason=reason,
            message=message or REASON_MESSAGES[reason],
            conflicting_ids=conflicting_ids,
        )

    def as_dict(self) -> dict[str, Any]:
        """Wire shape of the booking validation endpoint."""
        data: dict[str, Any] = {"available": self.available}
        if self.reason is not None:
            data["reason"] = str(self.reason)
        if self.message is not None:
            data["message"] = self.message
        return data


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open interval overlap: touching endpoints do not conflict."""
    return a_start < b_end and a_end > b_start


def peak_concurrency(
    intervals: list[tuple[datetime, datetime]], window_start: datetime, window_end: datetime
) -> int:
    """
    Maximum number of intervals simultaneously open inside the window.

    Ends are processed before starts at the same instant, matching the
    half-open overlap rule.
    """
    points: list[tuple[datetime, int]] = []
    for start, end in intervals:
        start, end = max(start, window_start), min(end, window_end)
        if start < end:
            points.append((start, 1))
            points.append((end, -1))
    points.sort(key=lambda p: (p[0], p[1]))

    current = peak = 0
    for _, delta in points:
        current += delta
        peak = max(peak, current)
    return peak


def organization_block_reason(
    organization: Organization, now: datetime | None = None
) -> Reason | None:
    """Reason the organization cannot take bookings right now, or None."""
    if organization.status == Organization.Status.INACTIVE:
        return Reason.ORGANIZATION_INACTIVE
    if organization.is_trial_expired(now):
        return Reason.TRIAL_EXPIRED
    if not organization.accepts_bookings(now):
        return Reason.ORGANIZATION_INACTIVE
    return None


class ConflictGate:
    """
    Authority deciding whether a slot may become an appointment.

    Checks, in order:
    1. organization subscription state
    2. overlap with the staff member's active appointments, then (with the
       pool policy) aggregate capacity across all active staff
    3. business hours for the slot's local day

    Usage:
        gate = ConflictGate(TenantScope(org))
        decision = gate.check(start, duration=60, staff_id=staff.id)
    """

    def __init__(self, scope: TenantScope, policy: UnassignedPolicy | str | None = None) -> None:
        self.scope = scope
        self.policy = UnassignedPolicy(policy or settings.BOOKING_UNASSIGNED_POLICY)

    def check(
        self,
        start: datetime,
        duration: int,
        staff_id: Any = None,
        exclude_appointment_id: Any = None,
        now: datetime | None = None,
    ) -> BookingDecision:
        """
        Decide whether [start, start + duration) may be booked.

        Raises:
            BookingValidationError: naive datetime or non-positive duration
            NotFoundError: staff_id does not belong to the organization
        """
        if timezone.is_naive(start):
            raise BookingValidationError("Start time must include a timezone offset.")
        if duration <= 0:
            raise BookingValidationError("Duration must be a positive number of minutes.")

        now = now or timezone.now()
        organization = self.scope.organization
        end = start + timedelta(minutes=duration)

        block = organization_block_reason(organization, now)
        if block is not None:
            return self._reject(block, start, staff_id)

        if staff_id is not None:
            self.scope.get_staff(staff_id)
            conflicts = list(
                self._overlapping(start, end, exclude_appointment_id)
                .filter(staff_id=staff_id)
                .values_list("pk", flat=True)
            )
            if conflicts:
                return self._reject(Reason.DOUBLE_BOOKING, start, staff_id, tuple(conflicts))

        # Under the pool policy every active booking, assigned or not, uses up one staff member
        if self.policy == UnassignedPolicy.POOL:
            decision = self._check_pool_capacity(start, end, exclude_appointment_id, staff_id)
            if decision is not None:
                return decision

        tz = organization.tzinfo
        local_day = start.astimezone(tz).date()
        dow = day_of_week(local_day)
        hours = resolve_day_hours(self.scope.get_business_hours(dow), dow)
        violation = business_hours_violation(start, duration, hours, tz)
        if violation is not None:
            message = None
            if violation == Reason.OUTSIDE_BUSINESS_HOURS:
                message = (
                    "The requested time is outside business hours. "
                    f"Open from {hours.opens_at:%H:%M} to {hours.closes_at:%H:%M}."
                )
            return self._reject(violation, start, staff_id, message=message)

        return BookingDecision.ok()

    def _overlapping(self, start: datetime, end: datetime, exclude_appointment_id: Any):
        qs = self.scope.appointments().filter(
            status__in=Appointment.ACTIVE_STATUSES,
            scheduled_at__lt=end,
            ends_at__gt=start,
        )
        if exclude_appointment_id is not None:
            qs = qs.exclude(pk=exclude_appointment_id)
        return qs

    def _check_pool_capacity(
        self, start: datetime, end: datetime, exclude_appointment_id: Any, staff_id: Any = None
    ) -> BookingDecision | None:
        capacity = max(self.scope.active_staff_count(), 1)
        rows = list(
            self._overlapping(start, end, exclude_appointment_id).values_list(
                "pk", "scheduled_at", "ends_at"
            )
        )
        busy = peak_concurrency([(s, e) for _, s, e in rows], start, end)
        if busy >= capacity:
            return self._reject(
                Reason.DOUBLE_BOOKING,
                start,
                staff_id,
                tuple(pk for pk, _, _ in rows),
                message="No staff member is free at the requested time.",
            )
        return None

    def _reject(
        self,
        reason: Reason,
        start: datetime,
        staff_id: Any,
        conflicting_ids: tuple[int, ...] = (),
        message: str | None = None,
    ) -> BookingDecision:
        logger.info(
            "booking_slot_rejected",
            reason=str(reason),
            scheduled_at=start.isoformat(),
            staff_id=staff_id,
            conflicting_ids=list(conflicting_ids),
            **{"organization.id": self.scope.organization.pk},
        )
        return BookingDecision.reject(reason, message=message, conflicting_ids=conflicting_ids)
