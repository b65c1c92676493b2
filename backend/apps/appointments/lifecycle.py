"""
Appointment lifecycle - status state machine and customer statistics.

Status only moves along ALLOWED_TRANSITIONS. Each edge is applied with a
conditional UPDATE on the current status, so when two requests race for the
same edge exactly one of them wins and applies the customer side effects.
Re-entering the current status is a no-op.

Customer statistics are incremented in the database (F() expressions),
never read-modified-written in Python.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.appointments.exceptions import (
    AppointmentLockedError,
    BookingValidationError,
    InvalidTransitionError,
)
from apps.appointments.models import Appointment
from apps.appointments.scope import TenantScope
from apps.catalog.models import Service, Staff
from apps.core.logging import get_logger
from apps.customers.models import Customer
from apps.notifications.services import (
    notify_appointment_created,
    notify_appointment_rescheduled,
    notify_status_changed,
)

logger = get_logger(__name__)

Status = Appointment.Status

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    Status.PENDING: frozenset({Status.CONFIRMED, Status.CANCELLED, Status.COMPLETED}),
    Status.CONFIRMED: frozenset({Status.COMPLETED, Status.CANCELLED, Status.NO_SHOW}),
    Status.COMPLETED: frozenset(),
    Status.CANCELLED: frozenset(),
    Status.NO_SHOW: frozenset(),
}

INITIAL_STATUSES = (Status.PENDING, Status.CONFIRMED)


@dataclass
class TransitionResult:
    """Outcome of a status change request."""

    appointment: Appointment
    previous_status: str
    changed: bool


def can_transition(current: str, target: str) -> bool:
    """True if target is a legal next status from current."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def parse_status(value: str) -> str:
    """Validate a status string coming from a client."""
    if value not in Status.values:
        raise BookingValidationError(f"Unknown appointment status: {value!r}.")
    return Status(value)


def create_appointment_record(
    *,
    scope: TenantScope,
    customer: Customer,
    service: Service,
    staff: Staff | None,
    scheduled_at: datetime,
    status: str = Status.PENDING,
    notes: str = "",
    request_token: str = "",
    now: datetime | None = None,
) -> Appointment:
    """
    Insert an appointment and queue its notifications.

    Callers must have run the conflict gate under the calendar lock in the
    same transaction. duration and price are copied from the service.
    """
    if status not in INITIAL_STATUSES:
        raise BookingValidationError("New appointments must be pending or confirmed.")

    appointment = Appointment.objects.create(
        organization=scope.organization,
        customer=customer,
        service=service,
        staff=staff,
        scheduled_at=scheduled_at,
        duration=service.duration,
        price=service.price,
        status=status,
        notes=notes,
        request_token=request_token,
    )
    notify_appointment_created(appointment, now)

    logger.info(
        "appointment_created",
        appointment_id=appointment.pk,
        customer_id=customer.pk,
        staff_id=staff.pk if staff else None,
        status=status,
        scheduled_at=scheduled_at.isoformat(),
        **{"organization.id": scope.organization.pk},
    )
    return appointment


def transition(
    scope: TenantScope,
    appointment_id: int,
    new_status: str,
    now: datetime | None = None,
) -> TransitionResult:
    """
    Move an appointment to new_status and apply side effects exactly once.

    - → completed: total_visits + 1, total_spent + price, last_visit_at = now
    - → no_show: no_shows + 1

    Raises:
        NotFoundError: appointment not in this organization
        BookingValidationError: unknown status value
        InvalidTransitionError: new_status is not reachable from the current status
    """
    new_status = parse_status(new_status)
    now = now or timezone.now()

    with transaction.atomic():
        appointment = scope.get_appointment(appointment_id, for_update=True)
        previous = appointment.status

        if previous == new_status:
            return TransitionResult(appointment=appointment, previous_status=previous, changed=False)

        if not can_transition(previous, new_status):
            raise InvalidTransitionError(
                f"Cannot change appointment status from {previous} to {new_status}."
            )

        updated = (
            scope.appointments()
            .filter(pk=appointment.pk, status=previous)
            .update(status=new_status, updated_at=now)
        )
        if updated == 0:
            # Another request moved it first; report its outcome instead of re-applying
            appointment.refresh_from_db()
            if appointment.status == new_status:
                return TransitionResult(
                    appointment=appointment, previous_status=new_status, changed=False
                )
            raise InvalidTransitionError(
                f"Cannot change appointment status from {appointment.status} to {new_status}."
            )

        appointment.status = new_status
        _apply_customer_statistics(appointment, new_status, now)
        notify_status_changed(appointment, new_status, now)

    logger.info(
        "appointment_status_changed",
        appointment_id=appointment.pk,
        previous_status=previous,
        status=new_status,
        **{"organization.id": scope.organization.pk},
    )
    return TransitionResult(appointment=appointment, previous_status=previous, changed=True)


def _apply_customer_statistics(appointment: Appointment, new_status: str, now: datetime) -> None:
    customers = Customer.objects.filter(
        pk=appointment.customer_id,
        organization_id=appointment.organization_id,
    )
    if new_status == Status.COMPLETED:
        customers.update(
            total_visits=F("total_visits") + 1,
            total_spent=F("total_spent") + Decimal(appointment.price),
            last_visit_at=now,
            updated_at=now,
        )
    elif new_status == Status.NO_SHOW:
        customers.update(no_shows=F("no_shows") + 1, updated_at=now)


def apply_reschedule(
    appointment: Appointment,
    *,
    scheduled_at: datetime,
    staff: Staff | None,
    now: datetime | None = None,
) -> Appointment:
    """
    Persist a new time/staff on a locked, gate-approved appointment.

    Raises:
        InvalidTransitionError: appointment is no longer pending/confirmed
    """
    if not appointment.is_active:
        raise InvalidTransitionError(f"A {appointment.status} appointment cannot be rescheduled.")

    appointment.scheduled_at = scheduled_at
    appointment.staff = staff
    appointment.save(update_fields=["scheduled_at", "staff", "updated_at"])
    notify_appointment_rescheduled(appointment, now)

    logger.info(
        "appointment_rescheduled",
        appointment_id=appointment.pk,
        staff_id=staff.pk if staff else None,
        scheduled_at=scheduled_at.isoformat(),
        **{"organization.id": appointment.organization_id},
    )
    return appointment


def delete_appointment(
    scope: TenantScope,
    appointment_id: int,
    hard: bool = False,
    now: datetime | None = None,
) -> None:
    """
    Remove an appointment from the calendar.

    Soft delete cancels an active appointment first, then tombstones it;
    customer statistics already applied stay untouched. Hard delete is
    refused once the appointment counts toward customer statistics.

    Raises:
        NotFoundError: appointment not in this organization
        AppointmentLockedError: hard delete of a completed/no-show appointment
    """
    appointment = scope.get_appointment(appointment_id)

    if hard:
        if appointment.status in Appointment.AGGREGATE_STATUSES:
            raise AppointmentLockedError()
        with transaction.atomic():
            appointment.hard_delete()
        logger.info("appointment_hard_deleted", appointment_id=appointment_id)
        return

    with transaction.atomic():
        if appointment.is_active:
            transition(scope, appointment.pk, Status.CANCELLED, now)
            appointment.refresh_from_db()
        appointment.soft_delete()

    logger.info(
        "appointment_deleted",
        appointment_id=appointment_id,
        **{"organization.id": scope.organization.pk},
    )
