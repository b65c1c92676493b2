"""
Booking services - public entry points of the booking engine.

Used by both the authenticated scheduling API and the anonymous public
booking page. Every function takes a TenantScope (or resolves one from a
slug) so no query can cross organizations.

Creation and rescheduling follow the same pattern:

    with transaction.atomic():
        lock organization row, then staff row
        run conflict gate
        write

The organization lock serializes competing bookings that share pool
capacity, closing the window between the conflict check and the insert.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.appointments import lifecycle
from apps.appointments.availability import (
    day_of_week,
    exclude_busy,
    iter_candidate_slots,
    resolve_day_hours,
)
from apps.appointments.conflicts import BookingDecision, ConflictGate, organization_block_reason
from apps.appointments.constants import Reason
from apps.appointments.exceptions import (
    BookingRejectedError,
    BookingValidationError,
    NotFoundError,
)
from apps.appointments.models import Appointment
from apps.appointments.scope import TenantScope
from apps.catalog.models import Staff
from apps.core.logging import get_logger
from apps.core.utils import normalize_email, normalize_phone
from apps.customers.models import Customer
from apps.organizations.models import Organization

logger = get_logger(__name__)

UNSET: Any = object()


@dataclass
class CustomerDetails:
    """Contact data used to find or create the booking customer."""

    name: str
    email: str = ""
    phone: str = ""


def resolve_bookable_organization(slug: str, now: datetime | None = None) -> Organization:
    """
    Resolve a public booking slug and verify the organization takes bookings.

    Raises:
        NotFoundError: unknown slug
        BookingRejectedError: organization inactive or trial expired
    """
    organization = Organization.objects.filter(slug=slug).first()
    if organization is None:
        raise NotFoundError("Organization not found.")

    reason = organization_block_reason(organization, now)
    if reason is not None:
        raise BookingRejectedError(BookingDecision.reject(reason))
    return organization


def get_organization(organization_id: Any) -> Organization:
    """Look up an organization by id for the booking validation endpoint."""
    try:
        return Organization.objects.get(pk=organization_id)
    except (Organization.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Organization not found.") from None


def list_available_slots(
    scope: TenantScope,
    service_id: Any,
    day: date,
    staff_id: Any = None,
    now: datetime | None = None,
) -> list[datetime]:
    """
    Candidate start times for a service on a local calendar day.

    Nothing is reserved. When staff_id is given, slots overlapping that
    staff member's active appointments are left out.

    Raises:
        NotFoundError: unknown or inactive service/staff
    """
    now = now or timezone.now()
    service = scope.get_service(service_id)
    if staff_id is not None:
        scope.get_staff(staff_id)

    tz = scope.organization.tzinfo
    dow = day_of_week(day)
    hours = resolve_day_hours(scope.get_business_hours(dow), dow)
    slots = iter_candidate_slots(day, service.duration, hours, tz, now)

    if staff_id is None:
        return list(slots)

    day_start = datetime.combine(day, time.min, tzinfo=tz)
    day_end = day_start + timedelta(days=1)
    busy = list(
        scope.appointments()
        .filter(
            staff_id=staff_id,
            status__in=Appointment.ACTIVE_STATUSES,
            scheduled_at__lt=day_end,
            ends_at__gt=day_start,
        )
        .values_list("scheduled_at", "ends_at")
    )
    return list(exclude_busy(slots, service.duration, busy))


def check_slot(
    organization_id: Any,
    start: datetime,
    duration: int,
    staff_id: Any = None,
    exclude_appointment_id: Any = None,
    now: datetime | None = None,
) -> BookingDecision:
    """
    Booking validation used by the scheduling UI and the public page.

    Raises:
        NotFoundError: unknown organization or staff
        BookingValidationError: malformed start or duration
    """
    scope = TenantScope(get_organization(organization_id))
    return ConflictGate(scope).check(
        start,
        duration,
        staff_id=staff_id,
        exclude_appointment_id=exclude_appointment_id,
        now=now,
    )


def upsert_customer(scope: TenantScope, details: CustomerDetails) -> Customer:
    """
    Find a customer by phone or email within the organization, or create one.

    Phone is matched first (digits only), then email (lower-cased).

    Raises:
        BookingValidationError: no name, or neither phone nor email
    """
    name = details.name.strip()
    email = normalize_email(details.email)
    phone = normalize_phone(details.phone)
    if not name:
        raise BookingValidationError("Customer name is required.")
    if not email and not phone:
        raise BookingValidationError("A phone number or email address is required.")

    customer = _match_customer(scope, email, phone)
    if customer is not None:
        return customer

    try:
        with transaction.atomic():
            customer = Customer.objects.create(
                organization=scope.organization,
                name=name,
                email=email,
                phone=phone,
            )
    except IntegrityError:
        # Concurrent insert won the race, fetch the winner
        customer = _match_customer(scope, email, phone)
        if customer is None:
            raise
        return customer

    logger.info(
        "customer_created",
        customer_id=customer.pk,
        **{"organization.id": scope.organization.pk},
    )
    return customer


def _match_customer(scope: TenantScope, email: str, phone: str) -> Customer | None:
    if phone:
        customer = scope.customers().filter(phone=phone).first()
        if customer is not None:
            return customer
    if email:
        return scope.customers().filter(email=email).first()
    return None


def _lock_calendar(scope: TenantScope, staff_id: Any) -> Staff | None:
    """Lock the organization row, then the staff row. Always in this order."""
    scope.lock_organization()
    if staff_id is None:
        return None
    return scope.lock_staff(staff_id)


def _find_by_request_token(scope: TenantScope, request_token: str) -> Appointment | None:
    if not request_token:
        return None
    return Appointment.all_objects.filter(
        organization=scope.organization, request_token=request_token
    ).first()


def create_appointment(
    scope: TenantScope,
    *,
    service_id: Any,
    start: datetime,
    customer_id: Any = None,
    customer: CustomerDetails | None = None,
    staff_id: Any = None,
    notes: str = "",
    status: str = Appointment.Status.PENDING,
    request_token: str = "",
    now: datetime | None = None,
) -> Appointment:
    """
    Book a slot: gate, customer upsert and insert, all or nothing.

    Exactly one of customer_id (existing customer) or customer (contact
    details to upsert) is required. Repeating a call with the same
    request_token returns the appointment created by the first call.

    Raises:
        BookingRejectedError: the conflict gate refused the slot
        NotFoundError: unknown service, staff or customer
        BookingValidationError: malformed input
    """
    if (customer_id is None) == (customer is None):
        raise BookingValidationError("Provide either an existing customer or customer details.")

    existing = _find_by_request_token(scope, request_token)
    if existing is not None:
        logger.info("appointment_request_replayed", appointment_id=existing.pk)
        return existing

    service = scope.get_service(service_id)

    try:
        with transaction.atomic():
            staff = _lock_calendar(scope, staff_id)
            decision = ConflictGate(scope).check(start, service.duration, staff_id=staff_id, now=now)
            if not decision.available:
                raise BookingRejectedError(decision)

            if customer_id is not None:
                booking_customer = scope.get_customer(customer_id)
            else:
                booking_customer = upsert_customer(scope, customer)  # type: ignore[arg-type]

            return lifecycle.create_appointment_record(
                scope=scope,
                customer=booking_customer,
                service=service,
                staff=staff,
                scheduled_at=start,
                status=status,
                notes=notes,
                request_token=request_token,
                now=now,
            )
    except IntegrityError:
        # A retry with the same token committed first
        existing = _find_by_request_token(scope, request_token)
        if existing is None:
            raise
        return existing


def book_public_appointment(
    slug: str,
    *,
    service_id: Any,
    start: datetime,
    customer: CustomerDetails,
    staff_id: Any = None,
    notes: str = "",
    request_token: str = "",
    now: datetime | None = None,
) -> Appointment:
    """
    Self-service booking addressed by organization slug.

    The organization must be bookable and the start strictly in the future.
    The appointment is created as pending.
    """
    now = now or timezone.now()
    organization = resolve_bookable_organization(slug, now)
    if timezone.is_naive(start):
        raise BookingValidationError("Start time must include a timezone offset.")
    if start <= now:
        raise BookingRejectedError(BookingDecision.reject(Reason.PAST_SLOT))

    return create_appointment(
        TenantScope(organization),
        service_id=service_id,
        start=start,
        customer=customer,
        staff_id=staff_id,
        notes=notes,
        status=Appointment.Status.PENDING,
        request_token=request_token,
        now=now,
    )


def change_status(
    scope: TenantScope,
    appointment_id: Any,
    new_status: str,
    now: datetime | None = None,
) -> lifecycle.TransitionResult:
    """Apply a lifecycle transition (see apps.appointments.lifecycle)."""
    return lifecycle.transition(scope, appointment_id, new_status, now)


def update_appointment(
    scope: TenantScope,
    appointment_id: Any,
    *,
    scheduled_at: datetime | None = None,
    staff_id: Any = UNSET,
    notes: str | None = None,
    now: datetime | None = None,
) -> Appointment:
    """
    Reschedule and/or edit notes of an appointment.

    A change of time or staff re-runs the conflict gate, excluding the
    appointment itself, under the target calendar's lock.

    Args:
        staff_id: New staff id, None to unassign, or UNSET to keep the current one

    Raises:
        BookingRejectedError: the new slot is not available
        InvalidTransitionError: appointment is completed, cancelled or no-show
        NotFoundError: unknown appointment or staff
    """
    with transaction.atomic():
        appointment = scope.get_appointment(appointment_id, for_update=True)

        new_start = scheduled_at if scheduled_at is not None else appointment.scheduled_at
        new_staff_id = appointment.staff_id if staff_id is UNSET else staff_id
        moves = new_start != appointment.scheduled_at or new_staff_id != appointment.staff_id

        if moves:
            staff = _lock_calendar(scope, new_staff_id)
            decision = ConflictGate(scope).check(
                new_start,
                appointment.duration,
                staff_id=new_staff_id,
                exclude_appointment_id=appointment.pk,
                now=now,
            )
            if not decision.available:
                raise BookingRejectedError(decision)
            lifecycle.apply_reschedule(appointment, scheduled_at=new_start, staff=staff, now=now)

        if notes is not None and notes != appointment.notes:
            appointment.notes = notes
            appointment.save(update_fields=["notes", "updated_at"])

    return appointment


def delete_appointment(
    scope: TenantScope,
    appointment_id: Any,
    hard: bool = False,
    now: datetime | None = None,
) -> None:
    """Remove an appointment (see apps.appointments.lifecycle.delete_appointment)."""
    lifecycle.delete_appointment(scope, appointment_id, hard=hard, now=now)


def list_appointments_for_day(scope: TenantScope, day: date) -> list[Appointment]:
    """Appointments starting on a local calendar day, ordered by start."""
    tz = scope.organization.tzinfo
    day_start = datetime.combine(day, time.min, tzinfo=tz)
    return list(
        scope.appointments()
        .filter(scheduled_at__gte=day_start, scheduled_at__lt=day_start + timedelta(days=1))
        .select_related("customer", "service", "staff")
        .order_by("scheduled_at")
    )
