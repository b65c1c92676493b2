"""
Appointment API endpoints.

Scheduling endpoints used by the business's own staff. The tenant comes from
the request's auth context; ids from the client are only ever resolved
inside that tenant.
"""

from datetime import date

from django.http import HttpRequest
from ninja import Router

from apps.appointments import services
from apps.appointments.exceptions import (
    AppointmentLockedError,
    BookingError,
    BookingRejectedError,
    InvalidTransitionError,
    NotFoundError,
)
from apps.appointments.models import Appointment
from apps.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdateRequest,
    SlotListResponse,
    StatusChangeRequest,
    StatusChangeResponse,
)
from apps.appointments.scope import TenantScope
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth, get_request_organization

router = Router(tags=["appointments"])
bearer_auth = BearerAuth()

ERROR_RESPONSES = {404: ErrorResponse, 409: ErrorResponse, 422: ErrorResponse}


def error_status(exc: BookingError) -> int:
    """HTTP status for a domain exception."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, BookingRejectedError | InvalidTransitionError | AppointmentLockedError):
        return 409
    return 422


def error_response(exc: BookingError) -> tuple[int, ErrorResponse]:
    """Translate a domain exception into (status, body) for ninja."""
    return error_status(exc), ErrorResponse(reason=str(exc.reason), detail=exc.message)


def appointment_to_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        customer_id=appointment.customer_id,
        customer_name=appointment.customer.name,
        service_id=appointment.service_id,
        service_name=appointment.service.name,
        staff_id=appointment.staff_id,
        staff_name=appointment.staff.name if appointment.staff else None,
        scheduled_at=appointment.scheduled_at,
        ends_at=appointment.ends_at,
        duration=appointment.duration,
        price=appointment.price,
        status=appointment.status,
        notes=appointment.notes,
        created_at=appointment.created_at,
    )


def _scope(request: HttpRequest) -> TenantScope:
    return TenantScope(get_request_organization(request))


@router.get(
    "/",
    response=AppointmentListResponse,
    auth=bearer_auth,
    operation_id="listAppointments",
    summary="List appointments of a day",
)
def list_appointments(request: HttpRequest, date: date) -> AppointmentListResponse:
    """List the organization's appointments starting on a local calendar day."""
    appointments = services.list_appointments_for_day(_scope(request), date)
    return AppointmentListResponse(
        appointments=[appointment_to_response(a) for a in appointments],
        count=len(appointments),
    )


@router.get(
    "/slots",
    response={200: SlotListResponse, **ERROR_RESPONSES},
    auth=bearer_auth,
    operation_id="listAvailableSlots",
    summary="List available slots",
    description="Candidate start times for a service on a day. Nothing is reserved.",
)
def list_slots(
    request: HttpRequest,
    service_id: int,
    date: date,
    staff_id: int | None = None,
):
    """Compute candidate slots for the scheduling UI."""
    try:
        slots = services.list_available_slots(_scope(request), service_id, date, staff_id=staff_id)
    except BookingError as e:
        return error_response(e)

    return SlotListResponse(date=date, service_id=service_id, staff_id=staff_id, slots=slots)


@router.post(
    "/",
    response={201: AppointmentResponse, **ERROR_RESPONSES},
    auth=bearer_auth,
    operation_id="createAppointment",
    summary="Create an appointment",
    description="Book a slot for an existing or new customer. Staff may create it as confirmed.",
)
def create_appointment(request: HttpRequest, payload: AppointmentCreateRequest):
    """Create an appointment through the conflict gate."""
    customer = None
    if payload.customer is not None:
        customer = services.CustomerDetails(
            name=payload.customer.name,
            email=payload.customer.email,
            phone=payload.customer.phone,
        )

    try:
        appointment = services.create_appointment(
            _scope(request),
            service_id=payload.service_id,
            start=payload.start,
            customer_id=payload.customer_id,
            customer=customer,
            staff_id=payload.staff_id,
            notes=payload.notes,
            status=payload.status,
            request_token=payload.request_token,
        )
    except BookingError as e:
        return error_response(e)

    return 201, appointment_to_response(appointment)


@router.patch(
    "/{appointment_id}",
    response={200: AppointmentResponse, **ERROR_RESPONSES},
    auth=bearer_auth,
    operation_id="updateAppointment",
    summary="Reschedule an appointment",
    description="Move an appointment to a new time or staff member, or edit its notes.",
)
def update_appointment(
    request: HttpRequest,
    appointment_id: int,
    payload: AppointmentUpdateRequest,
):
    """Reschedule or edit notes."""
    # An explicit null staff_id unassigns; an omitted one keeps the current staff
    staff_id = payload.staff_id if "staff_id" in payload.model_fields_set else services.UNSET

    try:
        appointment = services.update_appointment(
            _scope(request),
            appointment_id,
            scheduled_at=payload.scheduled_at,
            staff_id=staff_id,
            notes=payload.notes,
        )
    except BookingError as e:
        return error_response(e)

    return appointment_to_response(appointment)


@router.post(
    "/{appointment_id}/status",
    response={200: StatusChangeResponse, **ERROR_RESPONSES},
    auth=bearer_auth,
    operation_id="changeAppointmentStatus",
    summary="Change appointment status",
)
def change_status(request: HttpRequest, appointment_id: int, payload: StatusChangeRequest):
    """Apply a lifecycle transition. Repeating the current status is a no-op."""
    try:
        result = services.change_status(_scope(request), appointment_id, payload.status)
    except BookingError as e:
        return error_response(e)

    return StatusChangeResponse(
        appointment=appointment_to_response(result.appointment),
        previous_status=result.previous_status,
        changed=result.changed,
    )


@router.delete(
    "/{appointment_id}",
    response={204: None, **ERROR_RESPONSES},
    auth=bearer_auth,
    operation_id="deleteAppointment",
    summary="Delete an appointment",
    description="Soft delete. Active appointments are cancelled first.",
)
def delete_appointment(request: HttpRequest, appointment_id: int, hard: bool = False):
    """Remove an appointment from the calendar."""
    try:
        services.delete_appointment(_scope(request), appointment_id, hard=hard)
    except BookingError as e:
        return error_response(e)

    return 204, None
