"""
Public booking API endpoints.

Anonymous endpoints behind the business's public booking page, addressed by
organization slug. Booking creation is rate limited per client IP.
"""

from datetime import date

from django.http import HttpRequest
from ninja import Router

from apps.appointments import services
from apps.appointments.api import ERROR_RESPONSES, error_response
from apps.appointments.exceptions import BookingError
from apps.appointments.schemas import (
    PublicBookingRequest,
    PublicBookingResponse,
    RateLimitedResponse,
    SlotCheckRequest,
    SlotCheckResponse,
    SlotListResponse,
)
from apps.appointments.scope import TenantScope
from apps.appointments.throttling import BookingThrottled, PublicBookingThrottle
from apps.core.schemas import ErrorResponse

router = Router(tags=["booking"])


@router.post(
    "/check",
    response={200: SlotCheckResponse, 404: ErrorResponse, 422: ErrorResponse},
    operation_id="checkSlot",
    summary="Validate a booking slot",
    description=(
        "Check whether a concrete slot can be booked. Unavailability is returned "
        "as available=false with a reason, never as an error."
    ),
)
def check_slot(request: HttpRequest, payload: SlotCheckRequest):
    """Run the conflict gate without booking."""
    try:
        decision = services.check_slot(
            payload.organization_id,
            payload.start,
            payload.duration,
            staff_id=payload.staff_id,
            exclude_appointment_id=payload.exclude_appointment_id,
        )
    except BookingError as e:
        return error_response(e)

    return SlotCheckResponse(**decision.as_dict())


@router.get(
    "/{slug}/slots",
    response={200: SlotListResponse, **ERROR_RESPONSES},
    operation_id="listPublicSlots",
    summary="List slots on the public booking page",
)
def list_public_slots(
    request: HttpRequest,
    slug: str,
    service_id: int,
    date: date,
    staff_id: int | None = None,
):
    """Candidate slots for a bookable organization."""
    try:
        organization = services.resolve_bookable_organization(slug)
        slots = services.list_available_slots(
            TenantScope(organization), service_id, date, staff_id=staff_id
        )
    except BookingError as e:
        return error_response(e)

    return SlotListResponse(date=date, service_id=service_id, staff_id=staff_id, slots=slots)


@router.post(
    "/{slug}/appointments",
    response={201: PublicBookingResponse, 429: RateLimitedResponse, **ERROR_RESPONSES},
    operation_id="createPublicBooking",
    summary="Book an appointment",
    description="Self-service booking. The appointment is created as pending.",
)
def create_public_booking(request: HttpRequest, slug: str, payload: PublicBookingRequest):
    """Book through the public page."""
    try:
        PublicBookingThrottle().hit(request)
    except BookingThrottled as e:
        return 429, RateLimitedResponse(
            reason="rate_limited", detail=str(e), retry_after=e.retry_after
        )

    try:
        appointment = services.book_public_appointment(
            slug,
            service_id=payload.service_id,
            start=payload.start,
            customer=services.CustomerDetails(
                name=payload.customer.name,
                email=payload.customer.email,
                phone=payload.customer.phone,
            ),
            staff_id=payload.staff_id,
            notes=payload.notes,
            request_token=payload.request_token,
        )
    except BookingError as e:
        return error_response(e)

    return 201, PublicBookingResponse(
        id=appointment.id,
        status=appointment.status,
        scheduled_at=appointment.scheduled_at,
        ends_at=appointment.ends_at,
        service_name=appointment.service.name,
        business_name=appointment.organization.name,
    )
