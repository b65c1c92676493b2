"""
Pydantic schemas for booking API endpoints.
"""

from datetime import date, datetime
from decimal import Decimal

from ninja import Schema
from pydantic import Field, model_validator

from apps.core.schemas import ErrorResponse


class CustomerIn(Schema):
    """Contact data for a booking customer."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(default="", max_length=254)
    phone: str = Field(default="", max_length=32)


class SlotCheckRequest(Schema):
    """Request to validate a concrete slot without booking it."""

    organization_id: int
    start: datetime = Field(description="Slot start, ISO-8601 with offset")
    duration: int = Field(gt=0, description="Length in minutes")
    staff_id: int | None = None
    exclude_appointment_id: int | None = Field(
        default=None, description="Appointment being rescheduled, ignored in the overlap check"
    )


class SlotCheckResponse(Schema):
    """Booking validation result."""

    available: bool
    reason: str | None = None
    message: str | None = None


class SlotListResponse(Schema):
    """Candidate start times for one day."""

    date: date
    service_id: int
    staff_id: int | None = None
    slots: list[datetime]


class AppointmentCreateRequest(Schema):
    """Internal booking request from the scheduling UI."""

    service_id: int
    start: datetime
    staff_id: int | None = None
    customer_id: int | None = None
    customer: CustomerIn | None = None
    notes: str = ""
    status: str = Field(default="pending", description="pending or confirmed")
    request_token: str = Field(default="", max_length=64)

    @model_validator(mode="after")
    def check_customer(self) -> "AppointmentCreateRequest":
        if (self.customer_id is None) == (self.customer is None):
            raise ValueError("Provide exactly one of customer_id or customer")
        return self


class PublicBookingRequest(Schema):
    """Self-service booking from the public page."""

    service_id: int
    start: datetime
    staff_id: int | None = None
    customer: CustomerIn
    notes: str = Field(default="", max_length=2000)
    request_token: str = Field(default="", max_length=64)


class AppointmentUpdateRequest(Schema):
    """Reschedule or edit notes. Omitted fields are left unchanged."""

    scheduled_at: datetime | None = None
    staff_id: int | None = None
    notes: str | None = None


class StatusChangeRequest(Schema):
    """Lifecycle transition request."""

    status: str


class AppointmentResponse(Schema):
    """Single appointment."""

    id: int
    customer_id: int
    customer_name: str
    service_id: int
    service_name: str
    staff_id: int | None
    staff_name: str | None
    scheduled_at: datetime
    ends_at: datetime
    duration: int
    price: Decimal
    status: str
    notes: str
    created_at: datetime


class AppointmentListResponse(Schema):
    """Appointments of one day."""

    appointments: list[AppointmentResponse]
    count: int


class StatusChangeResponse(Schema):
    """Result of a lifecycle transition."""

    appointment: AppointmentResponse
    previous_status: str
    changed: bool


class PublicBookingResponse(Schema):
    """Confirmation returned to the public booking page."""

    id: int
    status: str
    scheduled_at: datetime
    ends_at: datetime
    service_name: str
    business_name: str


class RateLimitedResponse(ErrorResponse):
    """Returned with 429 when the public booking throttle trips."""

    retry_after: int = Field(..., description="Seconds until the client may try again")
