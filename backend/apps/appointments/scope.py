"""
Tenant-scoped data access for the booking engine.

TenantScope is the only way booking services reach tenant tables. It cannot
be built without a saved Organization, and every queryset it returns is
already filtered by that organization, so a foreign id supplied by a caller
simply resolves to "not found".
"""

from typing import Any

from django.db.models import QuerySet

from apps.appointments.exceptions import NotFoundError
from apps.appointments.models import Appointment
from apps.catalog.models import BusinessHours, Service, Staff
from apps.customers.models import Customer
from apps.notifications.models import Notification
from apps.organizations.models import Organization


class TenantScope:
    """Repository bound to a single organization."""

    def __init__(self, organization: Organization) -> None:
        if not isinstance(organization, Organization) or organization.pk is None:
            raise TypeError("TenantScope requires a saved Organization instance")
        self.organization = organization

    def __repr__(self) -> str:
        return f"TenantScope(organization_id={self.organization.pk})"

    # Querysets

    def services(self) -> QuerySet[Service]:
        return Service.objects.filter(organization=self.organization)

    def staff(self) -> QuerySet[Staff]:
        return Staff.objects.filter(organization=self.organization)

    def business_hours(self) -> QuerySet[BusinessHours]:
        return BusinessHours.objects.filter(organization=self.organization)

    def customers(self) -> QuerySet[Customer]:
        return Customer.objects.filter(organization=self.organization)

    def appointments(self) -> QuerySet[Appointment]:
        """Alive (not soft-deleted) appointments of the organization."""
        return Appointment.objects.filter(organization=self.organization)

    def notifications(self) -> QuerySet[Notification]:
        return Notification.objects.filter(organization=self.organization)

    # Lookups

    def get_service(self, service_id: Any, *, active_only: bool = True) -> Service:
        qs = self.services()
        if active_only:
            qs = qs.filter(is_active=True)
        return _get_or_not_found(qs, service_id, "Service")

    def get_staff(self, staff_id: Any, *, active_only: bool = True) -> Staff:
        qs = self.staff()
        if active_only:
            qs = qs.filter(is_active=True)
        return _get_or_not_found(qs, staff_id, "Staff member")

    def get_customer(self, customer_id: Any) -> Customer:
        return _get_or_not_found(self.customers(), customer_id, "Customer")

    def get_appointment(self, appointment_id: Any, *, for_update: bool = False) -> Appointment:
        qs = self.appointments()
        if for_update:
            qs = qs.select_for_update()
        return _get_or_not_found(qs, appointment_id, "Appointment")

    def get_business_hours(self, day_of_week: int) -> BusinessHours | None:
        return self.business_hours().filter(day_of_week=day_of_week).first()

    def active_staff_count(self) -> int:
        return self.staff().filter(is_active=True).count()

    # Locks (call inside transaction.atomic())

    def lock_staff(self, staff_id: Any) -> Staff:
        """Row-lock an active staff member so bookings on their calendar serialize."""
        return _get_or_not_found(
            self.staff().select_for_update().filter(is_active=True), staff_id, "Staff member"
        )

    def lock_organization(self) -> Organization:
        """Row-lock the organization so every booking on its calendar serializes."""
        return Organization.objects.select_for_update().get(pk=self.organization.pk)


def _get_or_not_found(qs: QuerySet, pk: Any, label: str) -> Any:
    try:
        return qs.get(pk=pk)
    except (qs.model.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"{label} not found.") from None
