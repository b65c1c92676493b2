"""
Appointment models.
"""

from datetime import datetime, timedelta
from typing import Any

from django.db import models

from apps.core.models import SoftDeleteMixin, TenantScopedModel


class Appointment(SoftDeleteMixin, TenantScopedModel):
    """
    A reserved time slot for a customer and service.

    duration and price are copied from the Service at creation so later
    catalog edits never alter historical appointments. ends_at is derived
    from scheduled_at + duration on every save and backs the overlap query.

    Status only changes through apps.appointments.lifecycle.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"
        NO_SHOW = "no_show", "No show"

    # Statuses that occupy the calendar
    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)
    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED, Status.NO_SHOW)
    # Statuses whose customer statistics were already applied
    AGGREGATE_STATUSES = (Status.COMPLETED, Status.NO_SHOW)

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="appointments",
    )
    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.PROTECT,
        related_name="appointments",
    )
    staff = models.ForeignKey(
        "catalog.Staff",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="appointments",
        help_text="Assigned staff member. NULL = any staff member.",
    )
    scheduled_at = models.DateTimeField(db_index=True)
    ends_at = models.DateTimeField(
        editable=False,
        help_text="scheduled_at + duration, maintained on save",
    )
    duration = models.PositiveIntegerField(help_text="Minutes, copied from the service")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Price copied from the service",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")
    request_token = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Client-generated idempotency token for safe retries",
    )

    class Meta:
        ordering = ["scheduled_at"]
        indexes = [
            # Overlap scan for a staff calendar
            models.Index(
                fields=["staff", "scheduled_at", "ends_at"], name="appointment_staff_i_6f0d1c_idx"
            ),
            # Day listing and pool capacity scan
            models.Index(
                fields=["organization", "scheduled_at"], name="appointment_organiz_2b8e4a_idx"
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "request_token"],
                condition=~models.Q(request_token=""),
                name="appointment_unique_request_token",
            ),
            models.CheckConstraint(
                condition=models.Q(duration__gt=0),
                name="appointment_duration_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Appointment {self.pk} @ {self.scheduled_at:%Y-%m-%d %H:%M} ({self.status})"

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.ends_at = compute_end(self.scheduled_at, self.duration)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and (
            "scheduled_at" in update_fields or "duration" in update_fields
        ):
            kwargs["update_fields"] = {*update_fields, "ends_at"}
        super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES


def compute_end(start: datetime, duration_minutes: int) -> datetime:
    """End instant of a half-open [start, end) interval."""
    return start + timedelta(minutes=duration_minutes)
