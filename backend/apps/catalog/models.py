"""
Catalog models - services, staff and weekly business hours.

These records are maintained by the organization's CRUD screens; the booking
engine only reads them.
"""

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.models import TenantScopedModel


class Service(TenantScopedModel):
    """A bookable service with a fixed duration and price."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    duration = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Duration in minutes",
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(duration__gt=0),
                name="service_duration_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="service_price_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return self.name


class Staff(TenantScopedModel):
    """A staff member whose calendar appointments may be assigned to."""

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "staff"

    def __str__(self) -> str:
        return self.name


class BusinessHours(TenantScopedModel):
    """
    Opening window for one day of the week.

    day_of_week uses 0 = Sunday ... 6 = Saturday. A missing row does not
    mean closed; the configured default window applies instead.
    """

    day_of_week = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(6)],
        help_text="0 = Sunday ... 6 = Saturday",
    )
    opens_at = models.TimeField(help_text="Local opening time")
    closes_at = models.TimeField(help_text="Local closing time")
    is_closed = models.BooleanField(default=False)

    class Meta:
        ordering = ["day_of_week"]
        verbose_name_plural = "business hours"
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "day_of_week"],
                name="business_hours_unique_day",
            ),
            models.CheckConstraint(
                condition=models.Q(day_of_week__gte=0, day_of_week__lte=6),
                name="business_hours_valid_day",
            ),
        ]

    def __str__(self) -> str:
        if self.is_closed:
            return f"day {self.day_of_week}: closed"
        return f"day {self.day_of_week}: {self.opens_at:%H:%M}-{self.closes_at:%H:%M}"
