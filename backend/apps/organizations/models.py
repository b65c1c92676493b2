"""
Organizations models - multi-tenancy foundation.
"""

import zoneinfo
from datetime import datetime

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from apps.core.logging import get_logger
from apps.core.models import TimestampedModel

logger = get_logger(__name__)


def validate_time_zone(value: str) -> None:
    """Reject names the IANA database does not know. Empty means the default."""
    if not value:
        return
    try:
        zoneinfo.ZoneInfo(value)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        raise ValidationError(
            "%(value)s is not a known IANA timezone.", code="invalid", params={"value": value}
        ) from None


class Organization(TimestampedModel):
    """
    A tenant: an independent business owning its services, staff,
    customers and appointments.

    Subscription status gates whether the organization may accept bookings.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        TRIAL = "trial", "Trial"
        INACTIVE = "inactive", "Inactive"

    name = models.CharField(max_length=255)
    slug = models.SlugField(
        max_length=255,
        unique=True,
        help_text="URL-safe identifier used by the public booking page, e.g. 'acme-salon'",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.TRIAL,
        db_index=True,
    )
    trial_ends_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End of the trial period. NULL = open-ended trial.",
    )
    plan = models.CharField(max_length=50, default="free")
    time_zone = models.CharField(
        max_length=64,
        blank=True,
        default="",
        validators=[validate_time_zone],
        help_text="IANA timezone for business hours, e.g. 'America/Sao_Paulo'. Empty = default.",
    )
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    def is_trial_expired(self, now: datetime | None = None) -> bool:
        """True when the organization is on trial and the trial has ended."""
        if self.status != self.Status.TRIAL or self.trial_ends_at is None:
            return False
        return self.trial_ends_at < (now or timezone.now())

    def accepts_bookings(self, now: datetime | None = None) -> bool:
        """Active organizations, and trials that have not expired, accept bookings."""
        if self.status == self.Status.ACTIVE:
            return True
        if self.status == self.Status.TRIAL:
            return not self.is_trial_expired(now)
        return False

    @property
    def tzinfo(self) -> zoneinfo.ZoneInfo:
        """
        Timezone in which business hours are expressed.

        Rows saved without validation may hold an unknown name; those fall back
        to the default zone instead of failing the request.
        """
        if self.time_zone:
            try:
                return zoneinfo.ZoneInfo(self.time_zone)
            except (zoneinfo.ZoneInfoNotFoundError, ValueError):
                logger.warning(
                    "organization_time_zone_invalid",
                    organization_id=self.pk,
                    time_zone=self.time_zone,
                )
        return zoneinfo.ZoneInfo(settings.BOOKING_DEFAULT_TIMEZONE)
