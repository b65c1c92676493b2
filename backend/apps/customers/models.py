"""
Customer models.

Visit statistics on Customer are the audit trail of appointment outcomes.
Only apps.appointments.lifecycle writes them, always with F() expressions.
"""

from decimal import Decimal

from django.db import models

from apps.core.models import TenantScopedModel


class Customer(TenantScopedModel):
    """A person who books appointments with an organization."""

    name = models.CharField(max_length=255)
    email = models.EmailField(
        blank=True,
        default="",
        help_text="Lower-cased email used to match returning customers",
    )
    phone = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Digits-only phone used to match returning customers",
    )
    notes = models.TextField(blank=True, default="")
    is_vip = models.BooleanField(default=False)

    # Derived statistics (written only by the appointment lifecycle)
    total_visits = models.PositiveIntegerField(default=0, editable=False)
    total_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        editable=False,
    )
    no_shows = models.PositiveIntegerField(default=0, editable=False)
    last_visit_at = models.DateTimeField(null=True, blank=True, editable=False)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "email"],
                condition=~models.Q(email=""),
                name="customer_unique_email_per_org",
            ),
            models.UniqueConstraint(
                fields=["organization", "phone"],
                condition=~models.Q(phone=""),
                name="customer_unique_phone_per_org",
            ),
        ]

    def __str__(self) -> str:
        return self.name
