"""
Notification models - outbox of customer messages.

Rows are written in the same transaction as the appointment change that
triggers them, then delivered by the dispatch_notifications command.
"""

from datetime import timedelta

from django.db import models
from django.utils import timezone

from apps.core.models import TenantScopedModel


class Notification(TenantScopedModel):
    """
    A message queued for delivery to a customer.

    The booking engine only enqueues; delivery, retries and channel
    configuration belong to the dispatcher.
    """

    class Channel(models.TextChoices):
        EMAIL = "email", "Email"
        WHATSAPP = "whatsapp", "WhatsApp"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        SENT = "sent", "Sent"
        FAILED = "failed", "Failed"
        CANCELLED = "cancelled", "Cancelled"

    appointment = models.ForeignKey(
        "appointments.Appointment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    channel = models.CharField(max_length=20, choices=Channel.choices)
    template = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Template key, e.g. 'confirmation' or 'reminder_24h'",
    )
    recipient_email = models.EmailField(blank=True, default="")
    recipient_phone = models.CharField(max_length=32, blank=True, default="")
    subject = models.CharField(max_length=255, blank=True, default="")
    message = models.TextField()

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    scheduled_for = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Earliest time the message may be sent",
    )
    sent_at = models.DateTimeField(null=True, blank=True)

    # Retry tracking
    attempts = models.PositiveIntegerField(default=0)
    next_attempt_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When to retry sending (exponential backoff)",
    )
    last_error = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["scheduled_for"]
        indexes = [
            # Dispatcher query: due pending messages
            models.Index(fields=["status", "scheduled_for"], name="notificatio_status_4c1e7b_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.template} via {self.channel} ({self.status})"

    def mark_sent(self) -> None:
        """Mark message as delivered."""
        self.status = self.Status.SENT
        self.sent_at = timezone.now()
        self.last_error = ""
        self.next_attempt_at = None
        self.save(update_fields=["status", "sent_at", "last_error", "next_attempt_at", "updated_at"])

    def mark_failed(self, error: str, max_attempts: int = 5) -> None:
        """
        Record a failed attempt and schedule a retry with exponential backoff.

        After max_attempts, status becomes FAILED permanently.
        """
        self.attempts += 1
        self.last_error = error

        if self.attempts >= max_attempts:
            self.status = self.Status.FAILED
            self.next_attempt_at = None
        else:
            # 2s, 4s, 8s... capped at 10 minutes
            delay_seconds = min(2**self.attempts, 600)
            self.next_attempt_at = timezone.now() + timedelta(seconds=delay_seconds)

        self.save(
            update_fields=["attempts", "last_error", "status", "next_attempt_at", "updated_at"]
        )
