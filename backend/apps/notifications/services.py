"""
Notification services - enqueueing and dispatching customer messages.

Call these inside the transaction.atomic() block that changes the
appointment, so a message exists if and only if the change committed.
The dispatcher side (claim and send) runs from the dispatch_notifications
management command.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.appointments.models import Appointment
from apps.core.logging import get_logger
from apps.notifications.models import Notification
from apps.notifications.senders import get_sender

logger = get_logger(__name__)

Channel = Notification.Channel


@dataclass(frozen=True)
class NotificationTemplate:
    """A message template and the channels it is sent on."""

    key: str
    channels: tuple[str, ...]
    subject: str
    body: str


TEMPLATES: dict[str, NotificationTemplate] = {
    t.key: t
    for t in (
        NotificationTemplate(
            key="booking_received",
            channels=(Channel.EMAIL, Channel.WHATSAPP),
            subject="We received your booking",
            body=(
                "Hi {customer_name}! We received your booking for {service} at "
                "{business_name} on {date} at {time}. We will confirm it shortly."
            ),
        ),
        NotificationTemplate(
            key="confirmation",
            channels=(Channel.EMAIL, Channel.WHATSAPP),
            subject="Your appointment is confirmed",
            body=(
                "Hi {customer_name}! Your {service} appointment at {business_name} "
                "is confirmed for {date} at {time}. See you soon!"
            ),
        ),
        NotificationTemplate(
            key="reminder_24h",
            channels=(Channel.WHATSAPP,),
            subject="Appointment reminder",
            body=(
                "Reminder: you have an appointment for {service} at {business_name} "
                "on {date} at {time}."
            ),
        ),
        NotificationTemplate(
            key="rescheduled",
            channels=(Channel.EMAIL, Channel.WHATSAPP),
            subject="Your appointment was rescheduled",
            body=(
                "Hi {customer_name}! Your {service} appointment at {business_name} "
                "was moved to {date} at {time}."
            ),
        ),
        NotificationTemplate(
            key="cancellation",
            channels=(Channel.EMAIL, Channel.WHATSAPP),
            subject="Your appointment was cancelled",
            body=(
                "Hi {customer_name}, your {service} appointment at {business_name} "
                "on {date} at {time} was cancelled."
            ),
        ),
        NotificationTemplate(
            key="feedback",
            channels=(Channel.EMAIL,),
            subject="How was your visit?",
            body=(
                "Hi {customer_name}! Thank you for visiting {business_name}. "
                "We would love to hear about your experience."
            ),
        ),
        NotificationTemplate(
            key="no_show",
            channels=(Channel.EMAIL, Channel.WHATSAPP),
            subject="We missed you today",
            body=(
                "Hi {customer_name}, we missed you today! Would you like to "
                "rebook your {service} at {business_name}?"
            ),
        ),
    )
}

REMINDER_TEMPLATE = "reminder_24h"

STATUS_TEMPLATES: dict[str, str] = {
    Appointment.Status.CONFIRMED: "confirmation",
    Appointment.Status.CANCELLED: "cancellation",
    Appointment.Status.COMPLETED: "feedback",
    Appointment.Status.NO_SHOW: "no_show",
}


def _render_context(appointment: Appointment) -> dict[str, str]:
    organization = appointment.organization
    local_start = appointment.scheduled_at.astimezone(organization.tzinfo)
    return {
        "customer_name": appointment.customer.name,
        "service": appointment.service.name,
        "business_name": organization.name,
        "date": local_start.strftime("%Y-%m-%d"),
        "time": local_start.strftime("%H:%M"),
    }


def enqueue_template(
    appointment: Appointment,
    template_key: str,
    scheduled_for: datetime | None = None,
) -> list[Notification]:
    """
    Queue one message per template channel the customer can be reached on.

    Returns:
        The created Notification rows (empty if the customer has no
        matching contact)
    """
    template = TEMPLATES[template_key]
    customer = appointment.customer
    context = _render_context(appointment)
    message = template.body.format(**context)

    created: list[Notification] = []
    for channel in template.channels:
        if channel == Channel.EMAIL and not customer.email:
            continue
        if channel == Channel.WHATSAPP and not customer.phone:
            continue
        created.append(
            Notification.objects.create(
                organization_id=appointment.organization_id,
                appointment=appointment,
                customer=customer,
                channel=channel,
                template=template.key,
                recipient_email=customer.email if channel == Channel.EMAIL else "",
                recipient_phone=customer.phone if channel == Channel.WHATSAPP else "",
                subject=template.subject,
                message=message,
                scheduled_for=scheduled_for or timezone.now(),
            )
        )

    if created:
        logger.debug(
            "notifications_enqueued",
            template=template.key,
            appointment_id=appointment.pk,
            count=len(created),
        )
    return created


def schedule_reminders(appointment: Appointment, now: datetime | None = None) -> list[Notification]:
    """Queue the pre-appointment reminder if its send time is still ahead."""
    now = now or timezone.now()
    send_at = appointment.scheduled_at - timedelta(hours=settings.NOTIFICATION_REMINDER_HOURS)
    if send_at <= now:
        return []
    return enqueue_template(appointment, REMINDER_TEMPLATE, scheduled_for=send_at)


def cancel_pending_reminders(appointment: Appointment) -> int:
    """Cancel reminders that were queued but not yet sent."""
    return Notification.objects.filter(
        organization_id=appointment.organization_id,
        appointment=appointment,
        template=REMINDER_TEMPLATE,
        status=Notification.Status.PENDING,
    ).update(status=Notification.Status.CANCELLED, updated_at=timezone.now())


def notify_appointment_created(
    appointment: Appointment, now: datetime | None = None
) -> list[Notification]:
    """Acknowledge a new booking and queue its reminder."""
    template = (
        "confirmation" if appointment.status == Appointment.Status.CONFIRMED else "booking_received"
    )
    created = enqueue_template(appointment, template)
    created += schedule_reminders(appointment, now)
    return created


def notify_status_changed(
    appointment: Appointment, new_status: str, now: datetime | None = None
) -> list[Notification]:
    """Queue the message tied to a status transition."""
    # A terminal status ends the reminder schedule
    if new_status in (
        Appointment.Status.CANCELLED,
        Appointment.Status.COMPLETED,
        Appointment.Status.NO_SHOW,
    ):
        cancel_pending_reminders(appointment)
    template = STATUS_TEMPLATES.get(new_status)
    if template is None:
        return []
    return enqueue_template(appointment, template)


def notify_appointment_rescheduled(
    appointment: Appointment, now: datetime | None = None
) -> list[Notification]:
    """Replace pending reminders and tell the customer about the new time."""
    cancel_pending_reminders(appointment)
    created = enqueue_template(appointment, "rescheduled")
    created += schedule_reminders(appointment, now)
    return created


@dataclass
class DispatchStats:
    """Counts for one dispatcher batch."""

    claimed: int = 0
    sent: int = 0
    failed: int = 0


CLAIM_LEASE_SECONDS = 300


def claim_due_notifications(batch_size: int, now: datetime | None = None) -> list[Notification]:
    """
    Claim a batch of due pending notifications for this worker.

    Rows are selected with SKIP LOCKED and leased by pushing next_attempt_at
    forward, so a concurrent worker neither blocks on nor re-sends them.
    """
    now = now or timezone.now()
    with transaction.atomic():
        batch = list(
            Notification.objects.select_for_update(skip_locked=True)
            .filter(status=Notification.Status.PENDING, scheduled_for__lte=now)
            .filter(Q(next_attempt_at__isnull=True) | Q(next_attempt_at__lte=now))
            .order_by("scheduled_for")[:batch_size]
        )
        if batch:
            Notification.objects.filter(pk__in=[n.pk for n in batch]).update(
                next_attempt_at=now + timedelta(seconds=CLAIM_LEASE_SECONDS)
            )
    return batch


def dispatch_due_notifications(
    batch_size: int = 100,
    max_attempts: int | None = None,
    now: datetime | None = None,
) -> DispatchStats:
    """Send one batch of due notifications through their channel senders."""
    max_attempts = max_attempts or settings.NOTIFICATION_MAX_ATTEMPTS
    stats = DispatchStats()

    for notification in claim_due_notifications(batch_size, now):
        stats.claimed += 1
        result = get_sender(notification.channel).send(notification)

        if result.success:
            notification.mark_sent()
            stats.sent += 1
            logger.info(
                "notification_sent",
                notification_id=notification.pk,
                channel=notification.channel,
                template=notification.template,
                recipient=notification.recipient_email or notification.recipient_phone,
                duration_ms=result.duration_ms,
            )
        else:
            notification.mark_failed(result.error, max_attempts)
            stats.failed += 1
            logger.warning(
                "notification_send_failed",
                notification_id=notification.pk,
                channel=notification.channel,
                recipient=notification.recipient_email or notification.recipient_phone,
                attempts=notification.attempts,
                http_status=result.http_status,
                error=result.error,
            )

    return stats
