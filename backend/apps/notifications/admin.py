"""
Admin configuration for notifications app.
"""

from django.contrib import admin

from apps.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin for the notification outbox."""

    list_display = [
        "id",
        "organization",
        "template",
        "channel",
        "status",
        "scheduled_for",
        "attempts",
        "sent_at",
    ]
    list_filter = ["status", "channel", "template"]
    search_fields = ["recipient_email", "recipient_phone"]
    readonly_fields = ["attempts", "next_attempt_at", "last_error", "sent_at", "created_at"]
    raw_id_fields = ["organization", "appointment", "customer"]
