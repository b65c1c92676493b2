"""
Admin configuration for customers app.
"""

from django.contrib import admin

from apps.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    """Admin for customers. Visit statistics are read-only."""

    list_display = [
        "name",
        "organization",
        "email",
        "phone",
        "is_vip",
        "total_visits",
        "no_shows",
        "last_visit_at",
    ]
    list_filter = ["is_vip"]
    search_fields = ["name", "email", "phone"]
    readonly_fields = ["total_visits", "total_spent", "no_shows", "last_visit_at"]
    raw_id_fields = ["organization"]
