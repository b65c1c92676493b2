"""
Admin configuration for organizations app.
"""

from django.contrib import admin

from apps.organizations.models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Admin for tenants and their subscription state."""

    list_display = ["name", "slug", "status", "plan", "trial_ends_at", "time_zone", "created_at"]
    list_filter = ["status", "plan"]
    search_fields = ["name", "slug", "email"]
    prepopulated_fields = {"slug": ("name",)}
