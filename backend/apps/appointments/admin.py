"""
Admin configuration for appointments app.

Status is read-only here: transitions must go through the lifecycle so
customer statistics stay consistent.
"""

from django.contrib import admin

from apps.appointments.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "organization",
        "scheduled_at",
        "duration",
        "status",
        "customer",
        "service",
        "staff",
        "is_deleted",
    ]
    list_filter = ["status", "scheduled_at"]
    search_fields = ["customer__name", "customer__email", "request_token"]
    readonly_fields = ["status", "ends_at", "request_token", "deleted_at", "created_at"]
    raw_id_fields = ["organization", "customer", "service", "staff"]

    def get_queryset(self, request):
        return Appointment.all_objects.select_related("organization", "customer", "service", "staff")

    @admin.display(boolean=True, description="Deleted")
    def is_deleted(self, obj: Appointment) -> bool:
        return obj.is_deleted
