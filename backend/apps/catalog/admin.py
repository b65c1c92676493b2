"""
Admin configuration for catalog app.
"""

from django.contrib import admin

from apps.catalog.models import BusinessHours, Service, Staff


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ["name", "organization", "duration", "price", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "organization__name"]
    raw_id_fields = ["organization"]


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ["name", "organization", "email", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "email", "organization__name"]
    raw_id_fields = ["organization"]


@admin.register(BusinessHours)
class BusinessHoursAdmin(admin.ModelAdmin):
    list_display = ["organization", "day_of_week", "opens_at", "closes_at", "is_closed"]
    list_filter = ["day_of_week", "is_closed"]
    raw_id_fields = ["organization"]
