import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("customers", "0001_initial"),
        ("organizations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Appointment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Timestamp when the row was soft deleted. NULL = alive.",
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("scheduled_at", models.DateTimeField(db_index=True)),
                (
                    "ends_at",
                    models.DateTimeField(
                        editable=False, help_text="scheduled_at + duration, maintained on save"
                    ),
                ),
                (
                    "duration",
                    models.PositiveIntegerField(help_text="Minutes, copied from the service"),
                ),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2, help_text="Price copied from the service", max_digits=10
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("no_show", "No show"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "request_token",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Client-generated idempotency token for safe retries",
                        max_length=64,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="appointments",
                        to="customers.customer",
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="%(class)s_set",
                        to="organizations.organization",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="appointments",
                        to="catalog.service",
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        help_text="Assigned staff member. NULL = any staff member.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="appointments",
                        to="catalog.staff",
                    ),
                ),
            ],
            options={
                "ordering": ["scheduled_at"],
                "indexes": [
                    models.Index(
                        fields=["staff", "scheduled_at", "ends_at"],
                        name="appointment_staff_i_6f0d1c_idx",
                    ),
                    models.Index(
                        fields=["organization", "scheduled_at"],
                        name="appointment_organiz_2b8e4a_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("request_token", ""), _negated=True),
                        fields=("organization", "request_token"),
                        name="appointment_unique_request_token",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("duration__gt", 0)),
                        name="appointment_duration_positive",
                    ),
                ],
            },
        ),
    ]
