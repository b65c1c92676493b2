import apps.organizations.models
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "slug",
                    models.SlugField(
                        help_text="URL-safe identifier used by the public booking page, e.g. 'acme-salon'",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("trial", "Trial"), ("inactive", "Inactive")],
                        db_index=True,
                        default="trial",
                        max_length=20,
                    ),
                ),
                (
                    "trial_ends_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="End of the trial period. NULL = open-ended trial.",
                        null=True,
                    ),
                ),
                ("plan", models.CharField(default="free", max_length=50)),
                (
                    "time_zone",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="IANA timezone for business hours, e.g. 'America/Sao_Paulo'. Empty = default.",
                        max_length=64,
                        validators=[apps.organizations.models.validate_time_zone],
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
