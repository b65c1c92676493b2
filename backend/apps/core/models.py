"""
Core models - shared base classes and utilities.
"""

from typing import Any

from django.db import models
from django.utils import timezone


class TimestampedModel(models.Model):
    """
    Abstract base model with created_at/updated_at timestamps.

    All business entities should inherit from this or TenantScopedModel.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class TenantScopedModel(TimestampedModel):
    """
    Abstract base model for all organization-scoped entities.

    Provides:
    - Automatic organization FK
    - Timestamps from TimestampedModel

    Queries against subclasses should go through
    ``apps.appointments.scope.TenantScope`` rather than the raw manager.

    Usage:
        class Service(TenantScopedModel):
            name = models.CharField(max_length=255)
    """

    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.CASCADE,
        related_name="%(class)s_set",
    )

    class Meta:
        abstract = True


class SoftDeleteQuerySet(models.QuerySet):
    """QuerySet whose delete() marks rows instead of removing them."""

    def delete(self) -> tuple[int, dict[str, int]]:  # type: ignore[override]
        """Soft delete every row in the queryset."""
        count = self.update(deleted_at=timezone.now(), updated_at=timezone.now())
        return count, {self.model._meta.label: count}

    def hard_delete(self) -> tuple[int, dict[str, int]]:
        """Permanently remove every row in the queryset."""
        return super().delete()

    def alive(self) -> "SoftDeleteQuerySet":
        return self.filter(deleted_at__isnull=True)

    def dead(self) -> "SoftDeleteQuerySet":
        return self.filter(deleted_at__isnull=False)


class SoftDeleteManager(models.Manager):
    """Default manager that hides soft-deleted rows."""

    def get_queryset(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db).alive()


class SoftDeleteAllManager(models.Manager):
    """Manager that includes soft-deleted rows."""

    def get_queryset(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db)

    def dead(self) -> SoftDeleteQuerySet:
        return self.get_queryset().dead()


class SoftDeleteMixin(models.Model):
    """
    Mixin adding a ``deleted_at`` tombstone.

    IMPORTANT: list this mixin before TimestampedModel in the bases so that
    soft_delete() can bump updated_at.
    """

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp when the row was soft deleted. NULL = alive.",
    )

    objects = SoftDeleteManager()
    all_objects = SoftDeleteAllManager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, update_timestamp: bool = True) -> None:
        """Mark this row as deleted without removing it."""
        self.deleted_at = timezone.now()
        update_fields = ["deleted_at"]
        if update_timestamp and hasattr(self, "updated_at"):
            update_fields.append("updated_at")
        self.save(update_fields=update_fields)

    def restore(self) -> None:
        """Clear the tombstone."""
        self.deleted_at = None
        update_fields = ["deleted_at"]
        if hasattr(self, "updated_at"):
            update_fields.append("updated_at")
        self.save(update_fields=update_fields)

    def hard_delete(self, *args: Any, **kwargs: Any) -> tuple[int, dict[str, int]]:
        """Permanently remove this row."""
        return super().delete(*args, **kwargs)
