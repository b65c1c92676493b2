"""
Tests for organizations app models and business logic.
"""

import zoneinfo
from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import override_settings
from django.utils import timezone

from apps.organizations.models import Organization, validate_time_zone
from tests.organizations.factories import OrganizationFactory


@pytest.mark.django_db
class TestOrganizationModel:
    """Tests for Organization model."""

    def test_new_organization_starts_on_trial(self) -> None:
        org = Organization.objects.create(name="Acme Salon", slug="acme")

        assert org.status == Organization.Status.TRIAL
        assert org.plan == "free"

    def test_str_returns_name(self) -> None:
        org = OrganizationFactory.create(name="Acme Salon")

        assert str(org) == "Acme Salon"

    def test_slug_unique(self) -> None:
        OrganizationFactory.create(slug="unique-slug")

        with pytest.raises(IntegrityError):
            OrganizationFactory.create(slug="unique-slug")


@pytest.mark.django_db
class TestAcceptsBookings:
    """Subscription status gates bookings."""

    def test_active_accepts(self) -> None:
        org = OrganizationFactory.create(status=Organization.Status.ACTIVE)

        assert org.accepts_bookings() is True

    def test_inactive_rejects(self) -> None:
        org = OrganizationFactory.create(status=Organization.Status.INACTIVE)

        assert org.accepts_bookings() is False

    def test_open_ended_trial_accepts(self) -> None:
        org = OrganizationFactory.create(status=Organization.Status.TRIAL, trial_ends_at=None)

        assert org.is_trial_expired() is False
        assert org.accepts_bookings() is True

    def test_running_trial_accepts(self) -> None:
        org = OrganizationFactory.create(
            status=Organization.Status.TRIAL,
            trial_ends_at=timezone.now() + timedelta(days=3),
        )

        assert org.accepts_bookings() is True

    def test_expired_trial_rejects(self) -> None:
        org = OrganizationFactory.create(
            status=Organization.Status.TRIAL,
            trial_ends_at=timezone.now() - timedelta(minutes=1),
        )

        assert org.is_trial_expired() is True
        assert org.accepts_bookings() is False

    def test_trial_end_is_ignored_once_active(self) -> None:
        org = OrganizationFactory.create(
            status=Organization.Status.ACTIVE,
            trial_ends_at=timezone.now() - timedelta(days=30),
        )

        assert org.is_trial_expired() is False
        assert org.accepts_bookings() is True

    def test_explicit_now(self) -> None:
        ends = timezone.now()
        org = OrganizationFactory.create(status=Organization.Status.TRIAL, trial_ends_at=ends)

        assert org.accepts_bookings(now=ends - timedelta(seconds=1)) is True
        assert org.accepts_bookings(now=ends + timedelta(seconds=1)) is False


class TestTimezone:
    def test_uses_configured_zone(self) -> None:
        org = Organization(time_zone="America/Sao_Paulo")

        assert org.tzinfo == zoneinfo.ZoneInfo("America/Sao_Paulo")

    @override_settings(BOOKING_DEFAULT_TIMEZONE="Europe/Lisbon")
    def test_falls_back_to_default(self) -> None:
        assert Organization(time_zone="").tzinfo == zoneinfo.ZoneInfo("Europe/Lisbon")

    @override_settings(BOOKING_DEFAULT_TIMEZONE="Europe/Lisbon")
    def test_unknown_zone_falls_back_to_default(self) -> None:
        assert Organization(time_zone="Mars/Olympus").tzinfo == zoneinfo.ZoneInfo("Europe/Lisbon")


class TestTimezoneValidation:
    """Organization.time_zone only accepts IANA names."""

    def test_rejects_unknown_zone(self) -> None:
        org = Organization(name="Acme", slug="acme", time_zone="Mars/Olympus")

        with pytest.raises(ValidationError) as exc_info:
            org.clean_fields()

        assert "time_zone" in exc_info.value.message_dict

    def test_rejects_path_like_name(self) -> None:
        with pytest.raises(ValidationError):
            validate_time_zone("../etc/passwd")

    def test_accepts_known_zone(self) -> None:
        Organization(name="Acme", slug="acme", time_zone="America/Sao_Paulo").clean_fields()

    def test_empty_means_default(self) -> None:
        validate_time_zone("")
