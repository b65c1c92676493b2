"""
Tests for the conflict gate.
"""

from datetime import time, timedelta

import pytest

from apps.appointments.conflicts import (
    BookingDecision,
    ConflictGate,
    intervals_overlap,
    peak_concurrency,
)
from apps.appointments.constants import Reason, UnassignedPolicy
from apps.appointments.exceptions import BookingValidationError, NotFoundError
from apps.appointments.models import Appointment
from apps.appointments.scope import TenantScope
from apps.organizations.models import Organization
from tests.appointments.factories import AppointmentFactory
from tests.catalog.factories import BusinessHoursFactory, StaffFactory
from tests.conftest import BEFORE_MONDAY, SUNDAY, at
from tests.organizations.factories import OrganizationFactory


class TestIntervalHelpers:
    """Pure interval arithmetic."""

    def test_overlap(self) -> None:
        assert intervals_overlap(at(10), at(11), at(10, 30), at(11, 30)) is True

    def test_touching_is_not_overlap(self) -> None:
        assert intervals_overlap(at(10), at(11), at(11), at(12)) is False

    def test_peak_concurrency_counts_simultaneous_intervals(self) -> None:
        intervals = [(at(10), at(11)), (at(10, 30), at(11, 30)), (at(11), at(12))]

        assert peak_concurrency(intervals, at(9), at(13)) == 2

    def test_peak_concurrency_ends_before_starts(self) -> None:
        intervals = [(at(10), at(11)), (at(11), at(12))]

        assert peak_concurrency(intervals, at(10), at(12)) == 1

    def test_peak_concurrency_clips_to_window(self) -> None:
        intervals = [(at(9), at(10)), (at(10), at(11))]

        assert peak_concurrency(intervals, at(10), at(11)) == 1


class TestBookingDecision:
    """Wire shape of a decision."""

    def test_ok_has_only_available(self) -> None:
        assert BookingDecision.ok().as_dict() == {"available": True}

    def test_reject_uses_default_message(self) -> None:
        data = BookingDecision.reject(Reason.CLOSED).as_dict()

        assert data == {
            "available": False,
            "reason": "closed",
            "message": "The business is closed on this day.",
        }


@pytest.mark.django_db
class TestOrganizationState:
    """Subscription state is checked first."""

    def test_inactive_organization_is_rejected(self, monday_hours, staff) -> None:
        org = monday_hours.organization
        org.status = Organization.Status.INACTIVE
        org.save()

        decision = ConflictGate(TenantScope(org)).check(
            at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.available is False
        assert decision.reason == Reason.ORGANIZATION_INACTIVE

    def test_expired_trial_is_rejected(self, monday_hours) -> None:
        org = monday_hours.organization
        org.status = Organization.Status.TRIAL
        org.trial_ends_at = BEFORE_MONDAY - timedelta(days=1)
        org.save()

        decision = ConflictGate(TenantScope(org)).check(at(10), 60, now=BEFORE_MONDAY)

        assert decision.reason == Reason.TRIAL_EXPIRED

    def test_running_trial_is_allowed(self, monday_hours) -> None:
        org = monday_hours.organization
        org.status = Organization.Status.TRIAL
        org.trial_ends_at = BEFORE_MONDAY + timedelta(days=30)
        org.save()

        decision = ConflictGate(TenantScope(org)).check(at(10), 60, now=BEFORE_MONDAY)

        assert decision.available is True

    def test_organization_state_beats_double_booking(self, monday_hours, staff) -> None:
        org = monday_hours.organization
        AppointmentFactory.create(organization=org, staff=staff, scheduled_at=at(10))
        org.status = Organization.Status.INACTIVE
        org.save()

        decision = ConflictGate(TenantScope(org)).check(
            at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.reason == Reason.ORGANIZATION_INACTIVE


@pytest.mark.django_db
class TestStaffOverlap:
    """Double-booking detection for an assigned staff member."""

    @pytest.fixture
    def booked(self, monday_hours, staff, service):
        """Staff booked 10:00-11:00."""
        return AppointmentFactory.create(
            organization=monday_hours.organization,
            staff=staff,
            service=service,
            scheduled_at=at(10),
            status=Appointment.Status.CONFIRMED,
        )

    def test_overlapping_slot_is_double_booking(self, scope, staff, booked) -> None:
        decision = ConflictGate(scope).check(at(10, 30), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.available is False
        assert decision.reason == Reason.DOUBLE_BOOKING
        assert decision.conflicting_ids == (booked.id,)

    def test_touching_slot_is_available(self, scope, staff, booked) -> None:
        decision = ConflictGate(scope).check(at(11), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.available is True

    def test_slot_ending_at_start_is_available(self, scope, staff, booked) -> None:
        decision = ConflictGate(scope).check(at(9), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.available is True

    def test_other_staff_is_not_affected(self, scope, organization, booked) -> None:
        other = StaffFactory.create(organization=organization)

        decision = ConflictGate(scope).check(at(10), 60, staff_id=other.id, now=BEFORE_MONDAY)

        assert decision.available is True

    @pytest.mark.parametrize(
        "status",
        [Appointment.Status.CANCELLED, Appointment.Status.COMPLETED, Appointment.Status.NO_SHOW],
    )
    def test_terminal_appointments_do_not_block(self, scope, staff, booked, status) -> None:
        Appointment.objects.filter(pk=booked.pk).update(status=status)

        decision = ConflictGate(scope).check(at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.available is True

    def test_soft_deleted_appointments_do_not_block(self, scope, staff, booked) -> None:
        booked.soft_delete()

        decision = ConflictGate(scope).check(at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.available is True

    def test_excluded_appointment_is_ignored(self, scope, staff, booked) -> None:
        decision = ConflictGate(scope).check(
            at(10, 30),
            60,
            staff_id=staff.id,
            exclude_appointment_id=booked.id,
            now=BEFORE_MONDAY,
        )

        assert decision.available is True

    def test_unknown_staff_raises_not_found(self, scope, monday_hours) -> None:
        with pytest.raises(NotFoundError):
            ConflictGate(scope).check(at(10), 60, staff_id=999_999, now=BEFORE_MONDAY)

    def test_staff_of_another_organization_raises_not_found(self, scope, monday_hours) -> None:
        foreign = StaffFactory.create(organization=OrganizationFactory.create())

        with pytest.raises(NotFoundError):
            ConflictGate(scope).check(at(10), 60, staff_id=foreign.id, now=BEFORE_MONDAY)


@pytest.mark.django_db
class TestUnassignedBookings:
    """Policy for requests without a staff member."""

    def test_pool_rejects_when_every_staff_is_busy(self, scope, monday_hours, staff) -> None:
        AppointmentFactory.create(organization=scope.organization, scheduled_at=at(10))

        decision = ConflictGate(scope, policy=UnassignedPolicy.POOL).check(
            at(10, 30), 60, now=BEFORE_MONDAY
        )

        assert decision.reason == Reason.DOUBLE_BOOKING
        assert decision.message == "No staff member is free at the requested time."

    def test_pool_allows_while_capacity_remains(self, scope, monday_hours, staff) -> None:
        StaffFactory.create(organization=scope.organization)
        AppointmentFactory.create(organization=scope.organization, scheduled_at=at(10))

        decision = ConflictGate(scope, policy=UnassignedPolicy.POOL).check(
            at(10, 30), 60, now=BEFORE_MONDAY
        )

        assert decision.available is True

    def test_pool_capacity_is_at_least_one(self, scope, monday_hours) -> None:
        decision = ConflictGate(scope, policy=UnassignedPolicy.POOL).check(
            at(10), 60, now=BEFORE_MONDAY
        )

        assert decision.available is True

    def test_bypass_skips_overlap_check(self, scope, monday_hours, staff) -> None:
        AppointmentFactory.create(organization=scope.organization, scheduled_at=at(10))

        decision = ConflictGate(scope, policy=UnassignedPolicy.BYPASS).check(
            at(10), 60, now=BEFORE_MONDAY
        )

        assert decision.available is True

    def test_bypass_still_checks_business_hours(self, scope, monday_hours) -> None:
        decision = ConflictGate(scope, policy=UnassignedPolicy.BYPASS).check(
            at(16, 30), 60, now=BEFORE_MONDAY
        )

        assert decision.reason == Reason.OUTSIDE_BUSINESS_HOURS


@pytest.mark.django_db
class TestBusinessHours:
    """Opening window checks."""

    def test_last_slot_before_closing_is_accepted(self, scope, monday_hours, staff) -> None:
        decision = ConflictGate(scope).check(at(16), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.available is True

    def test_overrun_is_rejected_with_window_in_message(self, scope, monday_hours, staff) -> None:
        decision = ConflictGate(scope).check(
            at(16, 30), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.reason == Reason.OUTSIDE_BUSINESS_HOURS
        assert "Open from 09:00 to 17:00" in decision.message

    def test_closed_row_is_rejected(self, scope, staff) -> None:
        BusinessHoursFactory.create(
            organization=scope.organization,
            day_of_week=1,
            opens_at=time(9),
            closes_at=time(17),
            is_closed=True,
        )

        decision = ConflictGate(scope).check(at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY)

        assert decision.reason == Reason.CLOSED

    def test_missing_row_uses_default_window(self, scope, staff) -> None:
        gate = ConflictGate(scope)

        assert gate.check(at(17), 60, staff_id=staff.id, now=BEFORE_MONDAY).available is True
        assert (
            gate.check(at(17, 30), 60, staff_id=staff.id, now=BEFORE_MONDAY).reason
            == Reason.OUTSIDE_BUSINESS_HOURS
        )

    def test_sunday_without_row_is_closed(self, scope, staff) -> None:
        decision = ConflictGate(scope).check(
            at(10, day=SUNDAY), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.reason == Reason.CLOSED


@pytest.mark.django_db
class TestInputValidation:
    """Malformed requests raise instead of returning a decision."""

    def test_naive_start_raises(self, scope, monday_hours) -> None:
        with pytest.raises(BookingValidationError):
            ConflictGate(scope).check(at(10).replace(tzinfo=None), 60)

    def test_non_positive_duration_raises(self, scope, monday_hours) -> None:
        with pytest.raises(BookingValidationError):
            ConflictGate(scope).check(at(10), 0)


@pytest.mark.django_db
class TestPoolCapacityForAssignedBookings:
    """Unassigned appointments occupy pool capacity that assigned bookings share."""

    def test_assigned_booking_is_rejected_when_pool_is_full(
        self, scope, monday_hours, staff
    ) -> None:
        unassigned = AppointmentFactory.create(organization=scope.organization, scheduled_at=at(10))

        decision = ConflictGate(scope, policy=UnassignedPolicy.POOL).check(
            at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.reason == Reason.DOUBLE_BOOKING
        assert decision.conflicting_ids == (unassigned.id,)

    def test_assigned_booking_fits_while_capacity_remains(
        self, scope, monday_hours, staff
    ) -> None:
        StaffFactory.create(organization=scope.organization)
        AppointmentFactory.create(organization=scope.organization, scheduled_at=at(10))

        decision = ConflictGate(scope, policy=UnassignedPolicy.POOL).check(
            at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.available is True

    def test_bypass_only_checks_own_calendar(self, scope, monday_hours, staff) -> None:
        AppointmentFactory.create(organization=scope.organization, scheduled_at=at(10))

        decision = ConflictGate(scope, policy=UnassignedPolicy.BYPASS).check(
            at(10), 60, staff_id=staff.id, now=BEFORE_MONDAY
        )

        assert decision.available is True
