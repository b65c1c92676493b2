"""
Tests for the availability calculator.
"""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

import pytest
from django.test import override_settings

from apps.appointments.availability import (
    DayHours,
    business_hours_violation,
    day_of_week,
    exclude_busy,
    iter_candidate_slots,
    resolve_day_hours,
)
from apps.appointments.constants import Reason
from apps.appointments.exceptions import BookingValidationError
from tests.conftest import BEFORE_MONDAY, MONDAY, SUNDAY, at

NINE_TO_FIVE = DayHours(opens_at=time(9, 0), closes_at=time(17, 0))


class TestDayOfWeek:
    """Sunday-based day numbering."""

    def test_sunday_is_zero(self) -> None:
        assert day_of_week(SUNDAY) == 0

    def test_monday_is_one(self) -> None:
        assert day_of_week(MONDAY) == 1

    def test_saturday_is_six(self) -> None:
        assert day_of_week(date(2030, 1, 12)) == 6


class TestResolveDayHours:
    """Missing rows fall back to the configured default window."""

    def test_missing_row_uses_default_window(self) -> None:
        hours = resolve_day_hours(None, 1)

        assert hours == DayHours(opens_at=time(9, 0), closes_at=time(18, 0), is_closed=False)

    def test_missing_row_on_default_closed_day(self) -> None:
        hours = resolve_day_hours(None, 0)

        assert hours.is_closed is True
        assert hours.is_empty is True

    @override_settings(BOOKING_DEFAULT_CLOSED_DAYS=[0, 6], BOOKING_DEFAULT_CLOSES_AT="12:00")
    def test_default_window_is_configurable(self) -> None:
        assert resolve_day_hours(None, 6).is_closed is True
        assert resolve_day_hours(None, 2).closes_at == time(12, 0)

    def test_inverted_window_is_empty(self) -> None:
        assert DayHours(opens_at=time(17, 0), closes_at=time(9, 0)).is_empty is True


class TestIterCandidateSlots:
    """Candidate start generation."""

    def test_sixty_minute_service_on_nine_to_five(self) -> None:
        slots = list(iter_candidate_slots(MONDAY, 60, NINE_TO_FIVE, UTC, BEFORE_MONDAY))

        assert slots[0] == at(9, 0)
        assert slots[-1] == at(16, 0)
        assert len(slots) == 15
        assert at(16, 30) not in slots

    def test_slots_follow_the_interval_grid(self) -> None:
        slots = list(iter_candidate_slots(MONDAY, 30, NINE_TO_FIVE, UTC, BEFORE_MONDAY))

        assert slots[:3] == [at(9, 0), at(9, 30), at(10, 0)]
        assert slots[-1] == at(16, 30)

    def test_custom_interval(self) -> None:
        slots = list(
            iter_candidate_slots(MONDAY, 60, NINE_TO_FIVE, UTC, BEFORE_MONDAY, interval=60)
        )

        assert slots == [at(h) for h in range(9, 17)]

    def test_no_slot_overruns_closing(self) -> None:
        hours = DayHours(opens_at=time(9, 0), closes_at=time(10, 15))

        slots = list(iter_candidate_slots(MONDAY, 45, hours, UTC, BEFORE_MONDAY))

        assert slots == [at(9, 0), at(9, 30)]

    def test_service_longer_than_window_yields_nothing(self) -> None:
        hours = DayHours(opens_at=time(9, 0), closes_at=time(10, 0))

        assert list(iter_candidate_slots(MONDAY, 90, hours, UTC, BEFORE_MONDAY)) == []

    def test_closed_day_yields_nothing(self) -> None:
        hours = DayHours(opens_at=time(9, 0), closes_at=time(17, 0), is_closed=True)

        assert list(iter_candidate_slots(MONDAY, 60, hours, UTC, BEFORE_MONDAY)) == []

    def test_past_slots_are_dropped(self) -> None:
        now = at(12, 10)

        slots = list(iter_candidate_slots(MONDAY, 60, NINE_TO_FIVE, UTC, now))

        assert slots[0] == at(12, 30)

    def test_slot_equal_to_now_is_dropped(self) -> None:
        slots = list(iter_candidate_slots(MONDAY, 60, NINE_TO_FIVE, UTC, at(12, 0)))

        assert at(12, 0) not in slots
        assert slots[0] == at(12, 30)

    def test_slots_are_local_to_the_organization_timezone(self) -> None:
        tz = ZoneInfo("America/Sao_Paulo")

        slots = list(iter_candidate_slots(MONDAY, 60, NINE_TO_FIVE, tz, BEFORE_MONDAY))

        assert slots[0] == datetime(2030, 1, 7, 9, 0, tzinfo=tz)
        assert slots[0].astimezone(UTC) == at(12, 0)

    def test_non_positive_duration_raises(self) -> None:
        with pytest.raises(BookingValidationError):
            list(iter_candidate_slots(MONDAY, 0, NINE_TO_FIVE, UTC, BEFORE_MONDAY))

    def test_non_positive_interval_raises(self) -> None:
        with pytest.raises(BookingValidationError):
            list(iter_candidate_slots(MONDAY, 30, NINE_TO_FIVE, UTC, BEFORE_MONDAY, interval=0))

    def test_generator_is_lazy(self) -> None:
        slots = iter_candidate_slots(MONDAY, 30, NINE_TO_FIVE, UTC, BEFORE_MONDAY)

        assert next(slots) == at(9, 0)
        assert next(slots) == at(9, 30)


class TestExcludeBusy:
    """Dropping slots that overlap busy intervals."""

    def test_overlapping_slots_are_removed(self) -> None:
        slots = [at(9), at(9, 30), at(10), at(10, 30), at(11)]
        busy = [(at(10), at(11))]

        assert list(exclude_busy(slots, 60, busy)) == [at(9), at(11)]

    def test_touching_intervals_are_kept(self) -> None:
        slots = [at(9), at(11)]
        busy = [(at(10), at(11))]

        assert list(exclude_busy(slots, 60, busy)) == [at(9), at(11)]


class TestBusinessHoursViolation:
    """Concrete interval checks against the opening window."""

    def test_inside_window(self) -> None:
        assert business_hours_violation(at(16, 0), 60, NINE_TO_FIVE, UTC) is None

    def test_overrun_past_closing(self) -> None:
        result = business_hours_violation(at(16, 30), 60, NINE_TO_FIVE, UTC)

        assert result == Reason.OUTSIDE_BUSINESS_HOURS

    def test_before_opening(self) -> None:
        result = business_hours_violation(at(8, 30), 60, NINE_TO_FIVE, UTC)

        assert result == Reason.OUTSIDE_BUSINESS_HOURS

    def test_closed_day(self) -> None:
        hours = DayHours(opens_at=time(9, 0), closes_at=time(17, 0), is_closed=True)

        assert business_hours_violation(at(10, 0), 60, hours, UTC) == Reason.CLOSED

    def test_interval_crossing_midnight(self) -> None:
        hours = DayHours(opens_at=time(0, 0), closes_at=time(23, 59))

        result = business_hours_violation(at(23, 30), 60, hours, UTC)

        assert result == Reason.OUTSIDE_BUSINESS_HOURS

    def test_evaluated_in_organization_timezone(self) -> None:
        tz = ZoneInfo("America/Sao_Paulo")

        # 12:00 UTC is 09:00 in Sao Paulo (UTC-3, no DST in 2030)
        assert business_hours_violation(at(12, 0), 60, NINE_TO_FIVE, tz) is None
        assert business_hours_violation(at(9, 0), 60, NINE_TO_FIVE, tz) is not None
