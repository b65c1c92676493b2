"""
Availability calculation.

Pure functions that turn a day's opening window into candidate start times.
Nothing here touches the database; callers pass in the BusinessHours row
(or None) they loaded, the organization timezone and the current instant,
so results are deterministic and cheap to recompute on every UI change.

Day-of-week numbering is 0 = Sunday ... 6 = Saturday.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import TYPE_CHECKING

from django.conf import settings

from apps.appointments.constants import Reason
from apps.appointments.exceptions import BookingValidationError

if TYPE_CHECKING:
    from apps.catalog.models import BusinessHours


@dataclass(frozen=True)
class DayHours:
    """Resolved opening window for one calendar day."""

    opens_at: time
    closes_at: time
    is_closed: bool = False

    @property
    def is_empty(self) -> bool:
        return self.is_closed or self.opens_at >= self.closes_at


def day_of_week(day: date) -> int:
    """Convert Python's Monday=0 weekday into Sunday=0 numbering."""
    return (day.weekday() + 1) % 7


def default_day_hours(dow: int) -> DayHours:
    """Fallback window used when an organization has no row for the day."""
    return DayHours(
        opens_at=time.fromisoformat(settings.BOOKING_DEFAULT_OPENS_AT),
        closes_at=time.fromisoformat(settings.BOOKING_DEFAULT_CLOSES_AT),
        is_closed=dow in settings.BOOKING_DEFAULT_CLOSED_DAYS,
    )


def resolve_day_hours(row: "BusinessHours | None", dow: int) -> DayHours:
    """
    Resolve the opening window for a day of the week.

    A missing row is not "closed": the default window applies, except on
    the configured default-closed days.
    """
    if row is None:
        return default_day_hours(dow)
    return DayHours(opens_at=row.opens_at, closes_at=row.closes_at, is_closed=row.is_closed)


def iter_candidate_slots(
    day: date,
    duration: int,
    hours: DayHours,
    tz: tzinfo,
    now: datetime,
    interval: int | None = None,
) -> Iterator[datetime]:
    """
    Lazily yield bookable start times for a day, in order.

    Every yielded start satisfies:
    - start >= opens_at (local time)
    - start + duration <= closes_at (no overrun past closing)
    - start > now (no booking in the past)

    Args:
        day: Calendar date in the organization's timezone
        duration: Service duration in minutes
        hours: Resolved opening window for the day
        tz: Organization timezone
        now: Current instant (timezone-aware)
        interval: Grid step in minutes (defaults to BOOKING_SLOT_INTERVAL_MINUTES)

    Yields:
        Timezone-aware start datetimes in the organization's timezone

    Raises:
        BookingValidationError: If duration or interval is not positive
    """
    step_minutes = interval if interval is not None else settings.BOOKING_SLOT_INTERVAL_MINUTES
    if duration <= 0:
        raise BookingValidationError("Duration must be a positive number of minutes.")
    if step_minutes <= 0:
        raise BookingValidationError("Slot interval must be a positive number of minutes.")
    if hours.is_empty:
        return

    length = timedelta(minutes=duration)
    step = timedelta(minutes=step_minutes)
    cursor = datetime.combine(day, hours.opens_at, tzinfo=tz)
    closing = datetime.combine(day, hours.closes_at, tzinfo=tz)

    while cursor + length <= closing:
        if cursor > now:
            yield cursor
        cursor += step


def exclude_busy(
    slots: Iterable[datetime],
    duration: int,
    busy: list[tuple[datetime, datetime]],
) -> Iterator[datetime]:
    """Drop slots whose [start, start + duration) overlaps any busy interval."""
    length = timedelta(minutes=duration)
    for start in slots:
        end = start + length
        if not any(start < busy_end and end > busy_start for busy_start, busy_end in busy):
            yield start


def business_hours_violation(
    start: datetime,
    duration: int,
    hours: DayHours,
    tz: tzinfo,
) -> Reason | None:
    """
    Check a concrete interval against the day's opening window.

    Returns:
        Reason.CLOSED, Reason.OUTSIDE_BUSINESS_HOURS, or None when it fits
    """
    if hours.is_closed:
        return Reason.CLOSED

    local_start = start.astimezone(tz)
    local_end = (start + timedelta(minutes=duration)).astimezone(tz)

    if local_end.date() != local_start.date():
        return Reason.OUTSIDE_BUSINESS_HOURS
    if local_start.time() < hours.opens_at or local_end.time() > hours.closes_at:
        return Reason.OUTSIDE_BUSINESS_HOURS
    return None
