"""Slot allocation for a single-chair shop.

Everything above ``get_open_slots_for_date`` is pure: callers pass the clock in,
and bad input degrades to "no slots" instead of raising.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.core.config import Settings
from app.models.appointment import Appointment
from app.services import catalog
from app.services.repository import AppointmentRepository, BlockedDateStore
from app.services.time_utils import (
    Interval,
    TimeSlot,
    ceil_to_grid,
    local_day_bounds_utc,
    minutes_of_day,
    minutes_of_day_ceil,
    utc_to_local,
)


@dataclass(frozen=True)
class BookingWindow:
    """Rolling range of shop-local instants customers may book into."""

    start: datetime
    end: datetime

    @property
    def last_day(self) -> date:
        return self.end.date()

    @property
    def last_bookable_day(self) -> date:
        """Last day ``contains_day`` accepts; a window ending at midnight excludes that day."""
        if self.end.time() == time.min:
            return self.last_day - timedelta(days=1)
        return self.last_day

    def contains_day(self, day: date) -> bool:
        return self.start.date() <= day and datetime.combine(day, time.min) < self.end.replace(tzinfo=None)

    def closing_minutes(self, day: date, granularity_minutes: int) -> int | None:
        """Exclusive limit for slot starts on ``day``, or None when the window does not cut it.

        The final day stays open until the first grid boundary past the
        window's closing time of day.
        """
        if day != self.last_day:
            return None
        return ceil_to_grid(minutes_of_day(self.end) + granularity_minutes, granularity_minutes)


def booking_window(now: datetime, days: int, min_booking_date: date | None = None) -> BookingWindow:
    start = now
    if min_booking_date is not None and min_booking_date > now.date():
        start = datetime.combine(min_booking_date, time.min, tzinfo=now.tzinfo)
    return BookingWindow(start=start, end=start + timedelta(days=days))


def is_bookable_day(
    day: date,
    window: BookingWindow,
    blocked_dates: Iterable[date] = (),
    closed_weekdays: Iterable[int] = (),
) -> bool:
    if not window.contains_day(day):
        return False
    if day.weekday() in set(closed_weekdays):
        return False
    return day not in set(blocked_dates)


def list_open_slots(
    day: date,
    booked_intervals: Iterable[Interval],
    business_start: TimeSlot,
    business_end: TimeSlot,
    granularity_minutes: int = 30,
    *,
    now: datetime | None = None,
    window: BookingWindow | None = None,
) -> list[TimeSlot]:
    """Bookable start times for ``day`` in ascending order.

    ``now`` is shop-local wall-clock time; when it falls on ``day`` no slot in
    the past is offered. On the last day of ``window`` the day is cut just
    after the time the window closes.

    A grid boundary is offered whenever it is free at its start, even when
    the next booking begins sooner than ``granularity_minutes`` later (a
    10:10 booking leaves 10:00 open). Whether a given service fits there is
    decided by ``filter_for_duration`` and ``is_available``.
    """
    if granularity_minutes <= 0:
        return []
    anchor = business_start.minutes
    start = anchor
    end = business_end.minutes

    if now is not None and now.date() == day:
        start = max(start, ceil_to_grid(minutes_of_day_ceil(now), granularity_minutes))
    cutoff = window.closing_minutes(day, granularity_minutes) if window is not None else None
    if cutoff is not None:
        end = min(end, cutoff)
    if start >= end:
        return []

    slots: list[TimeSlot] = []
    cursor = ceil_to_grid(start, granularity_minutes, anchor)
    for booked in sorted(booked_intervals):
        if booked.end <= cursor:
            continue
        while cursor < booked.start and cursor < end:
            slots.append(TimeSlot.from_minutes(cursor))
            cursor += granularity_minutes
        # Skip the whole booking, not just its start
        cursor = ceil_to_grid(max(cursor, booked.end), granularity_minutes, anchor)
        if cursor >= end:
            return slots
    while cursor < end:
        slots.append(TimeSlot.from_minutes(cursor))
        cursor += granularity_minutes
    return slots


def is_available(
    candidate_start: TimeSlot,
    duration_minutes: int,
    booked_intervals: Iterable[Interval],
    business_end: TimeSlot,
) -> bool:
    candidate = Interval(candidate_start.minutes, candidate_start.minutes + duration_minutes)
    if candidate.end > business_end.minutes:
        return False
    return not any(candidate.overlaps(booked) for booked in booked_intervals)


def filter_for_duration(
    slots: Iterable[TimeSlot],
    duration_minutes: int,
    booked_intervals: Iterable[Interval],
    business_end: TimeSlot,
) -> list[TimeSlot]:
    booked = list(booked_intervals)
    return [s for s in slots if is_available(s, duration_minutes, booked, business_end)]


def interval_for(appointment: Appointment, tz: ZoneInfo) -> Interval:
    start = minutes_of_day(utc_to_local(appointment.appointment_time, tz))
    return Interval(start, start + catalog.duration_of(appointment.service))


def intervals_for_day(appointments: Iterable[Appointment], day: date, tz: ZoneInfo) -> list[Interval]:
    """Occupied intervals of the shop-local ``day``; durations come from the catalog."""
    return [
        interval_for(a, tz)
        for a in appointments
        if utc_to_local(a.appointment_time, tz).date() == day
    ]


def business_hours(settings: Settings) -> tuple[TimeSlot, TimeSlot]:
    return TimeSlot.parse(settings.business_start), TimeSlot.parse(settings.business_end)


async def get_open_slots_for_date(
    repository: AppointmentRepository,
    blocked_dates: BlockedDateStore,
    day: date,
    service_type: int | None = None,
    *,
    now: datetime,
    settings: Settings,
) -> list[TimeSlot]:
    """Free start times for ``day`` read fresh from storage.

    With ``service_type`` only the slots that fit that service's duration are
    returned.
    """
    tz = settings.tz
    window = booking_window(now, settings.booking_window_days, settings.min_booking_date)
    blocked = await blocked_dates.list_from(window.start.date())
    if not is_bookable_day(day, window, blocked, settings.closed_weekdays):
        return []

    start_utc, end_utc = local_day_bounds_utc(day, tz)
    appointments = await repository.list_for_date_range(start_utc, end_utc)
    booked = intervals_for_day(appointments, day, tz)
    business_start, business_end = business_hours(settings)
    slots = list_open_slots(
        day,
        booked,
        business_start,
        business_end,
        settings.slot_granularity_minutes,
        now=now,
        window=window,
    )
    if service_type is not None:
        slots = filter_for_duration(slots, catalog.duration_of(service_type), booked, business_end)
    return slots
