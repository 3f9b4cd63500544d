"""Wall-clock values used by the slot allocator and the timezone boundary.

Inside the allocator everything is minutes since local midnight. Instants are
stored as naive UTC; conversion to and from the shop's zone happens only here.
"""

from datetime import UTC, date, datetime, time, timedelta
from typing import NamedTuple
from zoneinfo import ZoneInfo

from app.core.errors import MalformedTimeError

MINUTES_PER_DAY = 24 * 60


class TimeSlot(NamedTuple):
    hour: int
    minute: int

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    @classmethod
    def from_minutes(cls, minutes: int) -> "TimeSlot":
        return cls(minutes // 60, minutes % 60)

    @classmethod
    def parse(cls, value: str) -> "TimeSlot":
        """Parse "HH:MM"; anything else raises MalformedTimeError."""
        hours, sep, mins = (value or "").strip().partition(":")
        if not sep or not hours.isdigit() or not mins.isdigit() or len(mins) != 2:
            raise MalformedTimeError(f"Invalid time {value!r}, expected HH:MM")
        slot = cls(int(hours), int(mins))
        if slot.hour > 23 or slot.minute > 59:
            raise MalformedTimeError(f"Invalid time {value!r}, expected HH:MM")
        return slot

    def as_time(self) -> time:
        return time(self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class Interval(NamedTuple):
    """Half-open [start, end) in minutes since local midnight."""

    start: int
    end: int

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, minute: int) -> bool:
        return self.start <= minute < self.end


def ceil_to_grid(minutes: int, granularity: int, anchor: int = 0) -> int:
    """Smallest anchor + k*granularity that is >= minutes."""
    if granularity <= 0:
        return minutes
    offset = minutes - anchor
    steps = -(-offset // granularity)
    return anchor + steps * granularity


def minutes_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def minutes_of_day_ceil(dt: datetime) -> int:
    """Like ``minutes_of_day`` but any seconds past the minute count as a full minute."""
    return minutes_of_day(dt) + (1 if dt.second or dt.microsecond else 0)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def local_to_utc(day: date, slot: TimeSlot, tz: ZoneInfo) -> datetime:
    """Shop-local day + slot to the naive UTC instant that gets stored."""
    local = datetime.combine(day, slot.as_time(), tzinfo=tz)
    return to_naive_utc(local)


def utc_to_local(dt: datetime, tz: ZoneInfo) -> datetime:
    """Naive (or aware) UTC instant to an aware shop-local datetime."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(tz)


def local_day_bounds_utc(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """[start, end) of the shop-local calendar day, as naive UTC."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return to_naive_utc(start), to_naive_utc(end)


def utc_naive_now() -> datetime:
    """Naive UTC for comparison with TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)
