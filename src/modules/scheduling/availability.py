"""Availability model: weekly time ranges, appointment rules and booking policy.

Everything here is plain data plus pure lookups. Times are minute-of-day
offsets in the breeder's local wall clock; datetimes are naive.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from src.shared.enums import Weekday

MINUTES_PER_DAY = 24 * 60
ALLOWED_SLOT_INTERVALS = (15, 30, 60)


def minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def parse_clock(value: str | time) -> int:
    """Parse ``"HH:MM"`` (``"24:00"`` allowed as end of day) into minute-of-day."""
    if isinstance(value, time):
        return minute_of_day(value)
    hours, sep, minutes = value.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"invalid clock time {value!r}, expected HH:MM")
    total = int(hours) * 60 + int(minutes)
    if int(minutes) >= 60 or total > MINUTES_PER_DAY:
        raise ValueError(f"invalid clock time {value!r}")
    return total


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True, order=True)
class TimeRange:
    """Half-open ``[start, end)`` window of one day, in minutes since midnight."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise ValueError(
                f"invalid time range {format_minutes(self.start)}-{format_minutes(self.end)}: "
                "start must be before end within a single day"
            )

    @classmethod
    def from_clock(cls, start: str | time, end: str | time) -> "TimeRange":
        return cls(parse_clock(start), parse_clock(end))

    def on(self, day: date) -> tuple[datetime, datetime]:
        midnight = datetime.combine(day, time.min)
        return midnight + timedelta(minutes=self.start), midnight + timedelta(minutes=self.end)

    def __str__(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"


@dataclass(frozen=True)
class WeeklyAvailability:
    """Recurring ranges per weekday, kept in configuration order."""

    days: Mapping[Weekday, tuple[TimeRange, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {weekday: tuple(self.days.get(weekday, ())) for weekday in Weekday}
        object.__setattr__(self, "days", normalized)

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[Weekday | str, Iterable[TimeRange | tuple[str | time, str | time]]],
    ) -> "WeeklyAvailability":
        days: dict[Weekday, tuple[TimeRange, ...]] = {}
        for key, ranges in mapping.items():
            weekday = Weekday(key)
            days[weekday] = tuple(
                item if isinstance(item, TimeRange) else TimeRange.from_clock(*item) for item in ranges
            )
        return cls(days)

    def ranges_on(self, weekday: Weekday) -> list[TimeRange]:
        return list(self.days[weekday])

    def ranges_for(self, day: date) -> list[TimeRange]:
        """Ranges that apply on ``day``; an empty list when the weekday is closed."""
        return self.ranges_on(Weekday.from_date(day))

    def is_empty(self) -> bool:
        return not any(self.days.values())


@dataclass(frozen=True)
class AppointmentRules:
    """The parts of an appointment type the slot engine needs."""

    id: str
    name: str
    duration_minutes: int
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError(f"appointment type {self.id!r} must have a positive duration")
        if self.buffer_before_minutes < 0 or self.buffer_after_minutes < 0:
            raise ValueError(f"appointment type {self.id!r} buffers cannot be negative")

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def buffer_before(self) -> timedelta:
        return timedelta(minutes=self.buffer_before_minutes)

    @property
    def buffer_after(self) -> timedelta:
        return timedelta(minutes=self.buffer_after_minutes)


@dataclass(frozen=True)
class BookingPolicy:
    min_advance_booking_hours: int = 24
    max_advance_booking_days: int = 30
    slot_interval_minutes: int = 30
    booking_page_enabled: bool = False

    def __post_init__(self) -> None:
        if self.min_advance_booking_hours < 0:
            raise ValueError("min_advance_booking_hours cannot be negative")
        if self.max_advance_booking_days < 0:
            raise ValueError("max_advance_booking_days cannot be negative")
        if self.slot_interval_minutes <= 0:
            raise ValueError("slot_interval_minutes must be positive")

    @property
    def slot_interval(self) -> timedelta:
        return timedelta(minutes=self.slot_interval_minutes)

    def earliest_start(self, now: datetime) -> datetime:
        """Slots must start strictly after this instant."""
        return now + timedelta(hours=self.min_advance_booking_hours)

    def booking_window(self, now: datetime) -> tuple[date, date]:
        """First and last calendar dates a customer may pick."""
        min_date = self.earliest_start(now).date()
        max_date = (now + timedelta(days=self.max_advance_booking_days)).date()
        return min_date, max_date

    def allows_date(self, day: date, now: datetime) -> bool:
        min_date, max_date = self.booking_window(now)
        return min_date <= day <= max_date
