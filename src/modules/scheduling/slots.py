"""Slot generation for a single calendar date."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import StrEnum

from src.modules.scheduling.availability import AppointmentRules, BookingPolicy, TimeRange, WeeklyAvailability
from src.modules.scheduling.conflicts import ExistingBooking, has_conflict


class SlotRejection(StrEnum):
    TOO_SOON = "too_soon"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class SlotCandidate:
    start: datetime
    end: datetime
    rejection: SlotRejection | None = None

    @property
    def available(self) -> bool:
        return self.rejection is None


def _walk_range(day: date, time_range: TimeRange, rules: AppointmentRules, policy: BookingPolicy) -> Iterator[datetime]:
    cursor, range_end = time_range.on(day)
    while cursor + rules.duration <= range_end:
        yield cursor
        cursor += policy.slot_interval


def evaluate_slots(
    target_date: date,
    rules: AppointmentRules,
    availability: WeeklyAvailability,
    policy: BookingPolicy,
    now: datetime,
    bookings: Sequence[ExistingBooking],
) -> list[SlotCandidate]:
    """Every grid position for ``target_date`` with the reason it is rejected, if any.

    Ranges are walked in configuration order and candidates are reported in
    that order, not re-sorted by clock time.
    """
    if now.tzinfo is not None:
        raise ValueError("now must be a naive local wall-clock datetime")
    if not policy.booking_page_enabled or not rules.enabled:
        return []

    earliest = policy.earliest_start(now)
    candidates: list[SlotCandidate] = []
    for time_range in availability.ranges_for(target_date):
        for start in _walk_range(target_date, time_range, rules, policy):
            end = start + rules.duration
            if start <= earliest:
                rejection = SlotRejection.TOO_SOON
            elif has_conflict(start, end, bookings, rules):
                rejection = SlotRejection.CONFLICT
            else:
                rejection = None
            candidates.append(SlotCandidate(start=start, end=end, rejection=rejection))
    return candidates


def generate_slots(
    target_date: date,
    rules: AppointmentRules,
    availability: WeeklyAvailability,
    policy: BookingPolicy,
    now: datetime,
    bookings: Sequence[ExistingBooking],
) -> list[datetime]:
    """Bookable start times for ``target_date``."""
    return [
        candidate.start
        for candidate in evaluate_slots(target_date, rules, availability, policy, now, bookings)
        if candidate.available
    ]


def format_slot(value: datetime | time) -> str:
    """24-hour ``HH:MM`` form used on the wire."""
    return value.strftime("%H:%M")


def format_slot_label(value: datetime | time) -> str:
    """12-hour label shown on the booking page, e.g. ``09:30 AM``."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour:02d}:{value.minute:02d} {suffix}"
