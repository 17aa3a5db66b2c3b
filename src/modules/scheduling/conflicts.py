"""Conflict checks between a candidate slot and existing bookings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from src.modules.scheduling.availability import AppointmentRules
from src.shared.enums import BookingStatus


@dataclass(frozen=True)
class ExistingBooking:
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.CONFIRMED
    appointment_type_id: str | None = None


def overlaps(slot_a: tuple[datetime, datetime], slot_b: tuple[datetime, datetime]) -> bool:
    start_a, end_a = slot_a
    start_b, end_b = slot_b
    return start_a < end_b and end_a > start_b


def buffered_interval(booking: ExistingBooking, rules: AppointmentRules) -> tuple[datetime, datetime]:
    """Blocked window around ``booking``.

    Buffers come from the *candidate* appointment type, not from the type the
    existing booking was made with.
    """
    return booking.start_time - rules.buffer_before, booking.end_time + rules.buffer_after


def conflicts_with(
    slot_start: datetime,
    slot_end: datetime,
    booking: ExistingBooking,
    rules: AppointmentRules,
) -> bool:
    if not booking.status.blocks_slots:
        return False
    return overlaps((slot_start, slot_end), buffered_interval(booking, rules))


def has_conflict(
    slot_start: datetime,
    slot_end: datetime,
    bookings: Iterable[ExistingBooking],
    rules: AppointmentRules,
) -> bool:
    return any(conflicts_with(slot_start, slot_end, booking, rules) for booking in bookings)
