"""Booking store: the reads and writes the slot engine and lifecycle manager rely on."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.bookings.models import Booking
from src.shared.enums import ACTIVE_BOOKING_STATUSES, BookingStatus


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class BookingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_overlapping(
        self,
        breeder_id: str,
        window_start: datetime,
        window_end: datetime,
        statuses: Iterable[BookingStatus] = ACTIVE_BOOKING_STATUSES,
    ) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(
                Booking.breeder_id == breeder_id,
                Booking.status.in_(list(statuses)),
                Booking.start_time < window_end,
                Booking.end_time > window_start,
            )
            .order_by(Booking.start_time)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_date(
        self,
        breeder_id: str,
        day: date,
        statuses: Iterable[BookingStatus] = ACTIVE_BOOKING_STATUSES,
    ) -> list[Booking]:
        """Bookings touching ``day`` in any of ``statuses`` (pending and confirmed by default)."""
        day_start, day_end = day_bounds(day)
        return await self.list_overlapping(breeder_id, day_start, day_end, statuses)

    async def list_for_breeder(self, breeder_id: str, status: BookingStatus | None = None) -> list[Booking]:
        stmt = select(Booking).where(Booking.breeder_id == breeder_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.start_time.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, breeder_id: str, booking_id: str) -> Booking | None:
        result = await self.db.execute(
            select(Booking).where(Booking.booking_id == booking_id, Booking.breeder_id == breeder_id)
        )
        return result.scalar_one_or_none()

    async def insert(self, booking: Booking) -> Booking:
        """Stage ``booking`` and flush it; the caller owns the commit."""
        self.db.add(booking)
        await self.db.flush()
        return booking
