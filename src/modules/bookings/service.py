"""Booking lifecycle: turning a chosen slot into a booking and moving it through its statuses."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import (
    BookingTimeoutError,
    BookingValidationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from src.core.locks import BookingLockManager
from src.modules.bookings.models import Booking
from src.modules.bookings.repository import BookingRepository
from src.modules.bookings.schemas import BookingCreate, BookingUpdate
from src.modules.scheduling.availability import AppointmentRules
from src.modules.scheduling.conflicts import has_conflict
from src.modules.scheduling.service import BreederSchedule, SchedulingService
from src.modules.scheduling.slots import SlotRejection, evaluate_slots, format_slot
from src.shared.enums import BookingStatus

logger = logging.getLogger(__name__)

INSERT_RETRIES = 1

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
}


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(f"Cannot change booking status from {current} to {target}")


class BookingService:
    def __init__(self, db: AsyncSession, locks: BookingLockManager):
        self.db = db
        self.locks = locks
        self.repository = BookingRepository(db)
        self.scheduling = SchedulingService(db)

    async def create_booking(
        self,
        breeder_id: str,
        payload: BookingCreate,
        now: datetime | None = None,
        timeout: float | None = None,
    ) -> Booking:
        """Persist a ``pending`` booking for the chosen slot, or fail without writing anything."""
        timeout = settings.booking_submit_timeout_seconds if timeout is None else timeout
        try:
            return await asyncio.wait_for(self._create_booking(breeder_id, payload, now), timeout=timeout)
        except asyncio.TimeoutError as exc:
            await self.db.rollback()
            logger.warning("Booking submission for breeder %s on %s timed out", breeder_id, payload.date)
            raise BookingTimeoutError() from exc

    async def _create_booking(self, breeder_id: str, payload: BookingCreate, now: datetime | None) -> Booking:
        config = await self.scheduling.load_bookable_config(breeder_id)
        appointment_type = self.scheduling.resolve_type(config, payload.appointment_type_id)
        rules = appointment_type.to_rules()
        now = now or self.scheduling.current_time(config)
        self.scheduling.ensure_date_bookable(config, payload.date, now)

        start = datetime.combine(payload.date, payload.slot_start)
        self._ensure_offered(config, rules, payload.date, start, now)
        end = start + rules.duration
        # Plain values only below: a rollback on retry expires loaded ORM rows.
        type_id, type_name = rules.id, rules.name

        async with self.locks.hold(breeder_id, payload.date):
            for attempt in range(INSERT_RETRIES + 1):
                await self._ensure_conflict_free(breeder_id, payload.date, start, end, rules)
                booking = Booking(
                    breeder_id=breeder_id,
                    customer_name=payload.customer_name,
                    customer_email=payload.customer_email,
                    customer_phone=payload.customer_phone,
                    appointment_type_id=type_id,
                    appointment_type_name=type_name,
                    start_time=start,
                    end_time=end,
                    duration_minutes=rules.duration_minutes,
                    status=BookingStatus.PENDING,
                    notes=payload.notes,
                    booked_at=now,
                )
                try:
                    await self.repository.insert(booking)
                    await self.db.commit()
                except OperationalError as exc:
                    await self.db.rollback()
                    if attempt >= INSERT_RETRIES:
                        logger.warning("Booking insert for breeder %s at %s failed twice", breeder_id, start)
                        raise ConflictError() from exc
                    logger.warning("Booking insert for breeder %s at %s failed, re-checking once", breeder_id, start)
                    continue
                logger.info(
                    "Booking %s created for breeder %s: %s at %s",
                    booking.booking_id,
                    breeder_id,
                    type_name,
                    start,
                )
                return booking
        raise ConflictError()  # pragma: no cover

    def _ensure_offered(
        self,
        config: BreederSchedule,
        rules: AppointmentRules,
        day: date,
        start: datetime,
        now: datetime,
    ) -> None:
        """Reject starts that are off the slot grid or inside the advance-notice window."""
        for candidate in evaluate_slots(day, rules, config.availability, config.policy, now, []):
            if candidate.start != start:
                continue
            if candidate.rejection is SlotRejection.TOO_SOON:
                raise BookingValidationError(
                    f"Slots must be booked at least {config.policy.min_advance_booking_hours} hours in advance"
                )
            return
        raise BookingValidationError(f"{format_slot(start)} is not an offered slot on {day.isoformat()}")

    async def _ensure_conflict_free(
        self,
        breeder_id: str,
        day: date,
        start: datetime,
        end: datetime,
        rules: AppointmentRules,
    ) -> None:
        existing = await self.repository.list_for_date(breeder_id, day)
        if has_conflict(start, end, [booking.as_existing() for booking in existing], rules):
            logger.info("Slot %s for breeder %s was taken before submission", start, breeder_id)
            raise ConflictError()

    async def list_bookings(self, breeder_id: str, status: BookingStatus | None = None) -> list[Booking]:
        return await self.repository.list_for_breeder(breeder_id, status)

    async def confirm_booking(self, breeder_id: str, booking_id: str) -> Booking:
        booking = await self._get_booking(breeder_id, booking_id)
        ensure_transition(booking.status, BookingStatus.CONFIRMED)
        booking.status = BookingStatus.CONFIRMED
        booking.confirmed_at = await self.scheduling.breeder_now(breeder_id)
        await self.db.commit()
        logger.info("Booking %s confirmed", booking_id)
        return booking

    async def cancel_booking(self, breeder_id: str, booking_id: str, reason: str | None = None) -> Booking:
        booking = await self._get_booking(breeder_id, booking_id)
        ensure_transition(booking.status, BookingStatus.CANCELLED)
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = await self.scheduling.breeder_now(breeder_id)
        booking.cancellation_reason = reason or ""
        await self.db.commit()
        logger.info("Booking %s cancelled", booking_id)
        return booking

    async def update_notes(self, breeder_id: str, booking_id: str, payload: BookingUpdate) -> Booking:
        booking = await self._get_booking(breeder_id, booking_id)
        update_data = payload.model_dump(exclude_unset=True)
        if not update_data:
            return booking
        for field, value in update_data.items():
            setattr(booking, field, value if value is not None else ("" if field == "notes" else None))
        await self.db.commit()
        return booking

    async def _get_booking(self, breeder_id: str, booking_id: str) -> Booking:
        booking = await self.repository.get(breeder_id, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking
