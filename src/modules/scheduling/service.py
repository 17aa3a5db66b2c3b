"""Scheduling configuration and availability queries."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings as app_settings
from src.core.exceptions import BookingValidationError, ConfigurationError, NotFoundError
from src.modules.bookings.repository import BookingRepository, day_bounds
from src.modules.scheduling.availability import BookingPolicy, TimeRange, WeeklyAvailability
from src.modules.scheduling.conflicts import overlaps
from src.modules.scheduling.defaults import DEFAULT_APPOINTMENT_TYPES, DEFAULT_WEEKLY_AVAILABILITY
from src.modules.scheduling.models import AppointmentType, AvailabilityRange, SchedulingSettings
from src.modules.scheduling.schemas import (
    AppointmentTypeCreate,
    AppointmentTypePublic,
    AppointmentTypeUpdate,
    AvailableDates,
    BookingPagePublic,
    DaySlots,
    SchedulingSettingsPublic,
    SchedulingSettingsUpdate,
    TimeRangeSchema,
    WeeklyAvailabilitySchema,
)
from src.modules.scheduling.slots import format_slot, format_slot_label, generate_slots
from src.shared.enums import Weekday

logger = logging.getLogger(__name__)


def build_weekly_availability(breeder_id: str, rows: Iterable[AvailabilityRange]) -> WeeklyAvailability:
    """Group stored ranges by weekday, keeping each day's configured order.

    Malformed rows raise instead of being skipped so a broken configuration
    surfaces immediately rather than as missing slots.
    """
    grouped: dict[Weekday, list[TimeRange]] = {}
    for row in sorted(rows, key=lambda item: item.position):
        try:
            weekday = Weekday(row.day_of_week)
            time_range = row.to_range()
        except ValueError as exc:
            logger.error("Invalid availability range %s for breeder %s: %s", row.range_id, breeder_id, exc)
            raise ValueError(f"breeder {breeder_id} has invalid availability: {exc}") from exc
        grouped.setdefault(weekday, []).append(time_range)
    return WeeklyAvailability({weekday: tuple(ranges) for weekday, ranges in grouped.items()})


@dataclass
class BreederSchedule:
    """Fully materialized configuration for one breeder."""

    settings: SchedulingSettings
    availability: WeeklyAvailability
    policy: BookingPolicy
    appointment_types: list[AppointmentType]

    @property
    def breeder_id(self) -> str:
        return self.settings.breeder_id

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.settings.timezone)

    def find_type(self, appointment_type_id: str) -> AppointmentType | None:
        for appointment_type in self.appointment_types:
            if appointment_type.appointment_type_id == appointment_type_id:
                return appointment_type
        return None


class SchedulingService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.bookings = BookingRepository(db)

    def _now(self, tz: ZoneInfo) -> datetime:
        """Current wall-clock time in the breeder's zone, as a naive datetime."""
        return datetime.now(tz=tz).replace(tzinfo=None)

    async def _get_settings(self, breeder_id: str) -> SchedulingSettings | None:
        stmt = (
            select(SchedulingSettings)
            .options(
                selectinload(SchedulingSettings.appointment_types),
                selectinload(SchedulingSettings.availability_ranges),
            )
            .where(SchedulingSettings.breeder_id == breeder_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def load_config(self, breeder_id: str) -> BreederSchedule:
        record = await self._get_settings(breeder_id)
        if record is None:
            raise ConfigurationError(status_code=status.HTTP_404_NOT_FOUND)
        return BreederSchedule(
            settings=record,
            availability=build_weekly_availability(breeder_id, record.availability_ranges),
            policy=record.to_policy(),
            appointment_types=list(record.appointment_types),
        )

    async def load_bookable_config(self, breeder_id: str) -> BreederSchedule:
        config = await self.load_config(breeder_id)
        if not config.policy.booking_page_enabled:
            raise ConfigurationError()
        return config

    def resolve_type(self, config: BreederSchedule, appointment_type_id: str) -> AppointmentType:
        appointment_type = config.find_type(appointment_type_id)
        if appointment_type is None or not appointment_type.enabled:
            raise ConfigurationError("Appointment type unavailable")
        return appointment_type

    def current_time(self, config: BreederSchedule) -> datetime:
        return self._now(config.tz)

    async def breeder_now(self, breeder_id: str) -> datetime:
        record = await self._get_settings(breeder_id)
        timezone_name = record.timezone if record is not None else app_settings.default_timezone
        return self._now(ZoneInfo(timezone_name))

    def ensure_date_bookable(self, config: BreederSchedule, day: date, now: datetime) -> None:
        min_date, max_date = config.policy.booking_window(now)
        if not min_date <= day <= max_date:
            raise BookingValidationError(
                f"{day.isoformat()} is outside the booking window "
                f"{min_date.isoformat()} to {max_date.isoformat()}"
            )

    async def get_booking_page(self, breeder_id: str) -> BookingPagePublic:
        config = await self.load_bookable_config(breeder_id)
        enabled_types = [item for item in config.appointment_types if item.enabled]
        return BookingPagePublic(
            breeder_id=breeder_id,
            title=config.settings.booking_page_title,
            description=config.settings.booking_page_description,
            confirmation_message=config.settings.confirmation_message,
            appointment_types=[AppointmentTypePublic.model_validate(item) for item in enabled_types],
        )

    async def get_available_dates(self, breeder_id: str, now: datetime | None = None) -> AvailableDates:
        config = await self.load_bookable_config(breeder_id)
        now = now or self.current_time(config)
        min_date, max_date = config.policy.booking_window(now)
        return AvailableDates(min_date=min_date, max_date=max_date)

    async def get_available_slots(
        self,
        breeder_id: str,
        appointment_type_id: str,
        day: date,
        now: datetime | None = None,
    ) -> DaySlots:
        config = await self.load_bookable_config(breeder_id)
        appointment_type = self.resolve_type(config, appointment_type_id)
        now = now or self.current_time(config)
        self.ensure_date_bookable(config, day, now)

        existing = await self.bookings.list_for_date(breeder_id, day)
        starts = generate_slots(
            day,
            appointment_type.to_rules(),
            config.availability,
            config.policy,
            now,
            [booking.as_existing() for booking in existing],
        )
        return _day_slots(day, starts)

    async def get_slots_for_range(
        self,
        breeder_id: str,
        appointment_type_id: str,
        start_date: date,
        end_date: date,
        now: datetime | None = None,
    ) -> list[DaySlots]:
        """Slots for each date in ``[start_date, end_date]`` that has any, clamped to the booking window."""
        if start_date > end_date:
            raise BookingValidationError("start_date must not be after end_date")
        config = await self.load_bookable_config(breeder_id)
        rules = self.resolve_type(config, appointment_type_id).to_rules()
        now = now or self.current_time(config)
        min_date, max_date = config.policy.booking_window(now)
        first, last = max(start_date, min_date), min(end_date, max_date)
        if first > last:
            return []

        window_start, _ = day_bounds(first)
        _, window_end = day_bounds(last)
        existing = [
            booking.as_existing()
            for booking in await self.bookings.list_overlapping(breeder_id, window_start, window_end)
        ]

        results: list[DaySlots] = []
        day = first
        while day <= last:
            bounds = day_bounds(day)
            todays = [item for item in existing if overlaps((item.start_time, item.end_time), bounds)]
            starts = generate_slots(day, rules, config.availability, config.policy, now, todays)
            if starts:
                results.append(_day_slots(day, starts))
            day += timedelta(days=1)
        return results

    async def get_settings(self, breeder_id: str) -> SchedulingSettingsPublic:
        record = await self._get_settings(breeder_id)
        if record is None:
            raise NotFoundError("Scheduling settings not configured")
        return _settings_public(record)

    async def save_settings(self, breeder_id: str, payload: SchedulingSettingsUpdate) -> SchedulingSettingsPublic:
        record = await self._get_settings(breeder_id)
        if record is None:
            record = _seed_settings(breeder_id)
            self.db.add(record)
            logger.info("Seeded default scheduling settings for breeder %s", breeder_id)

        update_data = payload.model_dump(exclude_unset=True, exclude={"weekly_availability"})
        for field, value in update_data.items():
            if value is not None:
                setattr(record, field, value)
        if payload.weekly_availability is not None:
            _replace_ranges(record, payload.weekly_availability)

        await self.db.commit()
        return _settings_public(record)

    async def replace_weekly_availability(
        self,
        breeder_id: str,
        weekly: WeeklyAvailabilitySchema,
    ) -> SchedulingSettingsPublic:
        record = await self._get_settings(breeder_id)
        if record is None:
            raise NotFoundError("Scheduling settings not configured")
        _replace_ranges(record, weekly)
        await self.db.commit()
        return _settings_public(record)

    async def list_appointment_types(self, breeder_id: str) -> list[AppointmentType]:
        result = await self.db.execute(
            select(AppointmentType)
            .where(AppointmentType.breeder_id == breeder_id)
            .order_by(AppointmentType.sort_order, AppointmentType.name)
        )
        return list(result.scalars().all())

    async def create_appointment_type(self, breeder_id: str, payload: AppointmentTypeCreate) -> AppointmentType:
        record = await self._get_settings(breeder_id)
        if record is None:
            raise NotFoundError("Scheduling settings not configured")
        appointment_type = AppointmentType(breeder_id=breeder_id, **payload.model_dump())
        record.appointment_types.append(appointment_type)
        await self.db.commit()
        await self.db.refresh(appointment_type)
        return appointment_type

    async def update_appointment_type(
        self,
        breeder_id: str,
        appointment_type_id: str,
        payload: AppointmentTypeUpdate,
    ) -> AppointmentType:
        appointment_type = await self._get_appointment_type(breeder_id, appointment_type_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(appointment_type, field, value)
        await self.db.commit()
        await self.db.refresh(appointment_type)
        return appointment_type

    async def delete_appointment_type(self, breeder_id: str, appointment_type_id: str) -> None:
        appointment_type = await self._get_appointment_type(breeder_id, appointment_type_id)
        await self.db.delete(appointment_type)
        await self.db.commit()

    async def _get_appointment_type(self, breeder_id: str, appointment_type_id: str) -> AppointmentType:
        result = await self.db.execute(
            select(AppointmentType).where(
                AppointmentType.appointment_type_id == appointment_type_id,
                AppointmentType.breeder_id == breeder_id,
            )
        )
        appointment_type = result.scalar_one_or_none()
        if appointment_type is None:
            raise NotFoundError("Appointment type not found")
        return appointment_type


def _day_slots(day: date, starts: list[datetime]) -> DaySlots:
    return DaySlots(
        date=day,
        slots=[format_slot(start) for start in starts],
        labels=[format_slot_label(start) for start in starts],
    )


def _seed_settings(breeder_id: str) -> SchedulingSettings:
    record = SchedulingSettings(
        breeder_id=breeder_id,
        timezone=app_settings.default_timezone,
        min_advance_booking_hours=app_settings.default_min_advance_booking_hours,
        max_advance_booking_days=app_settings.default_max_advance_booking_days,
        slot_interval_minutes=app_settings.default_slot_interval_minutes,
        booking_page_enabled=False,
        booking_page_title="",
        booking_page_description="",
    )
    record.appointment_types = [AppointmentType(breeder_id=breeder_id, **data) for data in DEFAULT_APPOINTMENT_TYPES]
    defaults = {
        weekday: [TimeRangeSchema(start=start, end=end) for start, end in ranges]
        for weekday, ranges in DEFAULT_WEEKLY_AVAILABILITY.items()
    }
    _replace_ranges(record, defaults)
    return record


def _replace_ranges(record: SchedulingSettings, weekly: WeeklyAvailabilitySchema) -> None:
    rows: list[AvailabilityRange] = []
    for weekday in Weekday:
        for position, item in enumerate(weekly.get(weekday, [])):
            time_range = item.to_range()
            rows.append(
                AvailabilityRange(
                    breeder_id=record.breeder_id,
                    day_of_week=weekday.value,
                    position=position,
                    start_minute=time_range.start,
                    end_minute=time_range.end,
                )
            )
    record.availability_ranges = rows


def _settings_public(record: SchedulingSettings) -> SchedulingSettingsPublic:
    availability = build_weekly_availability(record.breeder_id, record.availability_ranges)
    return SchedulingSettingsPublic(
        breeder_id=record.breeder_id,
        timezone=record.timezone,
        min_advance_booking_hours=record.min_advance_booking_hours,
        max_advance_booking_days=record.max_advance_booking_days,
        slot_interval_minutes=record.slot_interval_minutes,
        booking_page_enabled=record.booking_page_enabled,
        booking_page_title=record.booking_page_title,
        booking_page_description=record.booking_page_description,
        confirmation_message=record.confirmation_message,
        weekly_availability={
            weekday: [TimeRangeSchema.from_range(item) for item in availability.ranges_on(weekday)]
            for weekday in Weekday
        },
        appointment_types=[AppointmentTypePublic.model_validate(item) for item in record.appointment_types],
    )
