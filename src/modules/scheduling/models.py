"""Scheduling configuration ORM models."""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.modules.scheduling.availability import AppointmentRules, BookingPolicy, TimeRange
from src.shared.enums import Weekday, enum_values
from src.shared.ids import BREEDER_ID_LENGTH, ULID_LENGTH, generate_ulid
from src.shared.models import TimestampMixin, breeder_settings_fk

WEEKDAY_VALUES = ", ".join(f"'{value}'" for value in enum_values(Weekday))

DEFAULT_CONFIRMATION_MESSAGE = "Your appointment has been booked! We will send you a confirmation email shortly."


class SchedulingSettings(Base, TimestampMixin):
    __tablename__ = "scheduling_settings"
    __table_args__ = (
        CheckConstraint("slot_interval_minutes IN (15, 30, 60)", name="ck_scheduling_slot_interval"),
        CheckConstraint("min_advance_booking_hours >= 0", name="ck_scheduling_min_advance"),
        CheckConstraint("max_advance_booking_days >= 0", name="ck_scheduling_max_advance"),
    )

    breeder_id: Mapped[str] = mapped_column(String(BREEDER_ID_LENGTH), primary_key=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    min_advance_booking_hours: Mapped[int] = mapped_column(default=24, nullable=False)
    max_advance_booking_days: Mapped[int] = mapped_column(default=30, nullable=False)
    slot_interval_minutes: Mapped[int] = mapped_column(default=30, nullable=False)
    booking_page_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    booking_page_title: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    booking_page_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    confirmation_message: Mapped[str] = mapped_column(Text, default=DEFAULT_CONFIRMATION_MESSAGE, nullable=False)

    appointment_types: Mapped[list["AppointmentType"]] = relationship(
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="AppointmentType.sort_order",
    )
    availability_ranges: Mapped[list["AvailabilityRange"]] = relationship(
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="AvailabilityRange.position",
    )

    def to_policy(self) -> BookingPolicy:
        return BookingPolicy(
            min_advance_booking_hours=self.min_advance_booking_hours,
            max_advance_booking_days=self.max_advance_booking_days,
            slot_interval_minutes=self.slot_interval_minutes,
            booking_page_enabled=self.booking_page_enabled,
        )


class AvailabilityRange(Base, TimestampMixin):
    """One recurring weekly window; ``position`` keeps the breeder's ordering within a day."""

    __tablename__ = "availability_ranges"
    __table_args__ = (
        CheckConstraint(f"day_of_week IN ({WEEKDAY_VALUES})", name="ck_availability_weekday"),
        CheckConstraint("start_minute >= 0 AND end_minute <= 1440", name="ck_availability_bounds"),
        CheckConstraint("start_minute < end_minute", name="ck_availability_order"),
        Index("ix_availability_breeder_day", "breeder_id", "day_of_week", "position"),
    )

    range_id: Mapped[str] = mapped_column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    breeder_id: Mapped[str] = breeder_settings_fk()
    day_of_week: Mapped[str] = mapped_column(String(16), nullable=False)
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    start_minute: Mapped[int] = mapped_column(nullable=False)
    end_minute: Mapped[int] = mapped_column(nullable=False)

    settings: Mapped[SchedulingSettings] = relationship(back_populates="availability_ranges")

    def to_range(self) -> TimeRange:
        return TimeRange(self.start_minute, self.end_minute)


class AppointmentType(Base, TimestampMixin):
    __tablename__ = "appointment_types"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_appointment_type_duration_positive"),
        CheckConstraint(
            "buffer_before_minutes >= 0 AND buffer_after_minutes >= 0",
            name="ck_appointment_type_buffers",
        ),
    )

    appointment_type_id: Mapped[str] = mapped_column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    breeder_id: Mapped[str] = breeder_settings_fk()
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    duration_minutes: Mapped[int] = mapped_column(nullable=False)
    buffer_before_minutes: Mapped[int] = mapped_column(default=0, nullable=False)
    buffer_after_minutes: Mapped[int] = mapped_column(default=0, nullable=False)
    color: Mapped[str] = mapped_column(String(16), default="#3b82f6", nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)

    settings: Mapped[SchedulingSettings] = relationship(back_populates="appointment_types")

    def to_rules(self) -> AppointmentRules:
        return AppointmentRules(
            id=self.appointment_type_id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            buffer_before_minutes=self.buffer_before_minutes,
            buffer_after_minutes=self.buffer_after_minutes,
            enabled=self.enabled,
        )
