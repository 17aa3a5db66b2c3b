"""Booking ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database import Base
from src.modules.scheduling.conflicts import ExistingBooking
from src.shared.enums import BookingStatus, enum_values
from src.shared.ids import BREEDER_ID_LENGTH, ULID_LENGTH, generate_ulid
from src.shared.models import TimestampMixin


class Booking(Base, TimestampMixin):
    """A customer's request for an appointment slot.

    ``start_time``/``end_time`` are naive wall-clock values in the breeder's
    local time.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_breeder_start", "breeder_id", "start_time"),
        CheckConstraint("end_time > start_time", name="ck_bookings_time_order"),
        CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
    )

    booking_id: Mapped[str] = mapped_column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    breeder_id: Mapped[str] = mapped_column(String(BREEDER_ID_LENGTH), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(120), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), default="", nullable=False)
    # Appointment types may be edited or removed later; the booking keeps its own copy.
    appointment_type_id: Mapped[str] = mapped_column(String(ULID_LENGTH), nullable=False)
    appointment_type_name: Mapped[str] = mapped_column(String(120), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="bookingstatus",
        ),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    internal_notes: Mapped[str | None] = mapped_column(Text)
    booked_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    cancellation_reason: Mapped[str | None] = mapped_column(String(500))

    def as_existing(self) -> ExistingBooking:
        return ExistingBooking(
            start_time=self.start_time,
            end_time=self.end_time,
            status=self.status,
            appointment_type_id=self.appointment_type_id,
        )
