"""Initial schema for breeder booking backend.

Revision ID: 4b8e2c1d9a70
Revises:
Create Date: 2026-10-19 09:12:41.208733

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4b8e2c1d9a70"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

booking_status = sa.Enum("pending", "confirmed", "cancelled", name="bookingstatus")

WEEKDAY_VALUES = "'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'"
DEFAULT_CONFIRMATION_MESSAGE = "Your appointment has been booked! We will send you a confirmation email shortly."


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "scheduling_settings",
        sa.Column("breeder_id", sa.String(length=64), primary_key=True),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("min_advance_booking_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("max_advance_booking_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("slot_interval_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("booking_page_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("booking_page_title", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("booking_page_description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "confirmation_message",
            sa.Text(),
            nullable=False,
            server_default=DEFAULT_CONFIRMATION_MESSAGE,
        ),
        *_timestamps(),
        sa.CheckConstraint("slot_interval_minutes IN (15, 30, 60)", name="ck_scheduling_slot_interval"),
        sa.CheckConstraint("min_advance_booking_hours >= 0", name="ck_scheduling_min_advance"),
        sa.CheckConstraint("max_advance_booking_days >= 0", name="ck_scheduling_max_advance"),
    )

    op.create_table(
        "availability_ranges",
        sa.Column("range_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "breeder_id",
            sa.String(length=64),
            sa.ForeignKey("scheduling_settings.breeder_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.String(length=16), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_minute", sa.Integer(), nullable=False),
        sa.Column("end_minute", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(f"day_of_week IN ({WEEKDAY_VALUES})", name="ck_availability_weekday"),
        sa.CheckConstraint("start_minute >= 0 AND end_minute <= 1440", name="ck_availability_bounds"),
        sa.CheckConstraint("start_minute < end_minute", name="ck_availability_order"),
    )
    op.create_index("ix_availability_ranges_breeder_id", "availability_ranges", ["breeder_id"])
    op.create_index("ix_availability_breeder_day", "availability_ranges", ["breeder_id", "day_of_week", "position"])

    op.create_table(
        "appointment_types",
        sa.Column("appointment_type_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "breeder_id",
            sa.String(length=64),
            sa.ForeignKey("scheduling_settings.breeder_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("buffer_before_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("buffer_after_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("color", sa.String(length=16), nullable=False, server_default="#3b82f6"),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("duration_minutes > 0", name="ck_appointment_type_duration_positive"),
        sa.CheckConstraint(
            "buffer_before_minutes >= 0 AND buffer_after_minutes >= 0",
            name="ck_appointment_type_buffers",
        ),
    )
    op.create_index("ix_appointment_types_breeder_id", "appointment_types", ["breeder_id"])

    op.create_table(
        "bookings",
        sa.Column("booking_id", sa.String(length=26), primary_key=True),
        sa.Column("breeder_id", sa.String(length=64), nullable=False),
        sa.Column("customer_name", sa.String(length=120), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("appointment_type_id", sa.String(length=26), nullable=False),
        sa.Column("appointment_type_name", sa.String(length=120), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=False), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", booking_status, nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("internal_notes", sa.Text()),
        sa.Column("booked_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=False)),
        sa.Column("cancelled_at", sa.DateTime(timezone=False)),
        sa.Column("cancellation_reason", sa.String(length=500)),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_bookings_time_order"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
    )
    op.create_index("ix_bookings_breeder_start", "bookings", ["breeder_id", "start_time"])


def downgrade() -> None:
    op.drop_index("ix_bookings_breeder_start", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_appointment_types_breeder_id", table_name="appointment_types")
    op.drop_table("appointment_types")
    op.drop_index("ix_availability_breeder_day", table_name="availability_ranges")
    op.drop_index("ix_availability_ranges_breeder_id", table_name="availability_ranges")
    op.drop_table("availability_ranges")
    op.drop_table("scheduling_settings")
    booking_status.drop(op.get_bind(), checkfirst=True)
