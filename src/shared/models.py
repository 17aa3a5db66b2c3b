"""Reusable ORM mixins and column helpers."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.ids import BREEDER_ID_LENGTH


class TimestampMixin:
    """Track creation/update times in UTC."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def breeder_settings_fk() -> Mapped[str]:
    """``breeder_id`` column for configuration rows owned by a settings record."""
    return mapped_column(
        String(BREEDER_ID_LENGTH),
        ForeignKey("scheduling_settings.breeder_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
