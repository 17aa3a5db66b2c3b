"""Booking schemas."""

from datetime import date, datetime, time

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.shared.enums import BookingStatus

MAX_NOTES_LENGTH = 2000


class BookingCreate(BaseModel):
    appointment_type_id: str
    date: date
    slot_start: time = Field(..., examples=["09:30"])
    customer_name: str = Field(..., min_length=1, max_length=120)
    customer_email: EmailStr
    customer_phone: str = Field("", max_length=32)
    notes: str = Field("", max_length=MAX_NOTES_LENGTH)

    @field_validator("customer_name", "customer_phone", "notes")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("customer_email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("slot_start")
    @classmethod
    def drop_seconds(cls, value: time) -> time:
        if value.tzinfo is not None:
            raise ValueError("slot_start is a local wall-clock time without a timezone")
        return value.replace(second=0, microsecond=0)


class BookingPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: str = Field(validation_alias=AliasChoices("booking_id", "id"), serialization_alias="id")
    breeder_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    appointment_type_id: str
    appointment_type_name: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: BookingStatus
    notes: str
    booked_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None


class BookingAdminPublic(BookingPublic):
    internal_notes: str | None = None


class BookingCancel(BaseModel):
    reason: str | None = Field(None, max_length=500)


class BookingUpdate(BaseModel):
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH)
    internal_notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH)
