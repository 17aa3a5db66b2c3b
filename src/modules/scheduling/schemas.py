"""Scheduling schemas."""

from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from src.modules.scheduling.availability import ALLOWED_SLOT_INTERVALS, TimeRange, format_minutes, parse_clock
from src.shared.enums import Weekday

CLOCK_PATTERN = r"^\d{2}:\d{2}$"
HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class TimeRangeSchema(BaseModel):
    start: str = Field(..., pattern=CLOCK_PATTERN, examples=["09:00"])
    end: str = Field(..., pattern=CLOCK_PATTERN, examples=["17:00"])

    @model_validator(mode="after")
    def validate_order(self) -> "TimeRangeSchema":
        self.to_range()
        return self

    def to_range(self) -> TimeRange:
        return TimeRange(parse_clock(self.start), parse_clock(self.end))

    @classmethod
    def from_range(cls, value: TimeRange) -> "TimeRangeSchema":
        return cls(start=format_minutes(value.start), end=format_minutes(value.end))


WeeklyAvailabilitySchema = dict[Weekday, list[TimeRangeSchema]]


class _AppointmentTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str = Field("", max_length=500)
    duration_minutes: int = Field(..., gt=0)
    buffer_before_minutes: int = Field(0, ge=0)
    buffer_after_minutes: int = Field(0, ge=0)
    color: str = Field("#3b82f6", pattern=HEX_COLOR_PATTERN)
    enabled: bool = True
    sort_order: int = 0


class AppointmentTypeCreate(_AppointmentTypeBase):
    pass


class AppointmentTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = Field(None, max_length=500)
    duration_minutes: int | None = Field(None, gt=0)
    buffer_before_minutes: int | None = Field(None, ge=0)
    buffer_after_minutes: int | None = Field(None, ge=0)
    color: str | None = Field(None, pattern=HEX_COLOR_PATTERN)
    enabled: bool | None = None
    sort_order: int | None = None


class AppointmentTypePublic(_AppointmentTypeBase):
    model_config = ConfigDict(from_attributes=True)

    appointment_type_id: str = Field(
        validation_alias=AliasChoices("appointment_type_id", "id"),
        serialization_alias="id",
    )


class _PolicyFields(BaseModel):
    timezone: str | None = None
    min_advance_booking_hours: int | None = Field(None, ge=0)
    max_advance_booking_days: int | None = Field(None, ge=0)
    slot_interval_minutes: int | None = None
    booking_page_enabled: bool | None = None
    booking_page_title: str | None = Field(None, max_length=200)
    booking_page_description: str | None = None
    confirmation_message: str | None = None

    @field_validator("slot_interval_minutes")
    @classmethod
    def validate_interval(cls, value: int | None) -> int | None:
        if value is not None and value not in ALLOWED_SLOT_INTERVALS:
            allowed = ", ".join(str(item) for item in ALLOWED_SLOT_INTERVALS)
            raise ValueError(f"slot_interval_minutes must be one of {allowed}")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value


class SchedulingSettingsUpdate(_PolicyFields):
    weekly_availability: WeeklyAvailabilitySchema | None = None


class SchedulingSettingsPublic(BaseModel):
    breeder_id: str
    timezone: str
    min_advance_booking_hours: int
    max_advance_booking_days: int
    slot_interval_minutes: int
    booking_page_enabled: bool
    booking_page_title: str
    booking_page_description: str
    confirmation_message: str
    weekly_availability: WeeklyAvailabilitySchema
    appointment_types: list[AppointmentTypePublic]


class BookingPagePublic(BaseModel):
    breeder_id: str
    title: str
    description: str
    confirmation_message: str
    appointment_types: list[AppointmentTypePublic]


class AvailableDates(BaseModel):
    min_date: date
    max_date: date


class DaySlots(BaseModel):
    date: date
    slots: list[str]
    labels: list[str]
