"""Starter configuration seeded the first time a breeder saves scheduling settings."""

from src.shared.enums import Weekday

WORKDAY_HOURS = [("09:00", "17:00")]

DEFAULT_WEEKLY_AVAILABILITY: dict[Weekday, list[tuple[str, str]]] = {
    Weekday.MONDAY: WORKDAY_HOURS,
    Weekday.TUESDAY: WORKDAY_HOURS,
    Weekday.WEDNESDAY: WORKDAY_HOURS,
    Weekday.THURSDAY: WORKDAY_HOURS,
    Weekday.FRIDAY: WORKDAY_HOURS,
    Weekday.SATURDAY: [],
    Weekday.SUNDAY: [],
}

DEFAULT_APPOINTMENT_TYPES: list[dict] = [
    {
        "name": "Puppy Visit",
        "description": "Visit to meet and interact with available puppies",
        "duration_minutes": 60,
        "buffer_before_minutes": 0,
        "buffer_after_minutes": 15,
        "color": "#3b82f6",
        "sort_order": 0,
    },
    {
        "name": "Pickup Appointment",
        "description": "Scheduled pickup for your new puppy",
        "duration_minutes": 30,
        "buffer_before_minutes": 0,
        "buffer_after_minutes": 15,
        "color": "#10b981",
        "sort_order": 1,
    },
    {
        "name": "General Consultation",
        "description": "General consultation about breeding or our kennel",
        "duration_minutes": 30,
        "buffer_before_minutes": 0,
        "buffer_after_minutes": 0,
        "color": "#8b5cf6",
        "sort_order": 2,
    },
]
