"""Application configuration via Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Breeder Booking API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    redis_url: str | None = Field(None, alias="REDIS_URL")

    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = Field(60 * 24, alias="JWT_EXPIRES_IN")

    default_timezone: str = Field("America/New_York", alias="DEFAULT_TIMEZONE")
    default_min_advance_booking_hours: int = Field(24, alias="DEFAULT_MIN_ADVANCE_BOOKING_HOURS")
    default_max_advance_booking_days: int = Field(30, alias="DEFAULT_MAX_ADVANCE_BOOKING_DAYS")
    default_slot_interval_minutes: int = Field(30, alias="DEFAULT_SLOT_INTERVAL_MINUTES")

    booking_submit_timeout_seconds: float = Field(10.0, alias="BOOKING_SUBMIT_TIMEOUT_SECONDS")
    booking_lock_timeout_seconds: float = Field(5.0, alias="BOOKING_LOCK_TIMEOUT_SECONDS")


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
