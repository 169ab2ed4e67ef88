# studio_scheduler/core/config.py
"""
Application settings for the studio scheduler.

Values come from environment variables (prefixed with ``STUDIO_``) or a
``.env`` file next to the project root. Booking-hour and policy constants
live here so that deployments can tune them without code changes.
"""

import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _PROJECT_ROOT / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path} (exists={env_path.exists()})")
    load_dotenv(env_path)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    app_name: str = Field(default=BRAND_NAME, description="Display name used in logs and the API")
    environment: Literal["development", "test", "production"] = Field(
        default="development", description="Deployment environment"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default=f"sqlite:///{_PROJECT_ROOT / 'studio_scheduler.db'}",
        description="SQLAlchemy database URL",
    )

    # Booking hours (24h clock, whole hours)
    weekday_open_hour: int = Field(default=16, description="Earliest weekday start hour")
    weekend_open_hour: int = Field(default=8, description="Earliest weekend start hour")
    closing_hour: int = Field(default=22, description="Latest end hour (inclusive at :00)")

    # Booking rules
    min_booking_minutes: int = Field(default=30, ge=1)
    max_booking_minutes: int = Field(default=240, ge=1)
    cancellation_notice_hours: int = Field(
        default=24, ge=0, description="Minimum notice for member cancellations"
    )
    default_rejection_reason: str = "Rejected by admin"
    member_cancellation_reason: str = "Cancelled by user"
    admin_cancellation_reason: str = "Cancelled by admin"

    # Recurring series limits
    max_recurring_occurrences: int = Field(default=365, ge=1)
    max_recurring_horizon_months: int = Field(
        default=12, ge=1, description="Latest recurring end date, in calendar months after the first date"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        env_prefix="STUDIO_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("weekday_open_hour", "weekend_open_hour", "closing_hour")
    @classmethod
    def _validate_hour(cls, value: int) -> int:
        if not 0 <= value <= 24:
            raise ValueError("booking hours must be between 0 and 24")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _validate_windows(self) -> "Settings":
        if self.weekday_open_hour >= self.closing_hour or self.weekend_open_hour >= self.closing_hour:
            raise ValueError("opening hours must be before the closing hour")
        if self.min_booking_minutes > self.max_booking_minutes:
            raise ValueError("min_booking_minutes cannot exceed max_booking_minutes")
        return self

    @property
    def is_testing(self) -> bool:
        return self.environment == "test" or is_running_tests()


settings = Settings()
