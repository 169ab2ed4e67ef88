# studio_scheduler/schemas/booking.py
"""
Booking schemas for the studio scheduler.

Request times stay raw strings ("5 pm", "17,00", "17") so that the booking
service can normalize them and report every bad field at once; dates are
strict ``YYYY-MM-DD``.
"""

from datetime import date, datetime
import re
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..models.booking import RecurrenceLabel
from ._strict_base import StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class BookingCreate(StrictRequestModel):
    """
    Request a studio for one date, optionally repeating until an end date.

    ``days_of_week`` (0 = Sunday) narrows weekly and biweekly series to
    specific weekdays.
    """

    studio_id: str = Field(..., description="Studio to book")
    booking_date: date = Field(..., description="Date of the (first) booking")
    start_time: str = Field(..., min_length=1, max_length=20, description="Start time, e.g. '5 pm'")
    end_time: str = Field(..., min_length=1, max_length=20, description="End time, e.g. '18:30'")
    purpose: Optional[str] = Field(None, max_length=500)

    is_recurring: bool = False
    recurring_pattern: Optional[RecurrenceLabel] = None
    recurring_end_date: Optional[date] = None
    days_of_week: Optional[List[int]] = Field(None, description="0 = Sunday ... 6 = Saturday")
    skip_conflicting_occurrences: bool = Field(
        False, description="Create the free occurrences instead of rejecting the whole series"
    )

    @field_validator("booking_date", "recurring_end_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "date")

    @field_validator("purpose")
    @classmethod
    def clean_purpose(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is None:
            return v
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_recurrence_fields(self) -> "BookingCreate":
        if not self.is_recurring:
            if self.recurring_pattern or self.recurring_end_date or self.days_of_week:
                raise ValueError("Recurrence fields require is_recurring=true")
            return self

        if self.recurring_pattern is None:
            raise ValueError("recurring_pattern is required for recurring bookings")
        if self.days_of_week and self.recurring_pattern not in (
            RecurrenceLabel.WEEKLY,
            RecurrenceLabel.BIWEEKLY,
        ):
            raise ValueError("days_of_week only applies to weekly and biweekly patterns")
        return self


class BookingUpdate(StrictRequestModel):
    """
    Edit a pending or approved booking.

    Omitted fields keep their current value.
    """

    studio_id: Optional[str] = None
    booking_date: Optional[date] = None
    start_time: Optional[str] = Field(None, min_length=1, max_length=20)
    end_time: Optional[str] = Field(None, min_length=1, max_length=20)
    purpose: Optional[str] = Field(None, max_length=500)

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")

    @field_validator("purpose")
    @classmethod
    def clean_purpose(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)

    @property
    def changes_schedule(self) -> bool:
        return any(
            value is not None
            for value in (self.studio_id, self.booking_date, self.start_time, self.end_time)
        )


class BookingReject(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)


class BookingCancel(StrictRequestModel):
    """Schema for cancelling a booking; the reason defaults by role."""

    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)


class AvailabilityCheckRequest(StrictRequestModel):
    studio_id: str
    booking_date: date
    start_time: str = Field(..., min_length=1, max_length=20)
    end_time: str = Field(..., min_length=1, max_length=20)
    exclude_booking_id: Optional[str] = None

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")


class AvailabilityCheckResponse(StrictModel):
    available: bool
    studio_id: str
    booking_date: date
    start_time: str
    end_time: str
    conflicts: List[str] = Field(default_factory=list)


class BookingResponse(StrictModel):
    """Booking as stored, including audit fields."""

    model_config = ConfigDict(from_attributes=True, validate_assignment=False)

    id: str
    studio_id: str
    user_id: str
    user_name: str
    start_time: datetime
    end_time: datetime
    purpose: Optional[str] = None
    status: str

    is_recurring: bool = False
    recurring_pattern: Optional[str] = None
    recurring_end_date: Optional[date] = None
    recurring_group_id: Optional[str] = None

    created_at: datetime
    updated_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None


class SkippedOccurrence(StrictModel):
    date: str
    conflicts: List[str] = Field(default_factory=list)


class BookingCreateResponse(StrictModel):
    """Result of a booking request: one booking, or every created occurrence."""

    bookings: List[BookingResponse]
    created_count: int
    recurring_group_id: Optional[str] = None
    skipped_occurrences: List[SkippedOccurrence] = Field(default_factory=list)


class GroupTransitionResponse(StrictModel):
    group_id: str
    transition: str
    affected_count: int
    booking_ids: List[str] = Field(default_factory=list)


class BookingStatsResponse(StrictModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    total: int = 0
