"""
Booking-hours policy.

Studios open for member bookings in the late afternoon on weekdays and
all day on weekends, closing at the same hour every day. An interval may
end exactly at closing time but not a minute later, and must not start
before the opening hour.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from studio_scheduler.core.config import Settings, settings as default_settings
from studio_scheduler.core.exceptions import OutsideBusinessHoursException, ValidationException
from studio_scheduler.models.studio import Studio

from .time_interval import TimeInterval


@dataclass(frozen=True)
class BookingWindow:
    start_hour: int
    end_hour: int
    is_weekend: bool

    @property
    def label(self) -> str:
        return "Weekend" if self.is_weekend else "Weekday"

    @property
    def start_label(self) -> str:
        return f"{self.start_hour:02d}:00"

    @property
    def end_label(self) -> str:
        return f"{self.end_hour:02d}:00"

    def contains(self, interval: TimeInterval) -> bool:
        start, end = interval.start, interval.end
        if start.hour < self.start_hour or start.hour >= self.end_hour:
            return False
        return end.hour < self.end_hour or (end.hour == self.end_hour and end.minute == 0)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def booking_window(day: date, config: Optional[Settings] = None) -> BookingWindow:
    """Allowed booking window for the given calendar date."""
    config = config or default_settings
    weekend = is_weekend(day)
    return BookingWindow(
        start_hour=config.weekend_open_hour if weekend else config.weekday_open_hour,
        end_hour=config.closing_hour,
        is_weekend=weekend,
    )


def validate_business_hours(
    interval: TimeInterval,
    studio: Optional[Studio] = None,
    config: Optional[Settings] = None,
) -> None:
    """
    Raise OutsideBusinessHoursException unless the interval fits the window.

    Studios that do not enforce booking hours (offsite) are accepted as-is.
    """
    if studio is not None and not studio.enforce_booking_hours:
        return

    window = booking_window(interval.day, config)
    if not window.contains(interval):
        raise OutsideBusinessHoursException(window.label, window.start_label, window.end_label)


def validate_duration(interval: TimeInterval, config: Optional[Settings] = None) -> None:
    """Reject intervals spanning midnight or outside the allowed duration range."""
    config = config or default_settings

    if not interval.is_single_day:
        raise ValidationException(
            "Bookings must start and end on the same day",
            code="MULTI_DAY_BOOKING",
            details={"field": "end_time"},
        )

    minutes = interval.duration_minutes
    if minutes < config.min_booking_minutes:
        raise ValidationException(
            f"Booking must be at least {config.min_booking_minutes} minutes",
            code="BOOKING_TOO_SHORT",
            details={"field": "end_time", "duration_minutes": minutes},
        )
    if minutes > config.max_booking_minutes:
        raise ValidationException(
            f"Booking cannot exceed {config.max_booking_minutes // 60} hours",
            code="BOOKING_TOO_LONG",
            details={"field": "end_time", "duration_minutes": minutes},
        )


def split_by_business_hours(
    interval: TimeInterval,
    dates: Iterable[date],
    studio: Optional[Studio] = None,
    config: Optional[Settings] = None,
) -> Tuple[List[date], List[Dict[str, Any]]]:
    """
    Separate occurrence dates whose copy of ``interval`` fits the booking window.

    Returns:
        ``(inside, outside)`` where ``outside`` is ``[{"date", "conflicts"}]``
    """
    inside: List[date] = []
    outside: List[Dict[str, Any]] = []
    for day in dates:
        try:
            validate_business_hours(interval.on_date(day), studio, config)
        except OutsideBusinessHoursException as exc:
            outside.append({"date": day.isoformat(), "conflicts": [exc.message]})
        else:
            inside.append(day)
    return inside, outside
