"""Half-open time interval used by conflict detection and recurrence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time

from studio_scheduler.core.exceptions import ValidationException


@dataclass(frozen=True)
class TimeInterval:
    """A ``[start, end)`` pair of local datetimes with ``start < end``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValidationException(
                "End time must be after start time",
                code="INVALID_TIME_RANGE",
                details={"start": self.start.isoformat(), "end": self.end.isoformat()},
            )

    @classmethod
    def on_day(cls, day: date, start: time, end: time) -> TimeInterval:
        return cls(datetime.combine(day, start), datetime.combine(day, end))

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    @property
    def is_single_day(self) -> bool:
        return self.start.date() == self.end.date()

    def overlaps(self, other: TimeInterval) -> bool:
        """Touching endpoints do not overlap."""
        return self.start < other.end and self.end > other.start

    def on_date(self, day: date) -> TimeInterval:
        """The same time-of-day window moved onto another date."""
        return TimeInterval.on_day(day, self.start.time(), self.end.time())

    def __str__(self) -> str:
        return f"{self.start:%Y-%m-%d %H:%M}-{self.end:%H:%M}"
