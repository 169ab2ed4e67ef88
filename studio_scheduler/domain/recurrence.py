"""
Recurrence expansion.

A recurring request is turned into concrete occurrence dates up front.
The cursor walks from the first date to the end date (inclusive) in steps
of the pattern's period. Weekly patterns with ``days_of_week`` emit every
selected weekday of each active week instead of the cursor date itself;
the filter is ignored for daily and monthly patterns.

Weekdays use 0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Iterator, List, Optional

from studio_scheduler.core.exceptions import ValidationException
from studio_scheduler.models.booking import RecurrenceLabel

DEFAULT_MAX_OCCURRENCES = 365


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class RecurringPattern:
    frequency: Frequency
    interval: int = 1
    days_of_week: FrozenSet[int] = field(default_factory=frozenset)
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValidationException(
                "Recurrence interval must be a positive number",
                code="INVALID_RECURRENCE",
                details={"interval": self.interval},
            )
        invalid_days = [d for d in self.days_of_week if not 0 <= d <= 6]
        if invalid_days:
            raise ValidationException(
                "Days of week must be between 0 (Sunday) and 6 (Saturday)",
                code="INVALID_RECURRENCE",
                details={"days_of_week": sorted(invalid_days)},
            )

    @classmethod
    def from_label(cls, label: RecurrenceLabel | str, end_date: Optional[date] = None) -> RecurringPattern:
        """Build a pattern from the shorthand used on booking requests."""
        label = RecurrenceLabel(label)
        if label == RecurrenceLabel.DAILY:
            return cls(Frequency.DAILY, 1, end_date=end_date)
        if label == RecurrenceLabel.WEEKLY:
            return cls(Frequency.WEEKLY, 1, end_date=end_date)
        if label == RecurrenceLabel.BIWEEKLY:
            return cls(Frequency.WEEKLY, 2, end_date=end_date)
        return cls(Frequency.MONTHLY, 1, end_date=end_date)

    @classmethod
    def build(
        cls,
        frequency: Frequency | str,
        interval: int = 1,
        days_of_week: Optional[Iterable[int]] = None,
        end_date: Optional[date] = None,
    ) -> RecurringPattern:
        return cls(Frequency(frequency), interval, frozenset(days_of_week or ()), end_date)


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def add_months(anchor: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of shorter months."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def _period_starts(start_date: date, pattern: RecurringPattern) -> Iterator[date]:
    step = 0
    while True:
        if pattern.frequency == Frequency.DAILY:
            yield start_date + timedelta(days=step * pattern.interval)
        elif pattern.frequency == Frequency.WEEKLY:
            yield start_date + timedelta(days=step * pattern.interval * 7)
        else:
            # Anchored on the first date so that Jan 31 -> Feb 28 -> Mar 31
            yield add_months(start_date, step * pattern.interval)
        step += 1


def expand_occurrences(
    start_date: date,
    end_date: date,
    pattern: RecurringPattern,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> List[date]:
    """
    Produce the ordered occurrence dates between two dates, both inclusive.

    Args:
        start_date: First candidate date (usually the requested booking date)
        end_date: Last date that may hold an occurrence
        pattern: Frequency, interval and optional weekday filter
        max_occurrences: Upper bound on the number of periods walked

    Returns:
        Ascending list of dates; empty when ``end_date`` precedes ``start_date``
    """
    if pattern.end_date is not None and pattern.end_date < end_date:
        end_date = pattern.end_date

    weekdays = sorted(pattern.days_of_week) if pattern.frequency == Frequency.WEEKLY else []

    occurrences: List[date] = []
    for step, cursor in enumerate(_period_starts(start_date, pattern)):
        if step >= max_occurrences:
            break

        if not weekdays:
            if cursor > end_date:
                break
            occurrences.append(cursor)
            continue

        # Weekday filter: every selected day of each active week
        week_start = cursor - timedelta(days=sunday_based_weekday(cursor))
        if week_start > end_date:
            break
        for weekday in weekdays:
            candidate = week_start + timedelta(days=weekday)
            if start_date <= candidate <= end_date:
                occurrences.append(candidate)

    return occurrences


# Seam used by the booking service so a different expansion strategy can be plugged in
OccurrenceExpander = Callable[[date, date, RecurringPattern], List[date]]
