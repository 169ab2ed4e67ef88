"""
Conflict detection between a candidate interval and existing reservations.

Obstacles are every non-cancelled calendar event and every booking that is
pending or approved. Pending requests block their slot as soon as they are
made, so two overlapping requests can never both be admitted and later both
approved. Rejected and cancelled bookings never block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence

from studio_scheduler.models.booking import BLOCKING_STATUSES

from .time_interval import TimeInterval

_BLOCKING_VALUES = frozenset(s.value for s in BLOCKING_STATUSES)


class EventLike(Protocol):
    id: str
    start_time: datetime
    end_time: datetime
    is_cancelled: bool

    @property
    def conflict_label(self) -> str: ...


class BookingLike(Protocol):
    id: str
    start_time: datetime
    end_time: datetime
    status: str

    @property
    def conflict_label(self) -> str: ...


@dataclass
class ReservationSnapshot:
    """Events and bookings of one studio on one day, as read from storage."""

    studio_id: str
    day: date
    events: List[EventLike] = field(default_factory=list)
    bookings: List[BookingLike] = field(default_factory=list)


def intervals_conflict(a: TimeInterval, b: TimeInterval) -> bool:
    return a.start < b.end and a.end > b.start


def _overlaps(candidate: TimeInterval, start: datetime, end: datetime) -> bool:
    return candidate.start < end and candidate.end > start


def iter_conflicts(
    candidate: TimeInterval,
    events: Iterable[EventLike],
    bookings: Iterable[BookingLike],
    exclude_id: Optional[str] = None,
) -> Iterator[str]:
    """Yield a description for every obstacle overlapping the candidate."""
    for event in events:
        if exclude_id is not None and event.id == exclude_id:
            continue
        if event.is_cancelled:
            continue
        if _overlaps(candidate, event.start_time, event.end_time):
            yield event.conflict_label

    for booking in bookings:
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if booking.status not in _BLOCKING_VALUES:
            continue
        if _overlaps(candidate, booking.start_time, booking.end_time):
            yield booking.conflict_label


def find_conflicts(
    candidate: TimeInterval,
    events: Sequence[EventLike],
    bookings: Sequence[BookingLike],
    exclude_id: Optional[str] = None,
    first_only: bool = False,
) -> List[str]:
    """Descriptions of every obstacle overlapping the candidate, or just the first one."""
    found = iter_conflicts(candidate, events, bookings, exclude_id)
    if first_only:
        first = next(found, None)
        return [first] if first is not None else []
    return list(found)


def has_conflict(
    candidate: TimeInterval,
    events: Sequence[EventLike],
    bookings: Sequence[BookingLike],
    exclude_id: Optional[str] = None,
) -> bool:
    """Short-circuits on the first obstacle found."""
    return next(iter_conflicts(candidate, events, bookings, exclude_id), None) is not None