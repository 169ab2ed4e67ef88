# studio_scheduler/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for the studio scheduler.

Reads everything that may occupy a studio on a given day: calendar events
and bookings. Filtering by status and overlap happens in the domain layer
so that the same rules apply to stored rows and in-memory candidates.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..domain.conflicts import ReservationSnapshot
from ..models.booking import BLOCKING_STATUSES, Booking
from ..models.calendar_event import CalendarEvent
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class ConflictCheckerRepository(BaseRepository[Booking]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_events_for_day(self, studio_id: str, day: date) -> List[CalendarEvent]:
        """Non-cancelled events of a studio starting on ``day``."""
        day_start, day_end = _day_bounds(day)
        try:
            return (
                self.db.query(CalendarEvent)
                .filter(
                    CalendarEvent.studio_id == studio_id,
                    CalendarEvent.start_time >= day_start,
                    CalendarEvent.start_time < day_end,
                    CalendarEvent.is_cancelled.is_(False),
                )
                .order_by(CalendarEvent.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting events for {studio_id} on {day}: {str(e)}")
            raise RepositoryException(f"Failed to get events: {str(e)}") from e

    def get_bookings_for_day(self, studio_id: str, day: date) -> List[Booking]:
        """Pending and approved bookings of a studio starting on ``day``."""
        day_start, day_end = _day_bounds(day)
        query = (
            self._build_query()
            .filter(
                Booking.studio_id == studio_id,
                Booking.start_time >= day_start,
                Booking.start_time < day_end,
                Booking.status.in_([s.value for s in BLOCKING_STATUSES]),
            )
            .order_by(Booking.start_time)
        )
        return self._execute_query(query)

    def fetch_reservations(self, studio_id: str, day: date) -> ReservationSnapshot:
        """Everything that may block ``studio_id`` on ``day``."""
        return ReservationSnapshot(
            studio_id=studio_id,
            day=day,
            events=list(self.get_events_for_day(studio_id, day)),
            bookings=list(self.get_bookings_for_day(studio_id, day)),
        )
