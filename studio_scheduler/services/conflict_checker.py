# studio_scheduler/services/conflict_checker.py
"""
Conflict Checker Service for the studio scheduler.

Handles all booking conflict detection including:
- Checking a candidate interval against events and bookings of its studio/day
- Checking every occurrence of a recurring request
- Listing the occupied intervals of a studio for a day

The overlap rules themselves live in ``domain.conflicts``; this service
only loads the day's reservations through the repository.
"""

from datetime import date
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import SchedulingConflictException
from ..domain.conflicts import find_conflicts, has_conflict
from ..domain.time_interval import TimeInterval
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts.

    Pending and approved bookings plus non-cancelled events are obstacles.
    """

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("check_booking_conflicts")
    def check_booking_conflicts(
        self,
        studio_id: str,
        interval: TimeInterval,
        exclude_booking_id: Optional[str] = None,
    ) -> List[str]:
        """
        Check if an interval conflicts with existing reservations.

        Args:
            studio_id: The studio to check
            interval: Candidate interval
            exclude_booking_id: Booking being edited, ignored as an obstacle

        Returns:
            Human-readable descriptions of the conflicting reservations
        """
        snapshot = self.repository.fetch_reservations(studio_id, interval.day)
        conflicts = find_conflicts(
            interval, snapshot.events, snapshot.bookings, exclude_id=exclude_booking_id
        )

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} conflicts for {studio_id} at {interval}: {conflicts}"
            )

        return conflicts

    @BaseService.measure_operation("check_time_conflicts")
    def check_time_conflicts(
        self,
        studio_id: str,
        interval: TimeInterval,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """Boolean check that stops at the first obstacle."""
        snapshot = self.repository.fetch_reservations(studio_id, interval.day)
        return has_conflict(
            interval, snapshot.events, snapshot.bookings, exclude_id=exclude_booking_id
        )

    def ensure_no_conflicts(
        self,
        studio_id: str,
        interval: TimeInterval,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """
        Raises:
            SchedulingConflictException: If the interval overlaps any obstacle
        """
        conflicts = self.check_booking_conflicts(studio_id, interval, exclude_booking_id)
        if conflicts:
            raise SchedulingConflictException(conflicts)

    @BaseService.measure_operation("check_recurring_conflicts")
    def check_recurring_conflicts(
        self,
        studio_id: str,
        interval: TimeInterval,
        dates: Iterable[date],
    ) -> List[Dict[str, Any]]:
        """
        Check each occurrence of a recurring request independently.

        Args:
            studio_id: The studio to check
            interval: Time-of-day template (its own date is ignored)
            dates: Occurrence dates

        Returns:
            ``[{"date": "YYYY-MM-DD", "conflicts": [...]}]`` for conflicting dates only
        """
        results = []
        for day in dates:
            conflicts = self.check_booking_conflicts(studio_id, interval.on_date(day))
            if conflicts:
                results.append({"date": day.isoformat(), "conflicts": conflicts})
        return results

    @BaseService.measure_operation("get_booked_times_date")
    def get_booked_times_for_date(self, studio_id: str, target_date: date) -> List[Dict[str, Any]]:
        """
        Occupied intervals of a studio on one date, events and bookings merged.

        Returns:
            List sorted by start time
        """
        snapshot = self.repository.fetch_reservations(studio_id, target_date)

        booked = [
            {
                "source": "event",
                "id": event.id,
                "label": event.conflict_label,
                "start_time": event.start_time.isoformat(),
                "end_time": event.end_time.isoformat(),
            }
            for event in snapshot.events
        ]
        booked.extend(
            {
                "source": "booking",
                "id": booking.id,
                "label": booking.conflict_label,
                "start_time": booking.start_time.isoformat(),
                "end_time": booking.end_time.isoformat(),
                "status": booking.status,
            }
            for booking in snapshot.bookings
        )
        return sorted(booked, key=lambda item: item["start_time"])
