# studio_scheduler/repositories/booking_repository.py
"""
Booking Repository for the studio scheduler.

Data access for bookings: single and batch creation, status updates
(single and whole recurring series), listing and per-status counts.
Nothing here commits; batch methods flush once so that the calling
service can roll the whole batch back.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, RepositoryException
from ..domain.lifecycle import apply_updates
from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # Creation

    def create_booking(self, **fields: Any) -> Booking:
        """Insert one booking row."""
        booking = self.create(**fields)
        self.logger.debug(f"Created booking {booking.id} in {booking.studio_id}")
        return booking

    def create_booking_batch(self, rows: Sequence[Mapping[str, Any]]) -> List[Booking]:
        """Insert every occurrence of a recurring series in a single flush."""
        if not rows:
            return []
        bookings = self.bulk_create([dict(row) for row in rows])
        self.logger.debug(f"Created {len(bookings)} bookings in one batch")
        return bookings

    # Status Management Methods

    def update_booking_status(self, booking_id: str, updates: Mapping[str, Any]) -> Booking:
        """
        Apply planned lifecycle field updates to one booking.

        Raises:
            NotFoundException: If booking not found
            RepositoryException: If update fails
        """
        try:
            booking = self.get_by_id(booking_id)
            if not booking:
                raise NotFoundException(
                    f"Booking with id {booking_id} not found",
                    code="BOOKING_NOT_FOUND",
                    details={"booking_id": booking_id},
                )

            apply_updates(booking, updates)

            self.db.flush()
            self.logger.info(f"Booking {booking_id} -> {booking.status}")
            return booking

        except NotFoundException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking: {str(e)}") from e

    def update_booking_batch(
        self, bookings: Sequence[Booking], updates_by_id: Mapping[str, Mapping[str, Any]]
    ) -> int:
        """
        Apply per-booking updates to already loaded bookings in one flush.

        Bookings without an entry in ``updates_by_id`` are left untouched.

        Returns:
            Number of bookings updated
        """
        updated = 0
        try:
            for booking in bookings:
                updates = updates_by_id.get(booking.id)
                if not updates:
                    continue
                apply_updates(booking, updates)
                updated += 1

            self.db.flush()
            return updated
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating booking batch: {str(e)}")
            raise RepositoryException(f"Failed to update bookings: {str(e)}") from e

    # Queries

    def get_by_group(self, group_id: str) -> List[Booking]:
        """All bookings of a recurring series, ordered by start time."""
        query = (
            self._build_query()
            .filter(Booking.recurring_group_id == group_id)
            .order_by(Booking.start_time)
        )
        return self._execute_query(query)

    def list_bookings(
        self,
        studio_id: Optional[str] = None,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
        day: Optional[date] = None,
    ) -> List[Booking]:
        """Bookings matching every given filter, ordered by start time."""
        query = self._build_query()

        if studio_id:
            query = query.filter(Booking.studio_id == studio_id)
        if status:
            query = query.filter(Booking.status == status)
        if user_id:
            query = query.filter(Booking.user_id == user_id)
        if day:
            day_start = datetime.combine(day, time.min)
            query = query.filter(
                Booking.start_time >= day_start,
                Booking.start_time < day_start + timedelta(days=1),
            )

        return self._execute_query(query.order_by(Booking.start_time))

    def count_by_status(self) -> Dict[str, int]:
        """
        Count bookings grouped by status.

        Returns:
            Dictionary with every status as key (zero when absent)
        """
        try:
            rows = (
                self.db.query(Booking.status, func.count(Booking.id).label("count"))
                .group_by(Booking.status)
                .all()
            )

            status_counts = {status.value: 0 for status in BookingStatus}
            for row in rows:
                if row.status:
                    status_counts[row.status] = row.count

            return status_counts

        except SQLAlchemyError as e:
            self.logger.error(f"Error counting bookings by status: {str(e)}")
            raise RepositoryException(f"Failed to count bookings by status: {str(e)}") from e
