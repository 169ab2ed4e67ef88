# studio_scheduler/models/booking.py
"""
Booking model for the studio scheduler.

A booking reserves one interval in one studio on behalf of one member.
Recurring requests are materialized up front: every occurrence is its
own row, and siblings share a ``recurring_group_id`` so that whole-series
actions can be applied in one batch.

All datetimes are naive and expressed in the studio's local time.
"""

from datetime import datetime
from enum import Enum
import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    String,
    Text,
)

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting admin decision, already blocks the slot
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Bookings in these statuses occupy their slot
BLOCKING_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED)


class RecurrenceLabel(str, Enum):
    """Recurrence shorthand offered to members when requesting a series."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class Booking(Base):
    """
    Studio reservation requested by a member.

    Audit fields follow the status: ``approved_by``/``approved_at`` only on
    approved bookings, ``rejection_reason`` only on rejected ones and
    ``cancellation_reason``/``cancelled_at`` only on cancelled ones.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    studio_id = Column(String(32), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(255), nullable=False)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    purpose = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    # Recurrence metadata
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_pattern = Column(String(20), nullable=True)
    recurring_end_date = Column(Date, nullable=True)
    recurring_group_id = Column(String(64), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)

    # Approval / rejection / cancellation audit
    approved_by = Column(String(64), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled')",
            name="ck_bookings_status",
        ),
        Index("ix_bookings_studio_start", "studio_id", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id} {self.studio_id} "
            f"{self.start_time}-{self.end_time} [{self.status}]>"
        )

    @property
    def conflict_label(self) -> str:
        return f"Booking: {self.user_name}"
