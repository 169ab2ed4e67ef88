# studio_scheduler/models/calendar_event.py
"""
Calendar events (scheduled classes, special events, holidays).

Events are owned by the class-management side of the studio. The booking
engine only reads them: a non-cancelled event blocks its studio for its
whole interval, exactly like a pending or approved booking.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, String, Text

from ..core.ulid_helper import generate_ulid
from ..database import Base


class EventType(str, Enum):
    CLASS = "class"
    BOOKING = "booking"
    SPECIAL_EVENT = "special-event"
    HOLIDAY = "holiday"


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    studio_id = Column(String(32), nullable=False, index=True)
    event_type = Column(String(20), nullable=False, default=EventType.CLASS.value)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    instructor_name = Column(String(255), nullable=True)
    is_cancelled = Column(Boolean, nullable=False, default=False)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_calendar_events_time_order"),
        Index("ix_calendar_events_studio_start", "studio_id", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<CalendarEvent {self.id} {self.title!r} {self.start_time}-{self.end_time}>"

    @property
    def conflict_label(self) -> str:
        return f"Event: {self.title}"
