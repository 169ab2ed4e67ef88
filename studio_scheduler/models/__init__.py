"""
Database models for the studio scheduler.

- Booking: member studio reservations and their approval state
- CalendarEvent: classes and other events that also occupy studios
- Studio: fixed studio catalog (not persisted)
"""

from .booking import BLOCKING_STATUSES, Booking, BookingStatus, RecurrenceLabel
from .calendar_event import CalendarEvent, EventType
from .studio import STUDIOS, Studio, get_studio, list_studios

__all__ = [
    "BLOCKING_STATUSES",
    "Booking",
    "BookingStatus",
    "CalendarEvent",
    "EventType",
    "RecurrenceLabel",
    "STUDIOS",
    "Studio",
    "get_studio",
    "list_studios",
]
