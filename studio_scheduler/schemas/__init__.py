"""Pydantic request/response schemas."""

from .booking import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    BookingCancel,
    BookingCreate,
    BookingCreateResponse,
    BookingReject,
    BookingResponse,
    BookingStatsResponse,
    BookingUpdate,
    GroupTransitionResponse,
    SkippedOccurrence,
)
from .studio import StudioResponse

__all__ = [
    "AvailabilityCheckRequest",
    "AvailabilityCheckResponse",
    "BookingCancel",
    "BookingCreate",
    "BookingCreateResponse",
    "BookingReject",
    "BookingResponse",
    "BookingStatsResponse",
    "BookingUpdate",
    "GroupTransitionResponse",
    "SkippedOccurrence",
    "StudioResponse",
]
