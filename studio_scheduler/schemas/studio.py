"""Studio catalog schemas."""

from ..models.studio import Studio
from ._strict_base import StrictModel


class StudioResponse(StrictModel):
    id: str
    name: str
    display_name: str
    capacity: int
    color: str
    enforce_booking_hours: bool

    @classmethod
    def from_studio(cls, studio: Studio, locale: str = "en") -> "StudioResponse":
        return cls(
            id=studio.id,
            name=studio.name,
            display_name=studio.display_name(locale),
            capacity=studio.capacity,
            color=studio.color,
            enforce_booking_hours=studio.enforce_booking_hours,
        )
