# studio_scheduler/models/studio.py
"""
Studio catalog.

Studios are fixed reference data rather than database rows: two physical
rooms and one offsite pseudo-studio used for performances and workshops
held elsewhere.
"""

from dataclasses import dataclass
from typing import Dict, List

from ..core.exceptions import NotFoundException


@dataclass(frozen=True)
class Studio:
    id: str
    name: str
    name_de: str
    name_es: str
    capacity: int
    color: str
    enforce_booking_hours: bool = True

    def display_name(self, locale: str = "en") -> str:
        if locale == "de":
            return self.name_de
        if locale == "es":
            return self.name_es
        return self.name


STUDIO_BIG = Studio(
    id="studio-1-big",
    name="Studio 1 (Big)",
    name_de="Studio 1 (Groß)",
    name_es="Estudio 1 (Grande)",
    capacity=20,
    color="#D4AF37",
)

STUDIO_SMALL = Studio(
    id="studio-2-small",
    name="Studio 2 (Small)",
    name_de="Studio 2 (Klein)",
    name_es="Estudio 2 (Pequeño)",
    capacity=12,
    color="#C0C0C0",
)

STUDIO_OFFSITE = Studio(
    id="offsite",
    name="Offsite Location",
    name_de="Außenstandort",
    name_es="Ubicación Externa",
    capacity=50,
    color="#4169E1",
    enforce_booking_hours=False,
)

STUDIOS: Dict[str, Studio] = {s.id: s for s in (STUDIO_BIG, STUDIO_SMALL, STUDIO_OFFSITE)}


def get_studio(studio_id: str) -> Studio:
    """Look up a studio by id, raising NotFoundException for unknown ids."""
    studio = STUDIOS.get(studio_id)
    if studio is None:
        raise NotFoundException(
            f"Unknown studio: {studio_id}", code="STUDIO_NOT_FOUND", details={"studio_id": studio_id}
        )
    return studio


def list_studios() -> List[Studio]:
    return list(STUDIOS.values())
