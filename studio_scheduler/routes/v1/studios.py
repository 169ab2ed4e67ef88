# studio_scheduler/routes/v1/studios.py
"""Studio catalog routes - API v1."""

from typing import List

from fastapi import APIRouter, Query

from ...models.studio import list_studios
from ...schemas.studio import StudioResponse

router = APIRouter(tags=["studios-v1"])


@router.get("", response_model=List[StudioResponse])
def get_studios(locale: str = Query("en", pattern="^(en|de|es)$")) -> List[StudioResponse]:
    """The fixed studio catalog with display names in the requested locale."""
    return [StudioResponse.from_studio(studio, locale) for studio in list_studios()]
