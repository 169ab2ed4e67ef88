# studio_scheduler/api/dependencies.py
"""
FastAPI dependencies: database session, caller identity and services.

Identity comes from headers set by the upstream auth layer; this
application never authenticates callers itself.
"""

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ..core.constants import (
    ADMIN_ROLE,
    MEMBER_ROLE,
    USER_ID_HEADER,
    USER_NAME_HEADER,
    USER_ROLE_HEADER,
)
from ..core.exceptions import ForbiddenException, UnauthorizedException, ValidationException
from ..core.identity import Actor
from ..database import get_db as original_get_db
from ..services.booking_service import BookingService
from ..services.group_approval_service import GroupApprovalService


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    yield from original_get_db()


def get_current_actor(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
    x_user_name: Optional[str] = Header(None, alias=USER_NAME_HEADER),
    x_user_role: Optional[str] = Header(None, alias=USER_ROLE_HEADER),
) -> Actor:
    if not x_user_id:
        raise UnauthorizedException("Missing caller identity", code="IDENTITY_REQUIRED").to_http_exception()

    role = (x_user_role or MEMBER_ROLE).strip().lower()
    if role not in (ADMIN_ROLE, MEMBER_ROLE):
        raise ValidationException(
            f"Unknown role: {role}", code="INVALID_ROLE", details={"field": "X-User-Role"}
        ).to_http_exception()

    return Actor(user_id=x_user_id, user_name=x_user_name or x_user_id, role=role)


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise ForbiddenException("Admin access required").to_http_exception()
    return actor


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_group_approval_service(db: Session = Depends(get_db)) -> GroupApprovalService:
    return GroupApprovalService(db)
