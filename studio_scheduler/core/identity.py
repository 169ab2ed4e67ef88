"""Caller identity as supplied by the upstream auth layer."""

from dataclasses import dataclass

from .constants import ADMIN_ROLE, MEMBER_ROLE


@dataclass(frozen=True)
class Actor:
    user_id: str
    user_name: str
    role: str = MEMBER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def owns(self, booking: object) -> bool:
        return getattr(booking, "user_id", None) == self.user_id
