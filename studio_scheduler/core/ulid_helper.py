"""ULID generation helper utilities."""

from typing import Optional

from ulid import ULID

from .constants import RECURRING_GROUP_PREFIX


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def generate_group_id() -> str:
    """Generate an identifier shared by the bookings of one recurring series."""
    return f"{RECURRING_GROUP_PREFIX}{generate_ulid()}"


def parse_ulid(ulid_str: str) -> Optional[ULID]:
    """Parse and validate a ULID string."""
    try:
        return ULID.from_str(ulid_str)
    except (ValueError, TypeError):
        return None


def is_valid_ulid(ulid_str: str) -> bool:
    """Check if a string is a valid ULID."""
    return parse_ulid(ulid_str) is not None
