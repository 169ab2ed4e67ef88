"""
Free-form time-of-day parsing.

Members type times the way they say them: "5 pm", "17,00", "17.30",
"17". Everything is normalized to a zero-padded 24-hour ``HH:MM`` string.
Out-of-range values are rejected, never clamped.
"""

from __future__ import annotations

from datetime import time
import re
from typing import Optional

from studio_scheduler.core.exceptions import MalformedTimeInputException

_AMPM_RE = re.compile(r"^(\d{1,2})(?:[:.,;](\d{2}))?\s*(am|pm)$", re.ASCII)
_24H_RE = re.compile(r"^(\d{1,2})[:.,;](\d{2})$", re.ASCII)
_HOUR_ONLY_RE = re.compile(r"^(\d{1,2})$", re.ASCII)
_CANONICAL_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$", re.ASCII)


def _format(hours: int, minutes: int) -> str:
    return f"{hours:02d}:{minutes:02d}"


def try_parse_time_input(raw: Optional[str]) -> Optional[str]:
    """Return canonical ``HH:MM`` or ``None`` when the input is not a valid time."""
    if not raw or not isinstance(raw, str):
        return None

    text = raw.strip().lower()

    match = _AMPM_RE.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2)) if match.group(2) else 0
        period = match.group(3)
        if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
            return None
        if period == "pm" and hours != 12:
            hours += 12
        elif period == "am" and hours == 12:
            hours = 0
        return _format(hours, minutes)

    match = _24H_RE.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
            return None
        return _format(hours, minutes)

    match = _HOUR_ONLY_RE.match(text)
    if match:
        hours = int(match.group(1))
        if not 0 <= hours <= 23:
            return None
        return _format(hours, 0)

    return None


def parse_time_input(raw: Optional[str], field: Optional[str] = None) -> str:
    """
    Normalize a time-of-day string to ``HH:MM``.

    Raises:
        MalformedTimeInputException: If the input cannot be interpreted
    """
    parsed = try_parse_time_input(raw)
    if parsed is None:
        raise MalformedTimeInputException(raw or "", field=field)
    return parsed


def to_time(canonical: str) -> time:
    """Convert a canonical ``HH:MM`` string to a ``datetime.time``."""
    match = _CANONICAL_RE.match(canonical)
    if not match:
        raise MalformedTimeInputException(canonical)
    return time(int(match.group(1)), int(match.group(2)))


def format_time(value: time) -> str:
    return _format(value.hour, value.minute)
