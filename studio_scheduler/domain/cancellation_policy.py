"""Minimum-notice rule for member cancellations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from studio_scheduler.core.config import Settings, settings as default_settings
from studio_scheduler.core.exceptions import CancellationWindowExpiredException


@dataclass(frozen=True)
class CancellationDecision:
    allowed: bool
    hours_until_start: float
    required_hours: int
    reason: Optional[str] = None

    def to_payload(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "hours_until_start": round(self.hours_until_start, 2),
            "required_hours": self.required_hours,
            "reason": self.reason,
        }


class CancellationPolicy:
    """Members may cancel only with enough notice; admins are unrestricted."""

    def __init__(self, config: Optional[Settings] = None) -> None:
        self.required_hours = (config or default_settings).cancellation_notice_hours

    def evaluate(
        self, booking_start: datetime, *, is_admin: bool = False, now: Optional[datetime] = None
    ) -> CancellationDecision:
        now = now or datetime.now()
        hours_until_start = (booking_start - now).total_seconds() / 3600

        if is_admin:
            return CancellationDecision(True, hours_until_start, self.required_hours)

        if hours_until_start >= self.required_hours:
            return CancellationDecision(True, hours_until_start, self.required_hours)

        return CancellationDecision(
            allowed=False,
            hours_until_start=hours_until_start,
            required_hours=self.required_hours,
            reason=f"Less than {self.required_hours} hours before start",
        )

    def enforce(
        self, booking_start: datetime, *, is_admin: bool = False, now: Optional[datetime] = None
    ) -> CancellationDecision:
        decision = self.evaluate(booking_start, is_admin=is_admin, now=now)
        if not decision.allowed:
            raise CancellationWindowExpiredException(self.required_hours, decision.hours_until_start)
        return decision
