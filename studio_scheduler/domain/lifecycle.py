"""
Booking lifecycle state machine.

    pending ──approve──▶ approved ──cancel──▶ cancelled
       │                                        ▲
       ├──reject──▶ rejected                    │
       └──────────────cancel────────────────────┘

Rejected and cancelled are final; reactivating means creating a new
booking. Transitions are planned here as plain field updates so that
repositories can apply a single one or a whole batch in one transaction.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from studio_scheduler.core.exceptions import InvalidStateTransitionException, ValidationException
from studio_scheduler.models.booking import BookingStatus


class BookingTransition(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"

    @property
    def target_status(self) -> BookingStatus:
        return _TARGETS[self]


_TARGETS: Mapping[BookingTransition, BookingStatus] = {
    BookingTransition.APPROVE: BookingStatus.APPROVED,
    BookingTransition.REJECT: BookingStatus.REJECTED,
    BookingTransition.CANCEL: BookingStatus.CANCELLED,
}

ALLOWED_SOURCES: Mapping[BookingTransition, FrozenSet[BookingStatus]] = {
    BookingTransition.APPROVE: frozenset({BookingStatus.PENDING}),
    BookingTransition.REJECT: frozenset({BookingStatus.PENDING}),
    BookingTransition.CANCEL: frozenset({BookingStatus.PENDING, BookingStatus.APPROVED}),
}


def can_transition(current: BookingStatus | str, transition: BookingTransition) -> bool:
    return BookingStatus(current) in ALLOWED_SOURCES[transition]


def reachable_statuses(current: BookingStatus | str) -> FrozenSet[BookingStatus]:
    """Statuses one transition away from ``current``."""
    return frozenset(
        transition.target_status
        for transition in BookingTransition
        if can_transition(current, transition)
    )


def plan_transition(
    current: BookingStatus | str,
    transition: BookingTransition,
    *,
    actor_id: Optional[str] = None,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    booking_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Compute the field updates for a lifecycle transition.

    Args:
        current: Current booking status
        transition: Requested transition
        actor_id: Approver id, required for approvals
        reason: Rejection or cancellation reason, required for those transitions
        now: Timestamp to stamp (defaults to the current local time)
        booking_id: Used only for error details

    Returns:
        Mapping of booking attribute -> new value

    Raises:
        InvalidStateTransitionException: If ``current`` does not allow the transition
        ValidationException: If a required actor or reason is missing
    """
    if not can_transition(current, transition):
        raise InvalidStateTransitionException(
            BookingStatus(current).value, transition.target_status.value, booking_id=booking_id
        )

    now = now or datetime.now()
    updates: Dict[str, Any] = {"status": transition.target_status.value, "updated_at": now}

    if transition == BookingTransition.APPROVE:
        if not actor_id:
            raise ValidationException("An approver is required", code="APPROVER_REQUIRED")
        updates.update(approved_by=actor_id, approved_at=now)
    elif transition == BookingTransition.REJECT:
        if not reason:
            raise ValidationException("A rejection reason is required", code="REASON_REQUIRED")
        updates["rejection_reason"] = reason
    else:
        if not reason:
            raise ValidationException("A cancellation reason is required", code="REASON_REQUIRED")
        # Approval stamps do not survive a cancellation
        updates.update(
            cancellation_reason=reason,
            cancelled_at=now,
            approved_by=None,
            approved_at=None,
        )

    return updates


def apply_updates(booking: Any, updates: Mapping[str, Any]) -> None:
    for key, value in updates.items():
        setattr(booking, key, value)
