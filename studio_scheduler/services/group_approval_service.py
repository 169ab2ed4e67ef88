# studio_scheduler/services/group_approval_service.py
"""
Group Approval Service for the studio scheduler.

Applies one lifecycle transition to every booking of a recurring series
in a single transaction. Siblings whose current status does not allow the
transition (an occurrence cancelled on its own, say) are left as they are;
all eligible siblings move together or none do.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
)
from ..core.identity import Actor
from ..domain.lifecycle import BookingTransition, can_transition, plan_transition
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupTransitionResult:
    group_id: str
    transition: BookingTransition
    affected_count: int
    booking_ids: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "group_id": self.group_id,
            "transition": self.transition.value,
            "affected_count": self.affected_count,
            "booking_ids": list(self.booking_ids),
        }


class GroupApprovalService(BaseService):
    """Whole-series approve / reject / cancel."""

    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        config: Optional[Settings] = None,
    ):
        super().__init__(db)
        self.config = config or default_settings
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    def _default_reason(self, transition: BookingTransition) -> Optional[str]:
        if transition == BookingTransition.REJECT:
            return self.config.default_rejection_reason
        if transition == BookingTransition.CANCEL:
            return self.config.admin_cancellation_reason
        return None

    @BaseService.measure_operation("transition_group")
    def transition_group(
        self,
        group_id: str,
        transition: BookingTransition,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> GroupTransitionResult:
        """
        Apply ``transition`` to every eligible booking of the series.

        Raises:
            ForbiddenException: If the actor is not an admin
            NotFoundException: If no booking carries ``group_id``
            InvalidStateTransitionException: If no sibling allows the transition
            RepositoryException: If the batch write fails (nothing is applied)
        """
        if not actor.is_admin:
            raise ForbiddenException("Only admins can update a recurring series")

        transition = BookingTransition(transition)
        reason = reason or self._default_reason(transition)

        with self.transaction():
            siblings = self.repository.get_by_group(group_id)
            if not siblings:
                raise NotFoundException(
                    f"Recurring series {group_id} not found",
                    code="GROUP_NOT_FOUND",
                    details={"group_id": group_id},
                )

            now = datetime.now()
            updates_by_id = {
                booking.id: plan_transition(
                    booking.status,
                    transition,
                    actor_id=actor.user_id,
                    reason=reason,
                    now=now,
                    booking_id=booking.id,
                )
                for booking in siblings
                if can_transition(booking.status, transition)
            }

            if not updates_by_id:
                statuses = sorted({booking.status for booking in siblings})
                raise InvalidStateTransitionException(
                    ",".join(statuses), transition.target_status.value
                )

            affected = self.repository.update_booking_batch(siblings, updates_by_id)

        self.logger.info(
            f"Group {transition.value}: {affected}/{len(siblings)} bookings in {group_id}",
            extra={"group_id": group_id, "transition": transition.value, "actor": actor.user_id},
        )
        prometheus_metrics.inc_booking_transition(transition.value, scope="group", count=affected)

        return GroupTransitionResult(
            group_id=group_id,
            transition=transition,
            affected_count=affected,
            booking_ids=[b.id for b in siblings if b.id in updates_by_id],
        )

    def approve_group(self, group_id: str, actor: Actor) -> GroupTransitionResult:
        return self.transition_group(group_id, BookingTransition.APPROVE, actor)

    def reject_group(
        self, group_id: str, actor: Actor, reason: Optional[str] = None
    ) -> GroupTransitionResult:
        return self.transition_group(group_id, BookingTransition.REJECT, actor, reason)

    def cancel_group(
        self, group_id: str, actor: Actor, reason: Optional[str] = None
    ) -> GroupTransitionResult:
        return self.transition_group(group_id, BookingTransition.CANCEL, actor, reason)
