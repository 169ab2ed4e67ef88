# studio_scheduler/services/booking_service.py
"""
Booking Service for the studio scheduler.

Handles all booking-related business logic including:
- Admitting single and recurring booking requests
- Approving, rejecting and cancelling bookings
- Editing and deleting bookings
- Availability checks and dashboard counts

Requests are validated field by field (time format, booking hours,
duration, recurrence end date) and every failing field is reported at
once. Conflict detection runs inside the same transaction as the write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
import logging
from typing import Any, Dict, List, Optional, Tuple, cast

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    BusinessRuleException,
    DomainException,
    ForbiddenException,
    MalformedTimeInputException,
    NotFoundException,
    OutsideBusinessHoursException,
    SchedulingConflictException,
    ValidationException,
)
from ..core.identity import Actor
from ..core.ulid_helper import generate_group_id
from ..domain.business_hours import (
    booking_window,
    split_by_business_hours,
    validate_business_hours,
    validate_duration,
)
from ..domain.cancellation_policy import CancellationPolicy
from ..domain.lifecycle import BookingTransition, plan_transition
from ..domain.recurrence import (
    OccurrenceExpander,
    RecurringPattern,
    add_months,
    expand_occurrences,
)
from ..domain.time_interval import TimeInterval
from ..domain.time_parser import format_time, parse_time_input, to_time
from ..models.booking import BLOCKING_STATUSES, Booking, BookingStatus, RecurrenceLabel
from ..models.studio import Studio, get_studio
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..schemas.booking import AvailabilityCheckRequest, BookingCreate, BookingUpdate
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

_BLOCKING_VALUES = frozenset(s.value for s in BLOCKING_STATUSES)


@dataclass
class BookingCreateResult:
    bookings: List[Booking]
    recurring_group_id: Optional[str] = None
    skipped_occurrences: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.bookings)


def _error_entry(exc: ValidationException) -> Dict[str, Any]:
    return {"field": exc.details.get("field"), "code": exc.code, "message": exc.message}


def _raise_collected(errors: List[ValidationException]) -> None:
    """Raise the only error as-is, or all of them together."""
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise ValidationException(
        "Booking request has invalid fields",
        code="INVALID_BOOKING_REQUEST",
        details={"errors": [_error_entry(exc) for exc in errors]},
    )


def _refusal_reason(exc: DomainException) -> str:
    if isinstance(exc, MalformedTimeInputException):
        return "malformed_time"
    if isinstance(exc, OutsideBusinessHoursException):
        return "business_hours"
    if isinstance(exc, SchedulingConflictException):
        return "conflict"
    return "validation"


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Centralizes all booking business logic and coordinates the pure
    domain rules with persistence.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        expander: Optional[OccurrenceExpander] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            repository: Optional BookingRepository instance
            conflict_checker: Optional ConflictChecker sharing the same session
            expander: Optional replacement for recurring date expansion
            config: Optional settings override
        """
        super().__init__(db)
        self.config = config or default_settings
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.expander = expander or self._expand_occurrences
        self.cancellation_policy = CancellationPolicy(self.config)

    # Validation helpers

    def _expand_occurrences(
        self, start_date: date, end_date: date, pattern: RecurringPattern
    ) -> List[date]:
        return expand_occurrences(
            start_date, end_date, pattern, max_occurrences=self.config.max_recurring_occurrences
        )

    def _parse_field(
        self, raw: str, field_name: str, errors: List[ValidationException]
    ) -> Optional[time]:
        try:
            return to_time(parse_time_input(raw, field=field_name))
        except MalformedTimeInputException as exc:
            errors.append(exc)
            return None

    def _collect_slot_errors(
        self,
        studio: Studio,
        day: date,
        start_raw: str,
        end_raw: str,
        check_hours: bool = True,
    ) -> Tuple[Optional[TimeInterval], List[ValidationException]]:
        errors: List[ValidationException] = []
        start = self._parse_field(start_raw, "start_time", errors)
        end = self._parse_field(end_raw, "end_time", errors)
        if start is None or end is None:
            return None, errors

        if end <= start:
            errors.append(
                ValidationException(
                    "End time must be after start time",
                    code="INVALID_TIME_RANGE",
                    details={"field": "end_time"},
                )
            )
            return None, errors

        interval = TimeInterval.on_day(day, start, end)
        try:
            validate_duration(interval, self.config)
        except ValidationException as exc:
            errors.append(exc)
        if check_hours:
            try:
                validate_business_hours(interval, studio, self.config)
            except ValidationException as exc:
                errors.append(exc)
        return interval, errors

    def _collect_recurrence_errors(self, request: BookingCreate) -> List[ValidationException]:
        end_date = request.recurring_end_date
        if end_date is None:
            return [
                ValidationException(
                    "An end date is required for recurring bookings",
                    code="RECURRING_END_DATE_REQUIRED",
                    details={"field": "recurring_end_date"},
                )
            ]
        if end_date <= request.booking_date:
            return [
                ValidationException(
                    "End date must be after the start date",
                    code="INVALID_RECURRING_END_DATE",
                    details={"field": "recurring_end_date"},
                )
            ]
        horizon = add_months(request.booking_date, self.config.max_recurring_horizon_months)
        if end_date > horizon:
            return [
                ValidationException(
                    f"Recurring bookings cannot extend past {horizon.isoformat()}",
                    code="INVALID_RECURRING_END_DATE",
                    details={"field": "recurring_end_date", "latest": horizon.isoformat()},
                )
            ]
        return []

    def validate_slot(self, studio: Studio, day: date, start_raw: str, end_raw: str) -> TimeInterval:
        """
        Normalize raw times and check them against the studio's rules.

        Raises:
            ValidationException: With every failing field when more than one fails
        """
        interval, errors = self._collect_slot_errors(studio, day, start_raw, end_raw)
        _raise_collected(errors)
        # No errors means the slot was parsed
        return cast(TimeInterval, interval)

    def _get_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException(
                f"Booking {booking_id} not found",
                code="BOOKING_NOT_FOUND",
                details={"booking_id": booking_id},
            )
        return booking

    @staticmethod
    def _require_admin(actor: Actor, action: str) -> None:
        if not actor.is_admin:
            raise ForbiddenException(f"Only admins can {action} bookings")

    # Admission

    @BaseService.measure_operation("create_booking")
    def create_booking(self, request: BookingCreate, actor: Actor) -> BookingCreateResult:
        """
        Admit a booking request as ``pending``.

        Recurring requests are expanded into one booking per occurrence, all
        sharing a ``recurring_group_id`` and written in a single batch.

        For recurring requests the booking hours are checked per occurrence,
        since the request date itself need not be one of them.

        Raises:
            NotFoundException: Unknown studio
            ValidationException: Malformed times, hours, duration or end date
            OutsideBusinessHoursException: The slot, or any occurrence, is outside hours
            SchedulingConflictException: The slot, or any occurrence, is taken
        """
        studio = get_studio(request.studio_id)
        try:
            slot, errors = self._collect_slot_errors(
                studio,
                request.booking_date,
                request.start_time,
                request.end_time,
                check_hours=not request.is_recurring,
            )
            if request.is_recurring:
                errors.extend(self._collect_recurrence_errors(request))
            _raise_collected(errors)
            interval = cast(TimeInterval, slot)

            if request.is_recurring:
                result = self._create_recurring(request, studio, interval, actor)
            else:
                result = self._create_single(request, studio, interval, actor)
        except DomainException as exc:
            prometheus_metrics.inc_request_refused(_refusal_reason(exc))
            raise

        self.log_operation(
            "create_booking",
            studio_id=studio.id,
            user_id=actor.user_id,
            created=result.created_count,
            group_id=result.recurring_group_id,
        )
        return result

    def _create_single(
        self, request: BookingCreate, studio: Studio, interval: TimeInterval, actor: Actor
    ) -> BookingCreateResult:
        with self.transaction():
            self.conflict_checker.ensure_no_conflicts(studio.id, interval)
            booking = self.repository.create_booking(
                studio_id=studio.id,
                user_id=actor.user_id,
                user_name=actor.user_name,
                start_time=interval.start,
                end_time=interval.end,
                purpose=request.purpose,
                status=BookingStatus.PENDING.value,
                is_recurring=False,
            )

        prometheus_metrics.inc_bookings_created(studio.id, kind="single")
        return BookingCreateResult(bookings=[booking])

    def _create_recurring(
        self, request: BookingCreate, studio: Studio, interval: TimeInterval, actor: Actor
    ) -> BookingCreateResult:
        # Both are guaranteed by BookingCreate and the recurrence checks
        label_value = cast(RecurrenceLabel, request.recurring_pattern)
        end_date = cast(date, request.recurring_end_date)

        label = RecurringPattern.from_label(label_value)
        pattern = RecurringPattern.build(
            label.frequency,
            label.interval,
            request.days_of_week,
            end_date,
        )
        dates = self.expander(request.booking_date, end_date, pattern)
        if not dates:
            raise ValidationException(
                "The recurrence produces no dates before the end date",
                code="NO_OCCURRENCES",
                details={"field": "recurring_end_date"},
            )

        in_hours, outside_hours = split_by_business_hours(interval, dates, studio, self.config)

        with self.transaction():
            conflicting = self.conflict_checker.check_recurring_conflicts(
                studio.id, interval, in_hours
            )
            taken = {entry["date"] for entry in conflicting}
            available = [
                interval.on_date(day) for day in in_hours if day.isoformat() not in taken
            ]

            if not (request.skip_conflicting_occurrences and available):
                if outside_hours:
                    first = date.fromisoformat(outside_hours[0]["date"])
                    window = booking_window(first, self.config)
                    raise OutsideBusinessHoursException(
                        window.label,
                        window.start_label,
                        window.end_label,
                        occurrences=outside_hours,
                    )
                if conflicting:
                    raise SchedulingConflictException(
                        conflicting,
                        message=f"{len(conflicting)} of {len(dates)} occurrences are not available",
                    )

            unavailable = sorted(outside_hours + conflicting, key=lambda entry: entry["date"])
            group_id = generate_group_id()
            bookings = self.repository.create_booking_batch(
                [
                    {
                        "studio_id": studio.id,
                        "user_id": actor.user_id,
                        "user_name": actor.user_name,
                        "start_time": occurrence.start,
                        "end_time": occurrence.end,
                        "purpose": request.purpose,
                        "status": BookingStatus.PENDING.value,
                        "is_recurring": True,
                        "recurring_pattern": label_value.value,
                        "recurring_end_date": end_date,
                        "recurring_group_id": group_id,
                    }
                    for occurrence in available
                ]
            )

        if unavailable:
            self.logger.warning(
                f"Skipped {len(unavailable)} unavailable occurrences in series {group_id}"
            )
        prometheus_metrics.inc_bookings_created(studio.id, kind="recurring", count=len(bookings))
        return BookingCreateResult(
            bookings=bookings, recurring_group_id=group_id, skipped_occurrences=unavailable
        )

    @BaseService.measure_operation("check_availability")
    def check_availability(self, request: AvailabilityCheckRequest) -> Dict[str, Any]:
        """Run admission checks without writing anything."""
        studio = get_studio(request.studio_id)
        interval = self.validate_slot(
            studio, request.booking_date, request.start_time, request.end_time
        )
        conflicts = self.conflict_checker.check_booking_conflicts(
            studio.id, interval, exclude_booking_id=request.exclude_booking_id
        )
        return {
            "available": not conflicts,
            "studio_id": studio.id,
            "booking_date": request.booking_date,
            "start_time": format_time(interval.start.time()),
            "end_time": format_time(interval.end.time()),
            "conflicts": conflicts,
        }

    # Lifecycle

    def _apply_transition(
        self, booking: Booking, transition: BookingTransition, actor: Actor, reason: Optional[str]
    ) -> Booking:
        updates = plan_transition(
            booking.status,
            transition,
            actor_id=actor.user_id,
            reason=reason,
            booking_id=booking.id,
        )
        with self.transaction():
            booking = self.repository.update_booking_status(booking.id, updates)

        self.logger.info(
            f"Booking {booking.id} {transition.value}d by {actor.user_id}",
            extra={"booking_id": booking.id, "transition": transition.value},
        )
        prometheus_metrics.inc_booking_transition(transition.value)
        return booking

    @BaseService.measure_operation("approve_booking")
    def approve_booking(self, booking_id: str, actor: Actor) -> Booking:
        """Approve a pending booking. The slot is not re-checked."""
        self._require_admin(actor, "approve")
        booking = self._get_or_404(booking_id)
        return self._apply_transition(booking, BookingTransition.APPROVE, actor, None)

    @BaseService.measure_operation("reject_booking")
    def reject_booking(self, booking_id: str, actor: Actor, reason: Optional[str] = None) -> Booking:
        self._require_admin(actor, "reject")
        booking = self._get_or_404(booking_id)
        return self._apply_transition(
            booking,
            BookingTransition.REJECT,
            actor,
            reason or self.config.default_rejection_reason,
        )

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, actor: Actor, reason: Optional[str] = None) -> Booking:
        """
        Cancel one booking; other occurrences of its series are untouched.

        Members may cancel their own bookings with enough notice; admins may
        cancel any booking at any time.

        Raises:
            ForbiddenException: Member cancelling someone else's booking
            InvalidStateTransitionException: Booking already rejected or cancelled
            CancellationWindowExpiredException: Member cancelling too late
        """
        booking = self._get_or_404(booking_id)
        if not actor.is_admin and not actor.owns(booking):
            raise ForbiddenException("You can only cancel your own bookings")

        default_reason = (
            self.config.admin_cancellation_reason
            if actor.is_admin
            else self.config.member_cancellation_reason
        )
        reason = reason or default_reason

        # State first so that a terminal booking reports the transition error
        plan_transition(booking.status, BookingTransition.CANCEL, reason=reason, booking_id=booking.id)
        self.cancellation_policy.enforce(booking.start_time, is_admin=actor.is_admin)

        return self._apply_transition(booking, BookingTransition.CANCEL, actor, reason)

    # Editing

    @BaseService.measure_operation("update_booking")
    def update_booking(self, booking_id: str, changes: BookingUpdate, actor: Actor) -> Booking:
        """
        Edit studio, date, times or purpose of a booking.

        Members may edit their own pending bookings, admins any pending or
        approved booking. Schedule changes are validated again and checked
        for conflicts, ignoring the booking itself.
        """
        booking = self._get_or_404(booking_id)

        if not actor.is_admin:
            if not actor.owns(booking):
                raise ForbiddenException("You can only edit your own bookings")
            editable = booking.status == BookingStatus.PENDING.value
        else:
            editable = booking.status in _BLOCKING_VALUES
        if not editable:
            raise BusinessRuleException(
                f"A {booking.status} booking cannot be edited",
                code="BOOKING_NOT_EDITABLE",
                details={"booking_id": booking.id, "status": booking.status},
            )

        fields: Dict[str, Any] = {}
        interval: Optional[TimeInterval] = None
        studio: Optional[Studio] = None
        if changes.changes_schedule:
            studio = get_studio(changes.studio_id or booking.studio_id)
            interval = self.validate_slot(
                studio,
                changes.booking_date or booking.start_time.date(),
                changes.start_time or format_time(booking.start_time.time()),
                changes.end_time or format_time(booking.end_time.time()),
            )
            fields.update(studio_id=studio.id, start_time=interval.start, end_time=interval.end)

        if "purpose" in changes.model_fields_set:
            fields["purpose"] = changes.purpose

        if not fields:
            return booking

        fields["updated_at"] = datetime.now()
        with self.transaction():
            if studio is not None and interval is not None:
                self.conflict_checker.ensure_no_conflicts(
                    studio.id, interval, exclude_booking_id=booking.id
                )
            booking = self.repository.update(booking.id, **fields)

        self.log_operation("update_booking", booking_id=booking_id, fields=sorted(fields))
        return booking

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str, actor: Actor) -> None:
        """Remove a booking outright (admin only, distinct from cancelling)."""
        self._require_admin(actor, "delete")
        with self.transaction():
            if not self.repository.delete(booking_id):
                raise NotFoundException(
                    f"Booking {booking_id} not found",
                    code="BOOKING_NOT_FOUND",
                    details={"booking_id": booking_id},
                )
        self.logger.info(f"Booking {booking_id} deleted by {actor.user_id}")

    # Queries

    def get_booking(self, booking_id: str) -> Booking:
        return self._get_or_404(booking_id)

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        studio_id: Optional[str] = None,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
        day: Optional[date] = None,
    ) -> List[Booking]:
        if studio_id:
            get_studio(studio_id)
        if status:
            try:
                status = BookingStatus(status).value
            except ValueError:
                raise ValidationException(
                    f"Unknown booking status: {status}",
                    code="INVALID_STATUS",
                    details={"field": "status"},
                )
        return self.repository.list_bookings(
            studio_id=studio_id, status=status, user_id=user_id, day=day
        )

    def list_group(self, group_id: str) -> List[Booking]:
        bookings = self.repository.get_by_group(group_id)
        if not bookings:
            raise NotFoundException(
                f"Recurring series {group_id} not found",
                code="GROUP_NOT_FOUND",
                details={"group_id": group_id},
            )
        return bookings

    @BaseService.measure_operation("get_dashboard_stats")
    def get_dashboard_stats(self) -> Dict[str, int]:
        """Counts per status plus the total, computed from stored bookings."""
        counts = self.repository.count_by_status()
        counts["total"] = sum(counts.values())
        return counts
