# studio_scheduler/core/exceptions.py
"""
Domain-specific exceptions for the studio scheduler.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Validation errors (malformed time, business hours, conflicts) are
meant to be collected per field and shown back to the requester;
lifecycle and persistence errors propagate to the caller as-is.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller is not identified."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class MalformedTimeInputException(ValidationException):
    """Raised when a time-of-day string cannot be interpreted."""

    def __init__(self, raw_value: str, field: Optional[str] = None):
        super().__init__(
            message="Invalid time format. Use HH:MM, 5 pm, or similar.",
            code="MALFORMED_TIME_INPUT",
            details={"value": raw_value, "field": field},
        )


class OutsideBusinessHoursException(ValidationException):
    """Raised when an interval falls outside the studio's booking window."""

    def __init__(
        self,
        window_label: str,
        window_start: str,
        window_end: str,
        occurrences: Optional[List[Dict[str, Any]]] = None,
    ):
        details: Dict[str, Any] = {
            "window": {"start": window_start, "end": window_end},
            "field": "start_time",
        }
        if occurrences:
            details["occurrences"] = occurrences
        super().__init__(
            message=f"{window_label} bookings: {window_start}-{window_end} only",
            code="OUTSIDE_BUSINESS_HOURS",
            details=details,
        )


class SchedulingConflictException(ConflictException):
    """Raised when a candidate interval overlaps an existing reservation."""

    def __init__(
        self,
        conflicts: List[Any],
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing reservation",
            code="SCHEDULING_CONFLICT",
            details={"conflicts": conflicts},
        )

    @property
    def conflicts(self) -> List[Any]:
        return list(self.details.get("conflicts", []))


class InvalidStateTransitionException(BusinessRuleException):
    """Raised when a lifecycle transition is attempted from an incompatible status."""

    def __init__(self, current_status: str, target_status: str, booking_id: Optional[str] = None):
        super().__init__(
            message=f"Cannot move booking from {current_status} to {target_status}",
            code="INVALID_STATE_TRANSITION",
            details={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class CancellationWindowExpiredException(BusinessRuleException):
    """Raised when a member tries to cancel too close to the start time."""

    def __init__(self, required_hours: int, hours_until_start: float):
        super().__init__(
            message=(
                f"Bookings can only be cancelled at least {required_hours} hours in advance. "
                "Please contact an administrator."
            ),
            code="CANCELLATION_WINDOW_EXPIRED",
            details={
                "required_hours": required_hours,
                "hours_until_start": round(max(0.0, hours_until_start), 2),
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations. Services re-raise it
    unchanged after rolling back.
    """
