# studio_scheduler/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic is delegated to BookingService and
GroupApprovalService; routes only translate HTTP to service calls.

Endpoints:
    POST /                              → Request a booking (single or recurring)
    POST /check-availability            → Dry-run admission check
    GET /                               → List bookings with filters
    GET /stats                          → Counts per status
    GET /groups/{group_id}              → Bookings of a recurring series
    POST /groups/{group_id}/approve     → Approve a whole series (admin)
    POST /groups/{group_id}/reject      → Reject a whole series (admin)
    POST /groups/{group_id}/cancel      → Cancel a whole series (admin)
    GET /{booking_id}                   → Booking details
    PATCH /{booking_id}                 → Edit a booking
    DELETE /{booking_id}                → Delete a booking (admin)
    POST /{booking_id}/approve          → Approve (admin)
    POST /{booking_id}/reject           → Reject (admin)
    POST /{booking_id}/cancel           → Cancel (owner or admin)
"""

from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from ...api.dependencies import (
    get_booking_service,
    get_current_actor,
    get_group_approval_service,
    require_admin,
)
from ...core.exceptions import DomainException
from ...core.identity import Actor
from ...schemas.booking import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    BookingCancel,
    BookingCreate,
    BookingCreateResponse,
    BookingReject,
    BookingResponse,
    BookingStatsResponse,
    BookingUpdate,
    GroupTransitionResponse,
)
from ...services.booking_service import BookingService
from ...services.group_approval_service import GroupApprovalService, GroupTransitionResult

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _group_response(result: GroupTransitionResult) -> GroupTransitionResponse:
    return GroupTransitionResponse(**result.to_payload())


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    booking_data: BookingCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """
    Request a studio booking.

    The booking (or every occurrence of a recurring request) starts as
    pending and blocks its slot until rejected or cancelled.
    """
    try:
        result = booking_service.create_booking(booking_data, actor)
        return BookingCreateResponse(
            bookings=[BookingResponse.model_validate(b) for b in result.bookings],
            created_count=result.created_count,
            recurring_group_id=result.recurring_group_id,
            skipped_occurrences=result.skipped_occurrences,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/check-availability", response_model=AvailabilityCheckResponse)
def check_availability(
    check_data: AvailabilityCheckRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> AvailabilityCheckResponse:
    """Check if a time range is free without booking it."""
    try:
        return AvailabilityCheckResponse(**booking_service.check_availability(check_data))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    studio_id: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None),
    day: Optional[date] = Query(None, alias="date"),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        bookings = booking_service.list_bookings(
            studio_id=studio_id, status=status_filter, user_id=user_id, day=day
        )
        return [BookingResponse.model_validate(b) for b in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/stats", response_model=BookingStatsResponse)
def get_booking_stats(
    actor: Actor = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStatsResponse:
    """Dashboard counts, computed from the stored bookings on every call."""
    return BookingStatsResponse(**booking_service.get_dashboard_stats())


# ============================================================================
# SECTION 2: Recurring series routes
# ============================================================================


@router.get("/groups/{group_id}", response_model=List[BookingResponse])
def get_group(
    group_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        return [BookingResponse.model_validate(b) for b in booking_service.list_group(group_id)]
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/groups/{group_id}/approve", response_model=GroupTransitionResponse)
def approve_group(
    group_id: str,
    actor: Actor = Depends(require_admin),
    group_service: GroupApprovalService = Depends(get_group_approval_service),
) -> GroupTransitionResponse:
    """Approve every pending occurrence of a series in one transaction."""
    try:
        return _group_response(group_service.approve_group(group_id, actor))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/groups/{group_id}/reject", response_model=GroupTransitionResponse)
def reject_group(
    group_id: str,
    payload: Optional[BookingReject] = Body(None),
    actor: Actor = Depends(require_admin),
    group_service: GroupApprovalService = Depends(get_group_approval_service),
) -> GroupTransitionResponse:
    try:
        reason = payload.reason if payload else None
        return _group_response(group_service.reject_group(group_id, actor, reason))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/groups/{group_id}/cancel", response_model=GroupTransitionResponse)
def cancel_group(
    group_id: str,
    payload: Optional[BookingCancel] = Body(None),
    actor: Actor = Depends(require_admin),
    group_service: GroupApprovalService = Depends(get_group_approval_service),
) -> GroupTransitionResponse:
    try:
        reason = payload.reason if payload else None
        return _group_response(group_service.cancel_group(group_id, actor, reason))
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 3: Single booking routes
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(booking_service.get_booking(booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    changes: BookingUpdate = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = booking_service.update_booking(booking_id, changes, actor)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: str,
    actor: Actor = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> Response:
    try:
        booking_service.delete_booking(booking_id, actor)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/approve", response_model=BookingResponse)
def approve_booking(
    booking_id: str,
    actor: Actor = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(booking_service.approve_booking(booking_id, actor))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
def reject_booking(
    booking_id: str,
    payload: Optional[BookingReject] = Body(None),
    actor: Actor = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        reason = payload.reason if payload else None
        booking = booking_service.reject_booking(booking_id, actor, reason)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: Optional[BookingCancel] = Body(None),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Cancel a single booking.

    Members need at least the configured notice; other occurrences of a
    recurring series are not affected.
    """
    try:
        reason = payload.reason if payload else None
        booking = booking_service.cancel_booking(booking_id, actor, reason)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
