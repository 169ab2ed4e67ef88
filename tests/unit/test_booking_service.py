"""Unit tests for BookingService against an in-memory database."""

from datetime import date, datetime, timedelta

import pytest

from studio_scheduler.core.exceptions import (
    BusinessRuleException,
    CancellationWindowExpiredException,
    ForbiddenException,
    InvalidStateTransitionException,
    MalformedTimeInputException,
    NotFoundException,
    OutsideBusinessHoursException,
    SchedulingConflictException,
    ValidationException,
)
from studio_scheduler.models.booking import Booking
from studio_scheduler.schemas.booking import AvailabilityCheckRequest, BookingCreate, BookingUpdate
from studio_scheduler.services.booking_service import BookingService

MONDAY = date(2025, 3, 10)


def _request(**overrides):
    fields = {
        "studio_id": "studio-1-big",
        "booking_date": MONDAY,
        "start_time": "16:00",
        "end_time": "17:30",
        "purpose": "Choreography practice",
    }
    fields.update(overrides)
    return BookingCreate(**fields)


@pytest.fixture
def service(db):
    return BookingService(db)


class TestAdmission:
    def test_three_request_scenario(self, service, member, other_member):
        first = service.create_booking(_request(), member)
        assert first.created_count == 1
        assert first.bookings[0].status == "pending"
        assert first.bookings[0].start_time == datetime(2025, 3, 10, 16, 0)
        assert first.bookings[0].end_time == datetime(2025, 3, 10, 17, 30)

        with pytest.raises(SchedulingConflictException) as exc_info:
            service.create_booking(_request(start_time="17:00", end_time="18:00"), other_member)
        assert exc_info.value.conflicts == ["Booking: Ana Dancer"]

        third = service.create_booking(_request(start_time="17:30", end_time="18:30"), other_member)
        assert third.bookings[0].status == "pending"

    def test_free_form_times(self, service, member):
        result = service.create_booking(_request(start_time="5 pm", end_time="6:30 PM"), member)
        booking = result.bookings[0]
        assert booking.start_time == datetime(2025, 3, 10, 17, 0)
        assert booking.end_time == datetime(2025, 3, 10, 18, 30)
        assert booking.user_name == "Ana Dancer"

    def test_single_malformed_field(self, service, member):
        with pytest.raises(MalformedTimeInputException) as exc_info:
            service.create_booking(_request(start_time="abc"), member)
        assert exc_info.value.details["field"] == "start_time"

    def test_every_failing_field_is_reported(self, service, member):
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(_request(start_time="abc", end_time="25:00"), member)

        assert exc_info.value.code == "INVALID_BOOKING_REQUEST"
        fields = [error["field"] for error in exc_info.value.details["errors"]]
        assert fields == ["start_time", "end_time"]

    def test_end_before_start(self, service, member):
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(_request(start_time="18:00", end_time="17:00"), member)
        assert exc_info.value.code == "INVALID_TIME_RANGE"

    def test_outside_business_hours(self, service, member):
        with pytest.raises(OutsideBusinessHoursException):
            service.create_booking(_request(start_time="10:00", end_time="11:00"), member)

    def test_offsite_has_no_window(self, service, member):
        result = service.create_booking(
            _request(studio_id="offsite", start_time="10:00", end_time="12:00"), member
        )
        assert result.bookings[0].studio_id == "offsite"

    def test_unknown_studio(self, service, member):
        with pytest.raises(NotFoundException):
            service.create_booking(_request(studio_id="studio-9"), member)

    def test_events_block_unless_cancelled(self, service, member, make_event):
        make_event(start_time=datetime(2025, 3, 10, 18), end_time=datetime(2025, 3, 10, 19))
        make_event(
            title="Old class",
            start_time=datetime(2025, 3, 10, 20),
            end_time=datetime(2025, 3, 10, 21),
            is_cancelled=True,
        )

        with pytest.raises(SchedulingConflictException) as exc_info:
            service.create_booking(_request(start_time="18:30", end_time="19:30"), member)
        assert exc_info.value.conflicts == ["Event: Salsa Basics"]

        service.create_booking(_request(start_time="20:00", end_time="21:00"), member)

    def test_rejected_booking_frees_slot(self, service, member, make_booking):
        make_booking(status="rejected", rejection_reason="No")
        result = service.create_booking(_request(start_time="18:00", end_time="19:00"), member)
        assert result.created_count == 1


class TestRecurringAdmission:
    def _weekly(self, **overrides):
        fields = {
            "start_time": "18:00",
            "end_time": "19:00",
            "is_recurring": True,
            "recurring_pattern": "weekly",
            "recurring_end_date": date(2025, 3, 31),
        }
        fields.update(overrides)
        return _request(**fields)

    def test_series_shares_group(self, service, member, db):
        result = service.create_booking(self._weekly(), member)

        assert result.created_count == 4
        assert result.recurring_group_id.startswith("recurring_")
        assert [b.start_time.date() for b in result.bookings] == [
            date(2025, 3, 10),
            date(2025, 3, 17),
            date(2025, 3, 24),
            date(2025, 3, 31),
        ]
        for booking in result.bookings:
            assert booking.recurring_group_id == result.recurring_group_id
            assert booking.recurring_pattern == "weekly"
            assert booking.recurring_end_date == date(2025, 3, 31)
            assert booking.is_recurring
            assert booking.status == "pending"

    def test_one_conflict_rejects_whole_series(self, service, member, make_booking, db):
        make_booking(
            user_id="member-2",
            start_time=datetime(2025, 3, 24, 18),
            end_time=datetime(2025, 3, 24, 19),
        )

        with pytest.raises(SchedulingConflictException) as exc_info:
            service.create_booking(self._weekly(), member)

        assert exc_info.value.conflicts == [
            {"date": "2025-03-24", "conflicts": ["Booking: Ana Dancer"]}
        ]
        assert db.query(Booking).count() == 1

    def test_skip_conflicting_occurrences(self, service, member, make_booking):
        make_booking(start_time=datetime(2025, 3, 24, 18), end_time=datetime(2025, 3, 24, 19))

        result = service.create_booking(self._weekly(skip_conflicting_occurrences=True), member)

        assert result.created_count == 3
        assert [s["date"] for s in result.skipped_occurrences] == ["2025-03-24"]

    def test_occurrence_outside_hours(self, service, member, db):
        saturday_morning = _request(
            booking_date=date(2025, 3, 15),
            start_time="09:00",
            end_time="10:00",
            is_recurring=True,
            recurring_pattern="daily",
            recurring_end_date=date(2025, 3, 17),
        )

        with pytest.raises(OutsideBusinessHoursException) as exc_info:
            service.create_booking(saturday_morning, member)

        assert exc_info.value.code == "OUTSIDE_BUSINESS_HOURS"
        assert exc_info.value.to_http_exception().status_code == 400
        assert exc_info.value.details["occurrences"] == [
            {"date": "2025-03-17", "conflicts": ["Weekday bookings: 16:00-22:00 only"]}
        ]
        assert db.query(Booking).count() == 0

    def test_skip_mode_drops_out_of_hours_occurrences(self, service, member):
        saturday_morning = _request(
            booking_date=date(2025, 3, 15),
            start_time="09:00",
            end_time="10:00",
            is_recurring=True,
            recurring_pattern="daily",
            recurring_end_date=date(2025, 3, 17),
            skip_conflicting_occurrences=True,
        )

        result = service.create_booking(saturday_morning, member)

        assert result.created_count == 2
        assert [b.start_time.date() for b in result.bookings] == [date(2025, 3, 15), date(2025, 3, 16)]
        assert [s["date"] for s in result.skipped_occurrences] == ["2025-03-17"]

    def test_days_of_week(self, service, member):
        request = self._weekly(days_of_week=[1, 3], recurring_end_date=date(2025, 3, 23))
        result = service.create_booking(request, member)
        assert [b.start_time.date() for b in result.bookings] == [
            date(2025, 3, 10),
            date(2025, 3, 12),
            date(2025, 3, 17),
            date(2025, 3, 19),
        ]

    def test_weekend_days_from_a_weekday_request(self, service, member):
        request = self._weekly(
            start_time="10:00",
            end_time="12:00",
            days_of_week=[6],
            recurring_end_date=date(2025, 4, 7),
        )

        result = service.create_booking(request, member)

        assert [b.start_time for b in result.bookings] == [
            datetime(2025, 3, 15, 10),
            datetime(2025, 3, 22, 10),
            datetime(2025, 3, 29, 10),
            datetime(2025, 4, 5, 10),
        ]
        assert result.skipped_occurrences == []

    @pytest.mark.parametrize(
        "end_date,code",
        [
            (date(2025, 3, 10), "INVALID_RECURRING_END_DATE"),
            (date(2026, 3, 11), "INVALID_RECURRING_END_DATE"),
            (None, "RECURRING_END_DATE_REQUIRED"),
        ],
    )
    def test_end_date_rules(self, service, member, end_date, code):
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(self._weekly(recurring_end_date=end_date), member)
        assert exc_info.value.code == code
        assert exc_info.value.details["field"] == "recurring_end_date"

    def test_end_date_one_calendar_year_out(self, db, member):
        service = BookingService(db, expander=lambda start, end, pattern: [start])
        result = service.create_booking(self._weekly(recurring_end_date=date(2026, 3, 10)), member)
        assert result.created_count == 1
        assert result.bookings[0].recurring_end_date == date(2026, 3, 10)

    def test_expander_is_replaceable(self, db, member):
        service = BookingService(db, expander=lambda start, end, pattern: [start])
        result = service.create_booking(self._weekly(), member)
        assert result.created_count == 1
        assert result.recurring_group_id is not None


class TestLifecycle:
    def test_admin_approves(self, service, admin, make_booking):
        booking = make_booking()

        approved = service.approve_booking(booking.id, admin)

        assert approved.status == "approved"
        assert approved.approved_by == "admin-1"
        assert approved.approved_at is not None

    def test_member_cannot_approve(self, service, member, make_booking):
        booking = make_booking()
        with pytest.raises(ForbiddenException):
            service.approve_booking(booking.id, member)

    def test_approving_twice_is_invalid(self, service, admin, make_booking):
        booking = make_booking()
        service.approve_booking(booking.id, admin)
        with pytest.raises(InvalidStateTransitionException):
            service.approve_booking(booking.id, admin)

    def test_reject_uses_default_reason(self, service, admin, make_booking):
        booking = make_booking()
        rejected = service.reject_booking(booking.id, admin)
        assert rejected.status == "rejected"
        assert rejected.rejection_reason == "Rejected by admin"

    def test_member_cancels_with_notice(self, service, member, make_booking):
        start = datetime.now() + timedelta(days=3)
        booking = make_booking(start_time=start, end_time=start + timedelta(hours=1))

        cancelled = service.cancel_booking(booking.id, member)

        assert cancelled.status == "cancelled"
        assert cancelled.cancellation_reason == "Cancelled by user"
        assert cancelled.cancelled_at is not None

    def test_member_too_late(self, service, member, make_booking, db):
        start = datetime.now() + timedelta(hours=3)
        booking = make_booking(start_time=start, end_time=start + timedelta(hours=1))

        with pytest.raises(CancellationWindowExpiredException):
            service.cancel_booking(booking.id, member)

        db.expire_all()
        assert db.get(Booking, booking.id).status == "pending"

    def test_admin_cancels_any_time(self, service, admin, make_booking):
        start = datetime.now() + timedelta(hours=1)
        booking = make_booking(status="approved", start_time=start, end_time=start + timedelta(hours=1))

        cancelled = service.cancel_booking(booking.id, admin)

        assert cancelled.cancellation_reason == "Cancelled by admin"
        assert cancelled.approved_by is None

    def test_member_cannot_cancel_others(self, service, other_member, make_booking):
        booking = make_booking()
        with pytest.raises(ForbiddenException):
            service.cancel_booking(booking.id, other_member)

    def test_cancelled_reports_transition_before_window(self, service, member, make_booking):
        booking = make_booking(status="cancelled", start_time=datetime.now() + timedelta(hours=1))
        with pytest.raises(InvalidStateTransitionException):
            service.cancel_booking(booking.id, member)

    def test_cancel_single_occurrence(self, service, member, admin):
        result = service.create_booking(
            _request(
                booking_date=MONDAY,
                start_time="18:00",
                end_time="19:00",
                is_recurring=True,
                recurring_pattern="weekly",
                recurring_end_date=date(2025, 3, 24),
            ),
            member,
        )
        target = result.bookings[1]

        service.cancel_booking(target.id, admin, reason="Holiday")

        siblings = service.list_group(result.recurring_group_id)
        assert [b.status for b in siblings] == ["pending", "cancelled", "pending"]
        assert all(b.recurring_pattern == "weekly" for b in siblings)


class TestEditing:
    def test_owner_moves_pending_booking(self, service, member, make_booking):
        booking = make_booking()

        updated = service.update_booking(
            booking.id, BookingUpdate(start_time="7 pm", end_time="8 pm"), member
        )

        assert updated.start_time == datetime(2025, 3, 10, 19, 0)
        assert updated.end_time == datetime(2025, 3, 10, 20, 0)

    def test_overlap_with_itself_is_fine(self, service, member, make_booking):
        booking = make_booking()
        updated = service.update_booking(booking.id, BookingUpdate(start_time="18:30", end_time="19:30"), member)
        assert updated.start_time == datetime(2025, 3, 10, 18, 30)

    def test_edit_into_conflict(self, service, member, make_booking):
        booking = make_booking()
        make_booking(
            user_id="member-2",
            user_name="Ben Mover",
            start_time=datetime(2025, 3, 10, 20),
            end_time=datetime(2025, 3, 10, 21),
        )

        with pytest.raises(SchedulingConflictException) as exc_info:
            service.update_booking(booking.id, BookingUpdate(start_time="19:30", end_time="20:30"), member)
        assert exc_info.value.conflicts == ["Booking: Ben Mover"]

    def test_edit_revalidates_hours(self, service, member, make_booking):
        booking = make_booking()
        with pytest.raises(OutsideBusinessHoursException):
            service.update_booking(booking.id, BookingUpdate(start_time="15:30"), member)

    def test_member_cannot_edit_approved(self, service, member, make_booking):
        booking = make_booking(status="approved")
        with pytest.raises(BusinessRuleException) as exc_info:
            service.update_booking(booking.id, BookingUpdate(purpose="New"), member)
        assert exc_info.value.code == "BOOKING_NOT_EDITABLE"

    def test_admin_edits_approved_studio(self, service, admin, make_booking):
        booking = make_booking(status="approved")
        updated = service.update_booking(booking.id, BookingUpdate(studio_id="studio-2-small"), admin)
        assert updated.studio_id == "studio-2-small"
        assert updated.status == "approved"

    def test_purpose_only(self, service, member, make_booking):
        booking = make_booking()
        updated = service.update_booking(booking.id, BookingUpdate(purpose="  Solo  "), member)
        assert updated.purpose == "Solo"


class TestAdministration:
    def test_admin_deletes(self, service, admin, make_booking):
        booking = make_booking()
        service.delete_booking(booking.id, admin)
        with pytest.raises(NotFoundException):
            service.get_booking(booking.id)

    def test_member_cannot_delete(self, service, member, make_booking):
        booking = make_booking()
        with pytest.raises(ForbiddenException):
            service.delete_booking(booking.id, member)

    def test_delete_missing(self, service, admin):
        with pytest.raises(NotFoundException):
            service.delete_booking("01JAAAAAAAAAAAAAAAAAAAAAAA", admin)

    def test_dashboard_stats(self, service, make_booking):
        make_booking()
        make_booking(status="approved", start_time=datetime(2025, 3, 11, 18))
        make_booking(status="approved", start_time=datetime(2025, 3, 12, 18))
        make_booking(status="cancelled", start_time=datetime(2025, 3, 13, 18))

        assert service.get_dashboard_stats() == {
            "pending": 1,
            "approved": 2,
            "rejected": 0,
            "cancelled": 1,
            "total": 4,
        }

    def test_list_filters(self, service, make_booking):
        make_booking()
        make_booking(studio_id="studio-2-small")
        make_booking(status="approved", start_time=datetime(2025, 3, 11, 18))

        assert len(service.list_bookings(studio_id="studio-1-big")) == 2
        assert len(service.list_bookings(status="approved")) == 1
        assert len(service.list_bookings(day=MONDAY)) == 2

    def test_list_unknown_status(self, service):
        with pytest.raises(ValidationException):
            service.list_bookings(status="archived")

    def test_unknown_group(self, service):
        with pytest.raises(NotFoundException):
            service.list_group("recurring_missing")


class TestAvailability:
    def test_reports_conflicts_without_writing(self, service, make_booking, db):
        make_booking()

        result = service.check_availability(
            AvailabilityCheckRequest(
                studio_id="studio-1-big", booking_date=MONDAY, start_time="6 pm", end_time="7 pm"
            )
        )

        assert result["available"] is False
        assert result["start_time"] == "18:00"
        assert result["conflicts"] == ["Booking: Ana Dancer"]
        assert db.query(Booking).count() == 1

    def test_free_slot(self, service):
        result = service.check_availability(
            AvailabilityCheckRequest(
                studio_id="studio-1-big", booking_date=MONDAY, start_time="16", end_time="17"
            )
        )
        assert result["available"] is True
