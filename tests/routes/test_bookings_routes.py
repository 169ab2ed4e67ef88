"""HTTP-level tests for /api/v1/bookings."""

from datetime import datetime, timedelta

BASE = "/api/v1/bookings"


def _payload(**overrides):
    body = {
        "studio_id": "studio-1-big",
        "booking_date": "2025-03-10",
        "start_time": "16:00",
        "end_time": "17:30",
        "purpose": "Duet rehearsal",
    }
    body.update(overrides)
    return body


def _create(client, headers, **overrides):
    return client.post(BASE, json=_payload(**overrides), headers=headers)


class TestCreate:
    def test_created_as_pending(self, client, member_headers):
        response = _create(client, member_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["created_count"] == 1
        booking = data["bookings"][0]
        assert booking["status"] == "pending"
        assert booking["user_name"] == "Ana Dancer"
        assert booking["start_time"] == "2025-03-10T16:00:00"

    def test_conflict_is_409_with_labels(self, client, member_headers, admin_headers):
        _create(client, member_headers)

        response = _create(client, admin_headers, start_time="17:00", end_time="18:00")

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "SCHEDULING_CONFLICT"
        assert detail["details"]["conflicts"] == ["Booking: Ana Dancer"]

    def test_back_to_back_is_fine(self, client, member_headers):
        _create(client, member_headers)
        response = _create(client, member_headers, start_time="5:30 pm", end_time="18:30")
        assert response.status_code == 201

    def test_outside_hours_is_400(self, client, member_headers):
        response = _create(client, member_headers, start_time="9", end_time="10")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "OUTSIDE_BUSINESS_HOURS"

    def test_field_errors_are_listed(self, client, member_headers):
        response = _create(client, member_headers, start_time="later", end_time="never")

        assert response.status_code == 400
        errors = response.json()["detail"]["details"]["errors"]
        assert {e["field"] for e in errors} == {"start_time", "end_time"}

    def test_missing_identity(self, client):
        response = client.post(BASE, json=_payload())
        assert response.status_code == 401

    def test_unknown_role(self, client):
        response = client.post(
            BASE, json=_payload(), headers={"X-User-Id": "x", "X-User-Role": "owner"}
        )
        assert response.status_code == 400

    def test_extra_fields_rejected(self, client, member_headers):
        response = client.post(BASE, json=_payload(color="red"), headers=member_headers)
        assert response.status_code == 422

    def test_bad_date_format(self, client, member_headers):
        response = client.post(BASE, json=_payload(booking_date="10/03/2025"), headers=member_headers)
        assert response.status_code == 422

    def test_recurring_series(self, client, member_headers):
        response = _create(
            client,
            member_headers,
            is_recurring=True,
            recurring_pattern="biweekly",
            recurring_end_date="2025-04-07",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["created_count"] == 3
        assert data["recurring_group_id"].startswith("recurring_")

        group = client.get(f"{BASE}/groups/{data['recurring_group_id']}", headers=member_headers)
        assert [b["start_time"][:10] for b in group.json()] == [
            "2025-03-10",
            "2025-03-24",
            "2025-04-07",
        ]


class TestAdminActions:
    def test_member_cannot_approve(self, client, member_headers):
        booking_id = _create(client, member_headers).json()["bookings"][0]["id"]
        response = client.post(f"{BASE}/{booking_id}/approve", headers=member_headers)
        assert response.status_code == 403

    def test_approve_then_approve_again(self, client, member_headers, admin_headers):
        booking_id = _create(client, member_headers).json()["bookings"][0]["id"]

        first = client.post(f"{BASE}/{booking_id}/approve", headers=admin_headers)
        second = client.post(f"{BASE}/{booking_id}/approve", headers=admin_headers)

        assert first.status_code == 200
        assert first.json()["approved_by"] == "admin-1"
        assert second.status_code == 422
        assert second.json()["detail"]["code"] == "INVALID_STATE_TRANSITION"

    def test_reject_with_reason(self, client, member_headers, admin_headers):
        booking_id = _create(client, member_headers).json()["bookings"][0]["id"]
        response = client.post(
            f"{BASE}/{booking_id}/reject", json={"reason": "Studio closed"}, headers=admin_headers
        )
        assert response.json()["rejection_reason"] == "Studio closed"

    def test_group_approve(self, client, member_headers, admin_headers):
        group_id = _create(
            client,
            member_headers,
            is_recurring=True,
            recurring_pattern="weekly",
            recurring_end_date="2025-03-24",
        ).json()["recurring_group_id"]

        response = client.post(f"{BASE}/groups/{group_id}/approve", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["affected_count"] == 3
        statuses = {b["status"] for b in client.get(f"{BASE}/groups/{group_id}", headers=admin_headers).json()}
        assert statuses == {"approved"}

    def test_unknown_group(self, client, admin_headers):
        response = client.post(f"{BASE}/groups/recurring_missing/reject", headers=admin_headers)
        assert response.status_code == 404

    def test_delete(self, client, member_headers, admin_headers):
        booking_id = _create(client, member_headers).json()["bookings"][0]["id"]

        assert client.delete(f"{BASE}/{booking_id}", headers=admin_headers).status_code == 204
        assert client.get(f"{BASE}/{booking_id}", headers=admin_headers).status_code == 404

    def test_stats(self, client, member_headers, admin_headers):
        _create(client, member_headers)
        _create(client, member_headers, start_time="18:00", end_time="19:00")

        assert client.get(f"{BASE}/stats", headers=member_headers).status_code == 403
        response = client.get(f"{BASE}/stats", headers=admin_headers)
        assert response.json() == {
            "pending": 2,
            "approved": 0,
            "rejected": 0,
            "cancelled": 0,
            "total": 2,
        }


class TestMemberActions:
    def _future_booking(self, client, headers, days_ahead):
        day = (datetime.now() + timedelta(days=days_ahead)).date()
        response = client.post(
            BASE,
            json=_payload(booking_date=day.isoformat(), studio_id="offsite", start_time="23:00", end_time="23:30"),
            headers=headers,
        )
        assert response.status_code == 201
        return response.json()["bookings"][0]["id"]

    def test_cancel_with_notice(self, client, member_headers):
        booking_id = self._future_booking(client, member_headers, days_ahead=3)

        response = client.post(f"{BASE}/{booking_id}/cancel", headers=member_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancellation_reason"] == "Cancelled by user"

    def test_cancel_someone_elses(self, client, member_headers, other_member_headers):
        booking_id = self._future_booking(client, member_headers, days_ahead=3)
        response = client.post(f"{BASE}/{booking_id}/cancel", headers=other_member_headers)
        assert response.status_code == 403

    def test_edit_pending(self, client, member_headers):
        booking_id = _create(client, member_headers).json()["bookings"][0]["id"]

        response = client.patch(
            f"{BASE}/{booking_id}", json={"end_time": "18:00", "purpose": "Longer"}, headers=member_headers
        )

        assert response.status_code == 200
        assert response.json()["end_time"] == "2025-03-10T18:00:00"
        assert response.json()["purpose"] == "Longer"

    def test_list_filters(self, client, member_headers):
        _create(client, member_headers)
        _create(client, member_headers, studio_id="studio-2-small")

        response = client.get(BASE, params={"studio_id": "studio-2-small", "date": "2025-03-10"}, headers=member_headers)

        assert response.status_code == 200
        assert [b["studio_id"] for b in response.json()] == ["studio-2-small"]

    def test_list_bad_status(self, client, member_headers):
        response = client.get(BASE, params={"status": "archived"}, headers=member_headers)
        assert response.status_code == 400

    def test_check_availability(self, client, member_headers):
        _create(client, member_headers)

        response = client.post(
            f"{BASE}/check-availability",
            json={"studio_id": "studio-1-big", "booking_date": "2025-03-10", "start_time": "17", "end_time": "18"},
            headers=member_headers,
        )

        assert response.status_code == 200
        assert response.json()["available"] is False
        assert response.json()["conflicts"] == ["Booking: Ana Dancer"]
