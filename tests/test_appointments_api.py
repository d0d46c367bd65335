import pytest

from diaglab.data.models import AppointmentModel
from diaglab.domain.errors import TimeSlotConflict
from diaglab.domain.schemas import AppointmentCreate
from diaglab.services.appointment_service import AppointmentService
from tests.conftest import future_date


def _appointment_body(**overrides):
    body = {
        "appointmentType": "lab_visit",
        "appointmentDate": future_date(),
        "appointmentTime": "09:00-12:00",
        "labLocation": "Main Street Lab",
        "customerNotes": "Fasting since 10pm",
    }
    body.update(overrides)
    return body


def _book(client, headers, **overrides):
    return client.post("/api/appointments", json=_appointment_body(**overrides), headers=headers)


def _set_status(client, headers, appointment_id, status):
    return client.put(f"/api/appointments?id={appointment_id}", json={"status": status}, headers=headers)


class TestBooking:
    def test_book_lab_visit(self, client, auth_headers):
        response = _book(client, auth_headers)
        assert response.status_code == 201

        data = response.json()
        assert data["status"] == "scheduled"
        assert data["appointmentType"] == "lab_visit"
        assert data["appointmentDate"] == future_date()
        assert data["labLocation"] == "Main Street Lab"
        assert data["orderId"] is None

    def test_early_slot_only_for_home_collection(self, client, auth_headers):
        rejected = _book(client, auth_headers, appointmentTime="06:00-09:00")
        assert rejected.status_code == 400
        assert rejected.json()["code"] == "INVALID_TIME_SLOT"
        assert "09:00-12:00, 12:00-15:00, 15:00-18:00" in rejected.json()["error"]

        accepted = _book(
            client, auth_headers, appointmentType="home_collection", appointmentTime="06:00-09:00", labLocation=None
        )
        assert accepted.status_code == 201

    @pytest.mark.parametrize(
        "overrides,code",
        [
            ({"appointmentType": None}, "MISSING_APPOINTMENT_TYPE"),
            ({"appointmentType": "video_call"}, "INVALID_APPOINTMENT_TYPE"),
            ({"appointmentDate": None}, "MISSING_APPOINTMENT_DATE"),
            ({"appointmentDate": "2020-05-05"}, "INVALID_APPOINTMENT_DATE"),
            ({"appointmentDate": "tomorrow"}, "INVALID_APPOINTMENT_DATE"),
            ({"appointmentDate": future_date(0)}, "INVALID_APPOINTMENT_DATE"),
            ({"appointmentTime": None}, "MISSING_APPOINTMENT_TIME"),
            ({"appointmentTime": "10:00-11:00"}, "INVALID_TIME_SLOT"),
            ({"labLocation": None}, "MISSING_LAB_LOCATION"),
            ({"labLocation": "   "}, "MISSING_LAB_LOCATION"),
            ({"orderId": 4242}, "INVALID_ORDER_ID"),
            ({"status": "pending"}, "INVALID_STATUS"),
        ],
    )
    def test_validation_codes(self, client, auth_headers, overrides, code):
        response = _book(client, auth_headers, **overrides)
        assert response.status_code == 400
        assert response.json()["code"] == code

    def test_order_must_belong_to_caller(self, client, auth_headers, other_headers, make_product):
        client.post("/api/cart", json={"productId": make_product()}, headers=other_headers)
        order_id = client.post(
            "/api/orders",
            json={"collectionType": "lab_visit", "customerName": "Ravi", "customerPhone": "9876543210"},
            headers=other_headers,
        ).json()["id"]

        response = _book(client, auth_headers, orderId=order_id)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ORDER_ID"


class TestSlotConflicts:
    def test_same_slot_twice(self, client, auth_headers):
        assert _book(client, auth_headers).status_code == 201

        response = _book(client, auth_headers, labLocation="Other Lab")
        assert response.status_code == 409
        assert response.json()["code"] == "TIME_SLOT_CONFLICT"

    def test_cancelled_slot_is_free_again(self, client, auth_headers):
        first = _book(client, auth_headers).json()
        client.delete(f"/api/appointments?id={first['id']}", headers=auth_headers)

        assert _book(client, auth_headers).status_code == 201

    def test_other_users_do_not_conflict(self, client, auth_headers, other_headers):
        assert _book(client, auth_headers).status_code == 201
        assert _book(client, other_headers).status_code == 201

    def test_moving_onto_a_taken_slot(self, client, auth_headers):
        _book(client, auth_headers, appointmentTime="09:00-12:00")
        second = _book(client, auth_headers, appointmentTime="12:00-15:00").json()

        response = client.put(
            f"/api/appointments?id={second['id']}",
            json={"appointmentTime": "09:00-12:00"},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "TIME_SLOT_CONFLICT"

    def test_concurrent_booking_hits_the_unique_index(self, patient, db_session, monkeypatch):
        user_id = patient[0]
        svc = AppointmentService(db_session)
        payload = AppointmentCreate.model_validate(_appointment_body())

        svc.create_appointment(user_id, payload)

        # both requests passed the pre-check before either inserted
        monkeypatch.setattr(svc.repo, "find_active_in_slot", lambda *args, **kwargs: None)
        with pytest.raises(TimeSlotConflict):
            svc.create_appointment(user_id, payload)

        db_session.expire_all()
        assert db_session.query(AppointmentModel).filter(AppointmentModel.user_id == user_id).count() == 1


class TestStatusTransitions:
    def test_forward_path(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]

        for status in ("confirmed", "in_progress", "completed"):
            response = _set_status(client, auth_headers, appointment_id, status)
            assert response.status_code == 200
            assert response.json()["status"] == status

    def test_cannot_skip_ahead(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]

        response = _set_status(client, auth_headers, appointment_id, "completed")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_completed_is_terminal(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        for status in ("confirmed", "in_progress", "completed"):
            _set_status(client, auth_headers, appointment_id, status)

        response = _set_status(client, auth_headers, appointment_id, "confirmed")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    @pytest.mark.parametrize("status", ["scheduled", "confirmed", "in_progress", "completed", "cancelled"])
    def test_cancelled_is_terminal(self, client, auth_headers, status):
        appointment_id = _book(client, auth_headers).json()["id"]
        _set_status(client, auth_headers, appointment_id, "cancelled")

        response = _set_status(client, auth_headers, appointment_id, status)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_unknown_status(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        response = _set_status(client, auth_headers, appointment_id, "postponed")
        assert response.json()["code"] == "INVALID_STATUS"


class TestUpdateAppointment:
    def test_time_checked_against_current_type(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentTime": "18:00-21:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TIME_SLOT"

    def test_time_checked_against_new_type(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentType": "home_collection", "appointmentTime": "18:00-21:00"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["appointmentType"] == "home_collection"
        assert response.json()["appointmentTime"] == "18:00-21:00"

    def test_type_change_rechecks_stored_slot(self, client, auth_headers):
        appointment_id = _book(
            client, auth_headers, appointmentType="home_collection", appointmentTime="06:00-09:00", labLocation=None
        ).json()["id"]

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentType": "lab_visit", "labLocation": "Main Street Lab"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TIME_SLOT"

        stored = client.get(f"/api/appointments?id={appointment_id}", headers=auth_headers).json()
        assert stored["appointmentType"] == "home_collection"

    def test_type_change_to_lab_visit_needs_location(self, client, auth_headers):
        appointment_id = _book(
            client, auth_headers, appointmentType="home_collection", labLocation=None
        ).json()["id"]

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentType": "lab_visit"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_LAB_LOCATION"

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentType": "lab_visit", "labLocation": "Main Street Lab"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["appointmentType"] == "lab_visit"
        assert response.json()["labLocation"] == "Main Street Lab"

    def test_lab_visit_location_cannot_be_cleared(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"labLocation": "  "},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_LAB_LOCATION"

    def test_reschedule_and_notes(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        new_date = future_date(10)

        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentDate": new_date, "technicianAssigned": "Meera", "technicianNotes": "Bring ID"},
            headers=auth_headers,
        )
        data = response.json()
        assert data["appointmentDate"] == new_date
        assert data["technicianAssigned"] == "Meera"
        assert data["technicianNotes"] == "Bring ID"
        assert data["customerNotes"] == "Fasting since 10pm"

    def test_reschedule_into_past(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        response = client.put(
            f"/api/appointments?id={appointment_id}",
            json={"appointmentDate": "2021-01-01"},
            headers=auth_headers,
        )
        assert response.json()["code"] == "INVALID_APPOINTMENT_DATE"

    def test_other_users_appointment(self, client, auth_headers, other_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        response = _set_status(client, other_headers, appointment_id, "confirmed")
        assert response.status_code == 404


class TestCancelAppointment:
    def test_cancel_is_soft(self, client, auth_headers, db_session):
        appointment_id = _book(client, auth_headers).json()["id"]

        response = client.delete(f"/api/appointments?id={appointment_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Appointment cancelled successfully"
        assert response.json()["appointment"]["status"] == "cancelled"

        db_session.expire_all()
        stored = db_session.get(AppointmentModel, appointment_id)
        assert stored is not None
        assert stored.status == "cancelled"

    def test_cancel_twice(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        client.delete(f"/api/appointments?id={appointment_id}", headers=auth_headers)

        response = client.delete(f"/api/appointments?id={appointment_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "cancelled"

    def test_completed_cannot_be_cancelled(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        for status in ("confirmed", "in_progress", "completed"):
            _set_status(client, auth_headers, appointment_id, status)

        response = client.delete(f"/api/appointments?id={appointment_id}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_cancel_missing(self, client, auth_headers):
        assert client.delete("/api/appointments?id=404", headers=auth_headers).status_code == 404


class TestAppointmentQueries:
    def test_detail_includes_order_lines(self, client, auth_headers, make_product):
        client.post("/api/cart", json={"productId": make_product(name="Thyroid Profile", price=600)}, headers=auth_headers)
        order = client.post(
            "/api/orders",
            json={"collectionType": "lab_visit", "customerName": "Asha Rao", "customerPhone": "9876543210"},
            headers=auth_headers,
        ).json()
        appointment_id = _book(client, auth_headers, orderId=order["id"]).json()["id"]

        details = client.get(f"/api/appointments?id={appointment_id}", headers=auth_headers).json()
        assert details["order"]["orderNumber"] == order["orderNumber"]
        assert details["order"]["totalAmount"] == 600
        assert len(details["orderItems"]) == 1
        assert details["orderItems"][0]["product"]["name"] == "Thyroid Profile"
        assert details["orderItems"][0]["unitPrice"] == 600

    def test_detail_without_order(self, client, auth_headers):
        appointment_id = _book(client, auth_headers).json()["id"]
        details = client.get(f"/api/appointments?id={appointment_id}", headers=auth_headers).json()
        assert details["order"] is None
        assert details["orderItems"] is None

    def test_list_filters(self, client, auth_headers):
        near = _book(client, auth_headers, appointmentDate=future_date(2)).json()
        far = _book(
            client,
            auth_headers,
            appointmentType="home_collection",
            appointmentDate=future_date(20),
            labLocation=None,
        ).json()
        _set_status(client, auth_headers, far["id"], "confirmed")

        default = client.get("/api/appointments", headers=auth_headers).json()
        assert [a["id"] for a in default] == [far["id"], near["id"]]

        ascending = client.get("/api/appointments?order=asc", headers=auth_headers).json()
        assert [a["id"] for a in ascending] == [near["id"], far["id"]]

        by_type = client.get("/api/appointments?type=lab_visit", headers=auth_headers).json()
        assert [a["id"] for a in by_type] == [near["id"]]

        by_status = client.get("/api/appointments?status=confirmed", headers=auth_headers).json()
        assert [a["id"] for a in by_status] == [far["id"]]

        window = client.get(
            f"/api/appointments?start_date={future_date(1)}&end_date={future_date(5)}", headers=auth_headers
        ).json()
        assert [a["id"] for a in window] == [near["id"]]

        searched = client.get("/api/appointments?search=main street", headers=auth_headers).json()
        assert [a["id"] for a in searched] == [near["id"]]

    def test_unknown_type_filter_is_ignored(self, client, auth_headers):
        _book(client, auth_headers)
        assert len(client.get("/api/appointments?type=teleconsult", headers=auth_headers).json()) == 1

    def test_bad_date_filter(self, client, auth_headers):
        response = client.get("/api/appointments?start_date=someday", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DATE_FILTER"

    def test_users_see_only_their_appointments(self, client, auth_headers, other_headers):
        appointment_id = _book(client, auth_headers).json()["id"]

        assert client.get("/api/appointments", headers=other_headers).json() == []
        assert client.get(f"/api/appointments?id={appointment_id}", headers=other_headers).status_code == 404
