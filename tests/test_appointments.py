"""Tests for appointment endpoints."""

from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from ezhealth.core.slots import SLOT_CATALOG
from ezhealth.models.appointments import appointments

BASE = "/api/v1/appointment"


async def _set_status(db_session, appointment_id, status):
    await db_session.execute(
        update(appointments).where(appointments.c.id == UUID(appointment_id)).values(status=status)
    )
    await db_session.commit()


@pytest.mark.asyncio
class TestAvailableSlots:
    """GET /appointment/available-slots"""

    async def test_all_slots_free(self, client: AsyncClient, doctor_id):
        response = await client.get(
            f"{BASE}/available-slots",
            params={"doctorId": str(doctor_id), "date": "2025-06-01"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["doctorId"] == str(doctor_id)
        assert data["appointmentDate"] == "2025-06-01"
        assert data["availableSlots"] == list(SLOT_CATALOG)

    async def test_booked_slot_is_hidden(self, client: AsyncClient, book, patient_headers, doctor_id):
        await book(patient_headers, doctor_id, "10:00 AM")

        response = await client.get(
            f"{BASE}/available-slots",
            params={"doctorId": str(doctor_id), "date": "2025-06-01"},
        )

        slots = response.json()["availableSlots"]
        assert "10:00 AM" not in slots
        assert len(slots) == len(SLOT_CATALOG) - 1

    async def test_other_date_unaffected(self, client: AsyncClient, book, patient_headers, doctor_id):
        await book(patient_headers, doctor_id, "10:00 AM")

        response = await client.get(
            f"{BASE}/available-slots",
            params={"doctorId": str(doctor_id), "date": "2025-06-02"},
        )

        assert response.json()["availableSlots"] == list(SLOT_CATALOG)

    async def test_cancelled_slot_is_free_again(
        self, client: AsyncClient, book, patient_headers, doctor_id
    ):
        booked = await book(patient_headers, doctor_id, "10:00 AM")
        appointment_id = booked.json()["appointment"]["id"]
        await client.put(f"{BASE}/{appointment_id}/cancel", headers=patient_headers)

        response = await client.get(
            f"{BASE}/available-slots",
            params={"doctorId": str(doctor_id), "date": "2025-06-01"},
        )

        assert "10:00 AM" in response.json()["availableSlots"]

    async def test_invalid_date(self, client: AsyncClient, doctor_id):
        response = await client.get(
            f"{BASE}/available-slots",
            params={"doctorId": str(doctor_id), "date": "not-a-date"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationException"

    async def test_missing_doctor_id(self, client: AsyncClient):
        response = await client.get(f"{BASE}/available-slots", params={"date": "2025-06-01"})
        assert response.status_code == 422


@pytest.mark.asyncio
class TestBookAppointment:
    """POST /appointment/book"""

    async def test_book_success(self, book, patient_headers, patient_id, doctor_id):
        response = await book(patient_headers, doctor_id, "10:00 AM")

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        appointment = data["appointment"]
        assert appointment["patientId"] == str(patient_id)
        assert appointment["doctorId"] == str(doctor_id)
        assert appointment["appointmentDate"] == "2025-06-01"
        assert appointment["appointmentTime"] == "10:00 AM"
        assert appointment["status"] == "Pending"
        assert appointment["paymentStatus"] == "Pending"
        assert appointment["hasVisited"] is False
        assert appointment["meetingLink"] == ""
        assert appointment["department"] == "Cardiology"
        assert appointment["amount"] == 800.0

    async def test_book_normalizes_time(self, book, patient_headers, doctor_id):
        response = await book(patient_headers, doctor_id, " 10:00 am ")

        assert response.status_code == 201
        assert response.json()["appointment"]["appointmentTime"] == "10:00 AM"

    async def test_book_pads_hour(self, book, patient_headers, doctor_id):
        response = await book(patient_headers, doctor_id, "9:00 AM")

        assert response.status_code == 201
        assert response.json()["appointment"]["appointmentTime"] == "09:00 AM"

    async def test_book_explicit_department(self, book, patient_headers, doctor_id):
        response = await book(patient_headers, doctor_id, department="Preventive Cardiology")

        assert response.status_code == 201
        assert response.json()["appointment"]["department"] == "Preventive Cardiology"

    async def test_double_booking_conflict(
        self, book, patient_headers, other_patient_headers, doctor_id
    ):
        first = await book(patient_headers, doctor_id, "10:00 AM")
        second = await book(other_patient_headers, doctor_id, "10:00 AM")

        assert first.status_code == 201
        assert second.status_code == 400
        body = second.json()
        assert body["success"] is False
        assert body["error"] == "ConflictException"
        assert body["message"] == "Time slot already booked."

    async def test_same_slot_other_doctor(
        self, book, patient_headers, doctor_id, other_doctor_id
    ):
        assert (await book(patient_headers, doctor_id, "10:00 AM")).status_code == 201
        assert (await book(patient_headers, other_doctor_id, "10:00 AM")).status_code == 201

    async def test_rebook_after_cancel(
        self, client: AsyncClient, book, patient_headers, other_patient_headers, doctor_id
    ):
        first = await book(patient_headers, doctor_id, "10:00 AM")
        await client.put(
            f"{BASE}/{first.json()['appointment']['id']}/cancel", headers=patient_headers
        )

        second = await book(other_patient_headers, doctor_id, "10:00 AM")

        assert second.status_code == 201

    async def test_rejected_booking_still_holds_slot(
        self, db_session, book, patient_headers, other_patient_headers, doctor_id
    ):
        first = await book(patient_headers, doctor_id, "10:00 AM")
        await _set_status(db_session, first.json()["appointment"]["id"], "Rejected")

        second = await book(other_patient_headers, doctor_id, "10:00 AM")

        assert second.status_code == 400

    async def test_invalid_slot(self, book, patient_headers, doctor_id):
        response = await book(patient_headers, doctor_id, "12:30 PM")

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationException"

    async def test_unverified_doctor(self, book, patient_headers, unverified_doctor_id):
        response = await book(patient_headers, unverified_doctor_id)

        assert response.status_code == 404
        assert response.json()["message"] == "Doctor not found"

    async def test_unknown_doctor(self, book, patient_headers):
        response = await book(patient_headers, uuid4())
        assert response.status_code == 404

    async def test_malformed_payload(self, client: AsyncClient, patient_headers):
        response = await client.post(
            f"{BASE}/book",
            json={"doctorId": "nope", "appointmentDate": "2025-06-01"},
            headers=patient_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    async def test_doctor_cannot_book(self, book, doctor_headers, doctor_id):
        response = await book(doctor_headers, doctor_id)
        assert response.status_code == 403

    async def test_requires_authentication(self, client: AsyncClient, doctor_id):
        response = await client.post(
            f"{BASE}/book",
            json={
                "doctorId": str(doctor_id),
                "appointmentDate": "2025-06-01",
                "appointmentTime": "10:00 AM",
            },
        )
        assert response.status_code == 401


@pytest.mark.asyncio
class TestCancelAppointment:
    """PUT /appointment/{id}/cancel"""

    @pytest.mark.parametrize("status", ["Pending", "Accepted"])
    async def test_cancel_allowed(
        self, client: AsyncClient, db_session, book, patient_headers, doctor_id, status
    ):
        booked = await book(patient_headers, doctor_id)
        appointment_id = booked.json()["appointment"]["id"]
        await _set_status(db_session, appointment_id, status)

        response = await client.put(f"{BASE}/{appointment_id}/cancel", headers=patient_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Appointment cancelled"}

        result = await db_session.execute(
            select(appointments.c.status).where(appointments.c.id == UUID(appointment_id))
        )
        assert result.scalar_one() == "Cancelled"

    @pytest.mark.parametrize("status", ["Rejected", "Completed", "Cancelled"])
    async def test_cancel_refused(
        self, client: AsyncClient, db_session, book, patient_headers, doctor_id, status
    ):
        booked = await book(patient_headers, doctor_id)
        appointment_id = booked.json()["appointment"]["id"]
        await _set_status(db_session, appointment_id, status)

        response = await client.put(f"{BASE}/{appointment_id}/cancel", headers=patient_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot cancel this appointment"

    async def test_cancel_someone_elses(
        self, client: AsyncClient, book, patient_headers, other_patient_headers, doctor_id
    ):
        booked = await book(patient_headers, doctor_id)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.put(
            f"{BASE}/{appointment_id}/cancel", headers=other_patient_headers
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to cancel this appointment"

    async def test_cancel_unknown(self, client: AsyncClient, patient_headers):
        response = await client.put(f"{BASE}/{uuid4()}/cancel", headers=patient_headers)
        assert response.status_code == 404


@pytest.mark.asyncio
class TestUpdateStatus:
    """PUT /appointment/{id}/status"""

    async def _booked_id(self, book, patient_headers, doctor_id):
        booked = await book(patient_headers, doctor_id)
        return booked.json()["appointment"]["id"]

    async def test_accept_sets_meeting_link(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id, notifier
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Accepted"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Appointment status updated to Accepted"
        appointment = data["appointment"]
        assert appointment["status"] == "Accepted"
        assert appointment["meetingLink"].endswith(f"/ezhealth-{appointment_id}")
        assert len(notifier.sent) == 1
        assert notifier.sent[0]["appointment"]["status"] == "Accepted"

    async def test_meeting_link_is_not_regenerated(
        self, client: AsyncClient, db_session, book, patient_headers, doctor_headers, doctor_id
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)
        await db_session.execute(
            update(appointments)
            .where(appointments.c.id == UUID(appointment_id))
            .values(meeting_link="https://meet.example.com/existing")
        )
        await db_session.commit()

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Accepted"},
            headers=doctor_headers,
        )

        assert response.json()["appointment"]["meetingLink"] == "https://meet.example.com/existing"

    async def test_complete_marks_visited(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)
        url = f"{BASE}/{appointment_id}/status"

        await client.put(url, json={"status": "Accepted"}, headers=doctor_headers)
        response = await client.put(url, json={"status": "Completed"}, headers=doctor_headers)

        assert response.status_code == 200
        appointment = response.json()["appointment"]
        assert appointment["status"] == "Completed"
        assert appointment["hasVisited"] is True
        assert appointment["meetingLink"]

    async def test_reject_notifies_patient(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id, notifier
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Rejected"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["meetingLink"] == ""
        assert [mail["appointment"]["status"] for mail in notifier.sent] == ["Rejected"]

    async def test_notifier_failure_does_not_fail_request(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id, notifier
    ):
        notifier.fail = True
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Accepted"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "Accepted"

    @pytest.mark.parametrize("status", ["Cancelled", "Done", ""])
    async def test_invalid_status(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id, status
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": status},
            headers=doctor_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid status"

    async def test_terminal_status_is_final(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)
        url = f"{BASE}/{appointment_id}/status"
        await client.put(url, json={"status": "Rejected"}, headers=doctor_headers)

        response = await client.put(url, json={"status": "Accepted"}, headers=doctor_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStateException"

    async def test_cancelled_cannot_be_reopened(
        self, client: AsyncClient, book, patient_headers, doctor_headers, doctor_id
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)
        await client.put(f"{BASE}/{appointment_id}/cancel", headers=patient_headers)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Pending"},
            headers=doctor_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStateException"

    async def test_other_doctor_forbidden(
        self, client: AsyncClient, book, patient_headers, other_doctor_headers, doctor_id
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Accepted"},
            headers=other_doctor_headers,
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized to update this appointment"

    async def test_patient_cannot_update_status(
        self, client: AsyncClient, book, patient_headers, doctor_id
    ):
        appointment_id = await self._booked_id(book, patient_headers, doctor_id)

        response = await client.put(
            f"{BASE}/{appointment_id}/status",
            json={"status": "Accepted"},
            headers=patient_headers,
        )

        assert response.status_code == 403

    async def test_unknown_appointment(self, client: AsyncClient, doctor_headers):
        response = await client.put(
            f"{BASE}/{uuid4()}/status",
            json={"status": "Accepted"},
            headers=doctor_headers,
        )
        assert response.status_code == 404


@pytest.mark.asyncio
class TestListings:
    """GET /appointment/, /me and /all"""

    async def test_patient_sees_own(
        self, client: AsyncClient, book, patient_headers, other_patient_headers, doctor_id
    ):
        await book(patient_headers, doctor_id, "09:00 AM")
        await book(patient_headers, doctor_id, "09:30 AM", appointment_date="2025-06-02")
        await book(other_patient_headers, doctor_id, "10:00 AM")

        response = await client.get(f"{BASE}/me", headers=patient_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        # Newest date first
        assert [a["appointmentDate"] for a in data["appointments"]] == ["2025-06-02", "2025-06-01"]
        assert data["appointments"][0]["doctorName"] == "Kiran Physician"

    async def test_doctor_sees_assigned(
        self,
        client: AsyncClient,
        book,
        patient_headers,
        doctor_headers,
        doctor_id,
        other_doctor_id,
    ):
        await book(patient_headers, doctor_id, "09:00 AM")
        await book(patient_headers, other_doctor_id, "09:00 AM")

        response = await client.get(f"{BASE}/", headers=doctor_headers)

        data = response.json()
        assert data["total"] == 1
        appointment = data["appointments"][0]
        assert appointment["doctorId"] == str(doctor_id)
        assert appointment["patientName"] == "Asha Tester"
        assert appointment["patientEmail"].startswith("asha.")

    async def test_admin_sees_everything(
        self,
        client: AsyncClient,
        book,
        patient_headers,
        other_patient_headers,
        admin_headers,
        doctor_id,
    ):
        await book(patient_headers, doctor_id, "09:00 AM")
        await book(other_patient_headers, doctor_id, "09:30 AM")

        response = await client.get(f"{BASE}/all", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_booking_lifecycle_end_to_end(
    client: AsyncClient,
    book,
    patient_headers,
    other_patient_headers,
    doctor_headers,
    doctor_id,
):
    """Book, collide, accept, cancel, then rebook the freed slot."""
    booked = await book(patient_headers, doctor_id, "10:00 AM", appointment_date="2025-06-01")
    assert booked.status_code == 201
    appointment_id = booked.json()["appointment"]["id"]

    clash = await book(other_patient_headers, doctor_id, "10:00 AM", appointment_date="2025-06-01")
    assert clash.status_code == 400

    accepted = await client.put(
        f"{BASE}/{appointment_id}/status",
        json={"status": "Accepted"},
        headers=doctor_headers,
    )
    assert accepted.json()["appointment"]["meetingLink"]

    cancelled = await client.put(f"{BASE}/{appointment_id}/cancel", headers=patient_headers)
    assert cancelled.status_code == 200

    rebooked = await book(
        other_patient_headers, doctor_id, "10:00 AM", appointment_date="2025-06-01"
    )
    assert rebooked.status_code == 201
