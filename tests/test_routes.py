import pytest

from medicare.models.user import UserRole

TUESDAY = "2024-06-11"


@pytest.fixture
def book(client, auth_headers, doctor):
    def _book(user, time="09:00", day=TUESDAY, doctor_id=None):
        return client.post(
            "/api/v1/appointments/book",
            json={"doctor_id": doctor_id or doctor.id, "appointment_date": day, "time": time, "reason": "Checkup"},
            headers=auth_headers(user),
        )

    return _book


class TestSystem:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Success"
        assert body["error"] is None
        assert body["data"]["status"] == "healthy"

    def test_root_lists_endpoints(self, client):
        body = client.get("/api/").json()

        assert body["success"] is True
        assert body["message"] == "MediCare Appointment Booking API"
        assert body["data"]["endpoints"]["appointments"] == "/api/v1/appointments"

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/v1/nowhere")

        body = response.json()
        assert response.status_code == 404
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"]["code"] == 404


class TestDoctorRoutes:
    def test_public_listing(self, client, make_doctor):
        make_doctor(name="Dr. Christopher Lee", specialty="Pediatricians")
        make_doctor(name="Dr. Jeffrey King", approved=False)

        response = client.get("/api/v1/doctors/", params={"specialty": "pediatric"})

        assert response.status_code == 200
        (listed,) = response.json()
        assert listed["name"] == "Dr. Christopher Lee"
        assert listed["photo"].startswith("https://ui-avatars.com/")

    def test_get_unknown_doctor(self, client):
        response = client.get("/api/v1/doctors/999")

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "NotFound"

    def test_profile_requires_doctor_role(self, client, patient, auth_headers):
        response = client.post("/api/v1/doctors/profile", json={"specialty": "Neurologist"}, headers=auth_headers(patient))

        assert response.status_code == 403

    def test_own_availability(self, client, doctor, auth_headers):
        headers = auth_headers(doctor.user)

        initial = client.get("/api/v1/doctors/me/availability", headers=headers)
        assert initial.status_code == 200
        assert initial.json()["working_days"] == [1, 2, 3, 4, 5]

        updated = client.put(
            "/api/v1/doctors/me/availability",
            json={"disabled_dates": [TUESDAY]},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["disabled_dates"] == [TUESDAY]
        assert updated.json()["enabled"] is True

    def test_bad_availability_update(self, client, doctor, auth_headers):
        response = client.put(
            "/api/v1/doctors/me/availability",
            json={"working_days": [9]},
            headers=auth_headers(doctor.user),
        )

        assert response.status_code in (400, 422)
        assert response.json()["success"] is False

    def test_available_slots(self, client, doctor, patient, book):
        assert book(patient, time="10:00").status_code == 201

        response = client.get(f"/api/v1/doctors/{doctor.id}/available-slots", params={"date": TUESDAY})

        assert response.status_code == 200
        body = response.json()
        assert body["booked_slots"] == 1
        assert "10:00" not in body["available_slots"]
        assert body["total_slots"] == 6


class TestAppointmentRoutes:
    def test_book_and_list(self, client, patient, doctor, auth_headers, book):
        response = book(patient)

        assert response.status_code == 201
        booked = response.json()
        assert booked["status"] == "PENDING"
        assert booked["time"] == "09:00"
        assert booked["doctor"]["user"]["name"] == "Dr. Richard James"

        mine = client.get("/api/v1/appointments/patient", headers=auth_headers(patient)).json()
        assert [a["id"] for a in mine] == [booked["id"]]

        theirs = client.get("/api/v1/appointments/doctor", headers=auth_headers(doctor.user)).json()
        assert [a["id"] for a in theirs] == [booked["id"]]

    def test_double_booking_conflicts(self, make_user, patient, book):
        assert book(patient).status_code == 201

        response = book(make_user())

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Time slot already booked"

    def test_booking_requires_login(self, client, doctor):
        response = client.post(
            "/api/v1/appointments/book",
            json={"doctor_id": doctor.id, "appointment_date": TUESDAY, "time": "09:00"},
        )

        assert response.status_code == 401

    def test_booking_on_a_weekend(self, patient, book):
        response = book(patient, day="2024-06-08")

        assert response.status_code == 400
        assert "not a working day" in response.json()["error"]["message"]

    def test_doctor_accepts(self, client, patient, doctor, auth_headers, book):
        appointment_id = book(patient).json()["id"]

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "ACCEPTED"},
            headers=auth_headers(doctor.user),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ACCEPTED"

    def test_patient_cannot_accept(self, client, patient, auth_headers, book):
        appointment_id = book(patient).json()["id"]

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "ACCEPTED"},
            headers=auth_headers(patient),
        )

        assert response.status_code == 403

    def test_cancel_then_slot_is_free(self, client, make_user, patient, auth_headers, book):
        appointment_id = book(patient).json()["id"]

        cancelled = client.put(f"/api/v1/appointments/{appointment_id}/cancel", headers=auth_headers(patient))
        assert cancelled.json()["status"] == "CANCELLED"

        again = client.put(f"/api/v1/appointments/{appointment_id}/cancel", headers=auth_headers(patient))
        assert again.status_code == 400
        assert again.json()["error"]["message"] == "Can only cancel pending appointments"

        assert book(make_user()).status_code == 201

    def test_other_patients_appointment_is_hidden(self, client, make_user, patient, auth_headers, book):
        appointment_id = book(patient).json()["id"]

        response = client.get(f"/api/v1/appointments/{appointment_id}", headers=auth_headers(make_user()))

        assert response.status_code == 404


class TestPaymentRoutes:
    def test_cash_then_clinic_settlement(self, client, patient, doctor, auth_headers, book, khalti):
        appointment_id = book(patient).json()["id"]

        initiated = client.post(
            "/api/v1/payments/initiate",
            json={"appointment_id": appointment_id, "amount": 50, "payment_method": "CASH"},
            headers=auth_headers(patient),
        )
        assert initiated.status_code == 200
        assert initiated.json()["payment"]["payment_status"] == "PENDING"
        assert khalti.requests == []

        settled = client.post(f"/api/v1/payments/cash-complete/{appointment_id}", headers=auth_headers(doctor.user))
        assert settled.status_code == 200
        assert settled.json()["payment_status"] == "COMPLETED"

        status = client.get(f"/api/v1/payments/status/{appointment_id}", headers=auth_headers(patient)).json()
        assert status["exists"] is True
        assert status["payment"]["payment_status"] == "COMPLETED"

    def test_khalti_round_trip(self, client, patient, auth_headers, book, khalti):
        appointment_id = book(patient).json()["id"]

        initiated = client.post(
            "/api/v1/payments/initiate",
            json={"appointment_id": appointment_id, "amount": 50, "payment_method": "KHALTI"},
            headers=auth_headers(patient),
        ).json()
        assert initiated["pidx"] == "pidx-123"
        assert initiated["payment_url"].startswith("https://pay.khalti.test/")

        verified = client.post("/api/v1/payments/verify", json={"pidx": "pidx-123"}, headers=auth_headers(patient))
        assert verified.status_code == 200
        assert verified.json()["payment"]["payment_status"] == "COMPLETED"
        assert verified.json()["payment"]["transaction_id"] == "TXN-1"

    def test_gateway_failure_is_bad_gateway(self, client, patient, auth_headers, book, khalti):
        appointment_id = book(patient).json()["id"]
        khalti.initiate_reply = (503, "Service Unavailable")

        response = client.post(
            "/api/v1/payments/initiate",
            json={"appointment_id": appointment_id, "amount": 50, "payment_method": "KHALTI"},
            headers=auth_headers(patient),
        )

        assert response.status_code == 502
        assert response.json()["error"]["type"] == "ExternalServiceError"


class TestAdminRoutes:
    def test_non_admin_is_forbidden(self, client, patient, auth_headers):
        response = client.get("/api/v1/admin/users", headers=auth_headers(patient))

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Access denied. Admin only."

    def test_block_user_locks_them_out(self, client, admin, patient, auth_headers):
        response = client.put(f"/api/v1/admin/users/{patient.id}/block", headers=auth_headers(admin))
        assert response.json()["is_blocked"] is True

        assert client.get("/api/v1/auth/me", headers=auth_headers(patient)).status_code == 403

        client.put(f"/api/v1/admin/users/{patient.id}/unblock", headers=auth_headers(admin))
        assert client.get("/api/v1/auth/me", headers=auth_headers(patient)).status_code == 200

    def test_role_change_applies_to_existing_tokens(self, client, admin, patient, auth_headers):
        headers = auth_headers(patient)

        client.put(f"/api/v1/admin/users/{patient.id}/role", json={"role": "ADMIN"}, headers=auth_headers(admin))

        assert client.get("/api/v1/admin/stats", headers=headers).status_code == 200

    def test_override_status(self, client, admin, patient, auth_headers, book):
        appointment_id = book(patient).json()["id"]

        client.put(f"/api/v1/appointments/{appointment_id}/cancel", headers=auth_headers(patient))
        response = client.put(
            f"/api/v1/admin/appointments/{appointment_id}/status",
            json={"status": "ACCEPTED"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ACCEPTED"

    def test_create_and_approve_doctor(self, client, admin, make_user, auth_headers):
        user = make_user(name="Dr. Timothy White")
        headers = auth_headers(admin)

        created = client.post(f"/api/v1/admin/create-doctor/{user.id}", json={"specialty": "Neurologist", "fee": 40}, headers=headers)
        assert created.status_code == 201
        doctor_id = created.json()["id"]
        assert created.json()["approved"] is False

        client.put(f"/api/v1/admin/doctors/{doctor_id}/approve", headers=headers)

        listed = client.get("/api/v1/doctors/").json()
        assert [d["id"] for d in listed] == [doctor_id]
        me = client.get("/api/v1/auth/me", headers=auth_headers(user)).json()
        assert me["role"] == UserRole.DOCTOR.value

    def test_stats_and_delete(self, client, admin, patient, auth_headers, book):
        book(patient)
        headers = auth_headers(admin)

        assert client.get("/api/v1/admin/stats", headers=headers).json()["pending_appointments"] == 1

        deleted = client.delete(f"/api/v1/admin/users/{patient.id}", headers=headers)
        assert deleted.json() == {"message": "User deleted successfully"}
        assert client.get("/api/v1/admin/stats", headers=headers).json()["total_appointments"] == 0


class TestAvailabilityNulls:
    def test_null_values_are_ignored(self, client, doctor, auth_headers):
        headers = auth_headers(doctor.user)

        for payload in ({"time_slots": None}, {"enabled": None}):
            response = client.put("/api/v1/doctors/me/availability", json=payload, headers=headers)

            assert response.status_code == 200
            assert response.json()["enabled"] is True
            assert len(response.json()["time_slots"]) == 6
