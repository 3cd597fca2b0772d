import itertools
import json
from decimal import Decimal

import httpx
import pytest

from medicare.models.payment import Payment, PaymentMethod, PaymentStatus
from medicare.models.user import UserRole
from medicare.services.appointment_service import AppointmentService
from medicare.services.payment_service import PaymentService
from medicare.utils.exceptions import (
    ExternalServiceError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)


@pytest.fixture
def appointment(db, patient, doctor):
    return AppointmentService.book_appointment(db, patient.id, doctor.id, "2024-06-11", "09:00", "Checkup")


def initiate_khalti(db, patient, appointment, khalti, amount=50):
    return PaymentService.initiate_payment(db, patient.id, appointment.id, amount, "KHALTI", gateway=khalti.gateway())


class TestInitiate:
    def test_cash_never_touches_gateway(self, db, patient, appointment, khalti):
        result = PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH", gateway=khalti.gateway())

        payment = result["payment"]
        assert khalti.requests == []
        assert payment.payment_method == PaymentMethod.CASH
        assert payment.payment_status == PaymentStatus.PENDING
        assert payment.pidx is None
        assert payment.amount == Decimal("50.00")
        assert "pay at the clinic" in result["message"]

    def test_khalti_initiation(self, db, patient, appointment, khalti):
        result = initiate_khalti(db, patient, appointment, khalti, amount=49.99)

        assert result["payment_url"] == "https://pay.khalti.test/?pidx=pidx-123"
        assert result["payment"].pidx == "pidx-123"
        assert result["payment"].payment_status == PaymentStatus.PENDING

        (request,) = khalti.requests
        assert request.url.path == "/api/v2/epayment/initiate/"
        assert request.headers["Authorization"] == "Key test_secret_key"
        body = json.loads(request.content)
        assert body["amount"] == 4999
        assert body["purchase_order_id"].startswith(f"APT-{appointment.id}-")
        assert body["purchase_order_name"] == "Appointment with Dr. Dr. Richard James"
        assert body["customer_info"] == {"name": "Patient One", "email": "patient@example.com"}
        assert body["return_url"].endswith("/payment/verify")

    def test_reinitiating_updates_the_same_payment(self, db, patient, appointment, khalti):
        PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")
        initiate_khalti(db, patient, appointment, khalti)

        payments = db.query(Payment).all()
        assert len(payments) == 1
        assert payments[0].payment_method == PaymentMethod.KHALTI
        assert payments[0].pidx == "pidx-123"

    def test_purchase_order_ids_differ_between_attempts(self, db, patient, appointment, khalti, monkeypatch):
        clock = itertools.count(1000.0, 1.5)
        monkeypatch.setattr("medicare.services.payment_service.time.time", lambda: next(clock))

        initiate_khalti(db, patient, appointment, khalti)
        khalti.initiate_reply = (200, {"pidx": "pidx-456", "payment_url": "https://pay.khalti.test/?pidx=pidx-456"})
        initiate_khalti(db, patient, appointment, khalti)

        order_ids = [json.loads(r.content)["purchase_order_id"] for r in khalti.requests]
        assert order_ids[0] != order_ids[1]

    def test_esewa_is_recorded_without_remote_call(self, db, patient, appointment, khalti):
        result = PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "esewa", gateway=khalti.gateway())

        assert khalti.requests == []
        assert result["payment"].payment_method == PaymentMethod.ESEWA
        assert "coming soon" in result["message"]

    def test_unknown_method(self, db, patient, appointment):
        with pytest.raises(InvalidArgumentError, match="Invalid payment method"):
            PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "BITCOIN")

    @pytest.mark.parametrize("amount", [-1, "NaN", "Infinity", "-Infinity", "fifty", ""])
    def test_malformed_amount(self, db, patient, appointment, amount):
        with pytest.raises(InvalidArgumentError):
            PaymentService.initiate_payment(db, patient.id, appointment.id, amount, "CASH")
        assert db.query(Payment).count() == 0

    def test_someone_elses_appointment(self, db, make_user, appointment):
        with pytest.raises(NotFoundError):
            PaymentService.initiate_payment(db, make_user().id, appointment.id, 50, "CASH")

    def test_already_paid(self, db, patient, doctor, appointment):
        PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")
        PaymentService.mark_cash_complete(db, UserRole.DOCTOR, doctor.user_id, appointment.id)

        with pytest.raises(InvalidStateError, match="already completed"):
            PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")

    def test_gateway_error_leaves_no_payment(self, db, patient, appointment, khalti):
        khalti.initiate_reply = (401, {"detail": "Invalid token."})

        with pytest.raises(ExternalServiceError) as excinfo:
            initiate_khalti(db, patient, appointment, khalti)

        assert excinfo.value.details == {"detail": "Invalid token."}
        assert db.query(Payment).count() == 0

    def test_gateway_timeout(self, db, patient, appointment, khalti):
        khalti.error = httpx.ReadTimeout("timed out")

        with pytest.raises(ExternalServiceError, match="timeout"):
            initiate_khalti(db, patient, appointment, khalti)

    @pytest.mark.parametrize("reply", [
        (200, "<html>oops</html>"),
        (200, {"payment_url": "https://pay.khalti.test/"}),
    ])
    def test_malformed_gateway_reply(self, db, patient, appointment, khalti, reply):
        khalti.initiate_reply = reply

        with pytest.raises(ExternalServiceError):
            initiate_khalti(db, patient, appointment, khalti)
        assert db.query(Payment).count() == 0


class TestVerify:
    def test_completed_is_idempotent(self, db, patient, appointment, khalti):
        initiate_khalti(db, patient, appointment, khalti)

        first = PaymentService.verify_payment(db, "pidx-123", gateway=khalti.gateway())
        second = PaymentService.verify_payment(db, "pidx-123", gateway=khalti.gateway())

        assert first["success"] and second["success"]
        payments = db.query(Payment).all()
        assert len(payments) == 1
        assert payments[0].payment_status == PaymentStatus.COMPLETED
        assert payments[0].transaction_id == "TXN-1"

    def test_pending_changes_nothing(self, db, patient, appointment, khalti):
        initiate_khalti(db, patient, appointment, khalti)
        khalti.lookup_reply = (200, {"pidx": "pidx-123", "status": "Pending"})

        result = PaymentService.verify_payment(db, "pidx-123", gateway=khalti.gateway())

        assert result["success"] is False
        assert result["message"] == "Payment is still pending"
        assert result["payment"].payment_status == PaymentStatus.PENDING

    @pytest.mark.parametrize("gateway_status", ["Expired", "User canceled", "Refunded"])
    def test_other_statuses_fail_the_payment(self, db, patient, appointment, khalti, gateway_status):
        initiate_khalti(db, patient, appointment, khalti)
        khalti.lookup_reply = (200, {"pidx": "pidx-123", "status": gateway_status})

        result = PaymentService.verify_payment(db, "pidx-123", gateway=khalti.gateway())

        assert result["success"] is False
        assert result["status"] == gateway_status
        assert result["payment"].payment_status == PaymentStatus.FAILED

    def test_unknown_pidx(self, db, khalti):
        with pytest.raises(NotFoundError):
            PaymentService.verify_payment(db, "nope", gateway=khalti.gateway())
        assert khalti.requests == []

    def test_lookup_failure(self, db, patient, appointment, khalti):
        initiate_khalti(db, patient, appointment, khalti)
        khalti.lookup_reply = (500, {"error": "boom"})

        with pytest.raises(ExternalServiceError):
            PaymentService.verify_payment(db, "pidx-123", gateway=khalti.gateway())

        assert db.query(Payment).one().payment_status == PaymentStatus.PENDING


class TestCashSettlement:
    def test_patient_cannot_settle(self, db, patient, appointment):
        PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")

        with pytest.raises(ForbiddenError):
            PaymentService.mark_cash_complete(db, UserRole.PATIENT, patient.id, appointment.id)

    def test_admin_settles(self, db, patient, admin, appointment):
        PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")

        payment = PaymentService.mark_cash_complete(db, UserRole.ADMIN, admin.id, appointment.id)
        assert payment.payment_status == PaymentStatus.COMPLETED

    def test_other_doctor_cannot_settle(self, db, patient, make_doctor, appointment):
        PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")
        stranger = make_doctor(name="Dr. Zoe Kelly")

        with pytest.raises(NotFoundError):
            PaymentService.mark_cash_complete(db, UserRole.DOCTOR, stranger.user_id, appointment.id)

    def test_wallet_payment_cannot_be_settled_as_cash(self, db, patient, doctor, appointment, khalti):
        initiate_khalti(db, patient, appointment, khalti)

        with pytest.raises(InvalidStateError):
            PaymentService.mark_cash_complete(db, UserRole.DOCTOR, doctor.user_id, appointment.id)

    def test_status_lookup(self, db, patient, appointment):
        assert PaymentService.get_payment_status(db, UserRole.PATIENT, patient.id, appointment.id)["exists"] is False

        PaymentService.initiate_payment(db, patient.id, appointment.id, 50, "CASH")
        status = PaymentService.get_payment_status(db, UserRole.PATIENT, patient.id, appointment.id)
        assert status["exists"] is True
        assert status["payment"].payment_method == PaymentMethod.CASH
