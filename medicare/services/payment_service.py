from sqlalchemy.orm import Session
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union
import logging
import time
from medicare.config.database import settings
from medicare.models.appointment import Appointment
from medicare.models.payment import Payment, PaymentMethod, PaymentStatus
from medicare.models.user import UserRole
from medicare.repositories.appointment_repository import AppointmentRepository
from medicare.repositories.payment_repository import PaymentRepository
from medicare.services.appointment_service import AppointmentService
from medicare.services.khalti_service import KhaltiGateway
from medicare.utils.exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

KHALTI_COMPLETED = "Completed"
KHALTI_PENDING = "Pending"


class PaymentService:
    @staticmethod
    def parse_amount(amount: Any) -> Decimal:
        if amount is None or amount == "":
            raise InvalidArgumentError("Amount is required")
        try:
            value = Decimal(str(amount)).quantize(Decimal("0.01"))
        except (InvalidOperation, ValueError):
            raise InvalidArgumentError(f"Invalid amount '{amount}'")
        if not value.is_finite():
            raise InvalidArgumentError(f"Invalid amount '{amount}'")
        if value < 0:
            raise InvalidArgumentError("Amount cannot be negative")
        return value

    @staticmethod
    def parse_method(method: Union[str, PaymentMethod, None]) -> PaymentMethod:
        if isinstance(method, PaymentMethod):
            return method
        try:
            return PaymentMethod(str(method).strip().upper())
        except ValueError:
            raise InvalidArgumentError("Invalid payment method")

    @staticmethod
    def build_khalti_payload(appointment: Appointment, amount: Decimal) -> Dict[str, Any]:
        doctor_name = appointment.doctor.user.name if appointment.doctor and appointment.doctor.user else "Doctor"
        return {
            "return_url": f"{settings.frontend_url.rstrip('/')}/payment/verify",
            "website_url": settings.frontend_url,
            "amount": int((amount * 100).to_integral_value()),  # paisa
            # Timestamped so re-initiating the same appointment never reuses an order id
            "purchase_order_id": f"APT-{appointment.id}-{int(time.time() * 1000)}",
            "purchase_order_name": f"Appointment with Dr. {doctor_name}",
            "customer_info": {
                "name": appointment.patient.name if appointment.patient else None,
                "email": appointment.patient.email if appointment.patient else None,
            },
        }

    @staticmethod
    def initiate_payment(
        db: Session,
        patient_id: int,
        appointment_id: int,
        amount: Any,
        method: Union[str, PaymentMethod, None],
        gateway: Optional[KhaltiGateway] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        appointment = AppointmentRepository.get_by_id(db, appointment_id)
        if not appointment or appointment.patient_id != patient_id:
            raise NotFoundError("Appointment not found")

        existing_payment = PaymentRepository.get_by_appointment(db, appointment.id)
        if existing_payment and existing_payment.payment_status == PaymentStatus.COMPLETED:
            raise InvalidStateError("Payment already completed for this appointment")

        payment_method = PaymentService.parse_method(method)
        value = PaymentService.parse_amount(amount)

        if payment_method == PaymentMethod.CASH:
            payment = PaymentRepository.upsert_by_appointment(db, appointment.id, {
                "amount": value,
                "payment_method": PaymentMethod.CASH,
                "payment_status": PaymentStatus.PENDING,
                "pidx": None,
            })
            db.commit()
            db.refresh(payment)
            logger.info(f"Cash payment recorded for appointment {appointment.id}")
            return {
                "success": True,
                "message": "Cash payment selected. Please pay at the clinic.",
                "payment": payment,
                "payment_method": PaymentMethod.CASH,
            }

        if payment_method == PaymentMethod.KHALTI:
            gateway = gateway or KhaltiGateway()
            khalti_data = gateway.initiate(PaymentService.build_khalti_payload(appointment, value), timeout=timeout)

            payment = PaymentRepository.upsert_by_appointment(db, appointment.id, {
                "amount": value,
                "payment_method": PaymentMethod.KHALTI,
                "payment_status": PaymentStatus.PENDING,
                "pidx": khalti_data["pidx"],
                "transaction_id": None,
            })
            db.commit()
            db.refresh(payment)
            logger.info(f"Khalti payment {payment.pidx} initiated for appointment {appointment.id}")
            return {
                "success": True,
                "message": "Redirect to Khalti to complete the payment.",
                "payment": payment,
                "payment_method": PaymentMethod.KHALTI,
                "payment_url": khalti_data["payment_url"],
                "pidx": khalti_data["pidx"],
            }

        # TODO: call the eSewa ePay v2 form endpoint once merchant credentials are issued
        payment = PaymentRepository.upsert_by_appointment(db, appointment.id, {
            "amount": value,
            "payment_method": PaymentMethod.ESEWA,
            "payment_status": PaymentStatus.PENDING,
            "pidx": None,
        })
        db.commit()
        db.refresh(payment)
        return {
            "success": True,
            "message": "eSewa payment coming soon. Please use Khalti or Cash for now.",
            "payment": payment,
            "payment_method": PaymentMethod.ESEWA,
        }

    @staticmethod
    def verify_payment(
        db: Session,
        pidx: str,
        gateway: Optional[KhaltiGateway] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Reconcile a wallet payment with the gateway's lookup result.

        Completed marks the payment COMPLETED with the gateway transaction id,
        Pending changes nothing, anything else (Expired, User canceled, ...)
        marks it FAILED. Repeating the call with the same gateway answer
        leaves the payment unchanged.
        """
        if not pidx:
            raise InvalidArgumentError("Payment index (pidx) is required")

        payment = PaymentRepository.get_by_pidx(db, pidx)
        if not payment:
            raise NotFoundError("Payment not found")

        gateway = gateway or KhaltiGateway()
        verify_data = gateway.lookup(pidx, timeout=timeout)
        gateway_status = verify_data["status"]

        if gateway_status == KHALTI_COMPLETED:
            PaymentRepository.update(db, payment, {
                "payment_status": PaymentStatus.COMPLETED,
                "transaction_id": verify_data.get("transaction_id") or payment.transaction_id,
            })
            db.commit()
            db.refresh(payment)
            logger.info(f"Payment {pidx} verified as completed")
            return {
                "success": True,
                "message": "Payment verified successfully",
                "status": gateway_status,
                "payment": payment,
            }

        if gateway_status == KHALTI_PENDING:
            return {
                "success": False,
                "message": "Payment is still pending",
                "status": gateway_status,
                "payment": payment,
            }

        PaymentRepository.update(db, payment, {"payment_status": PaymentStatus.FAILED})
        db.commit()
        db.refresh(payment)
        logger.info(f"Payment {pidx} marked failed (gateway status: {gateway_status})")
        return {
            "success": False,
            "message": "Payment failed or expired",
            "status": gateway_status,
            "payment": payment,
        }

    @staticmethod
    def get_payment_status(db: Session, actor_role: UserRole, actor_id: int, appointment_id: int) -> Dict[str, Any]:
        appointment = AppointmentService.get_appointment(db, actor_role, actor_id, appointment_id)
        payment = PaymentRepository.get_by_appointment(db, appointment.id)
        if not payment:
            return {"exists": False, "message": "No payment found for this appointment", "payment": None}
        return {"exists": True, "payment": payment}

    @staticmethod
    def mark_cash_complete(db: Session, actor_role: UserRole, actor_id: int, appointment_id: int) -> Payment:
        """Clinic-side settlement of a cash payment (doctor of the appointment or admin)"""
        if actor_role not in (UserRole.DOCTOR, UserRole.ADMIN):
            raise ForbiddenError("Access denied")

        appointment = AppointmentService.get_appointment(db, actor_role, actor_id, appointment_id)
        if actor_role == UserRole.DOCTOR and (appointment.doctor is None or appointment.doctor.user_id != actor_id):
            raise NotFoundError("Appointment not found")

        payment = PaymentRepository.get_by_appointment(db, appointment.id)
        if not payment:
            raise NotFoundError("Payment not found")

        if payment.payment_method != PaymentMethod.CASH:
            raise InvalidStateError("Only cash payments can be settled at the clinic")

        PaymentRepository.update(db, payment, {"payment_status": PaymentStatus.COMPLETED})
        db.commit()
        db.refresh(payment)
        logger.info(f"Cash payment for appointment {appointment.id} marked completed")
        return payment
