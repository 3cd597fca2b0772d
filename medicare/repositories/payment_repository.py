"""Payment repository - Database operations for appointment payments"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from medicare.models.payment import Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_by_appointment(db: Session, appointment_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.appointment_id == appointment_id).first()

    @staticmethod
    def get_by_pidx(db: Session, pidx: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.pidx == pidx).first()

    @staticmethod
    def upsert_by_appointment(db: Session, appointment_id: int, fields: Dict[str, Any]) -> Payment:
        """Create the appointment's payment or overwrite the given fields on the existing one"""
        payment = PaymentRepository.get_by_appointment(db, appointment_id)
        if payment is None:
            payment = Payment(appointment_id=appointment_id, **fields)
            db.add(payment)
        else:
            for key, value in fields.items():
                setattr(payment, key, value)
        db.flush()
        return payment

    @staticmethod
    def update(db: Session, payment: Payment, fields: Dict[str, Any]) -> Payment:
        for key, value in fields.items():
            setattr(payment, key, value)
        db.flush()
        return payment
