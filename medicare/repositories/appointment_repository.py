"""Appointment repository - Database operations for bookings"""

from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from medicare.models.appointment import Appointment, AppointmentStatus
from medicare.models.doctor import Doctor


def _with_parties(query):
    return query.options(
        joinedload(Appointment.patient),
        joinedload(Appointment.doctor).joinedload(Doctor.user),
    )


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID with patient and doctor attached"""
        return _with_parties(db.query(Appointment)).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def find_conflicting(
        db: Session,
        doctor_id: int,
        slot_date: date,
        time: str,
        exclude_status: AppointmentStatus = AppointmentStatus.CANCELLED,
    ) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.slot_date == slot_date,
                Appointment.time == time,
                Appointment.status != exclude_status,
            )
            .first()
        )

    @staticmethod
    def find_by_doctor(
        db: Session,
        doctor_id: int,
        date_range: Optional[Tuple[date, date]] = None,
        exclude_status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        query = _with_parties(db.query(Appointment)).filter(Appointment.doctor_id == doctor_id)
        if date_range:
            start, end = date_range
            query = query.filter(Appointment.slot_date >= start, Appointment.slot_date <= end)
        if exclude_status is not None:
            query = query.filter(Appointment.status != exclude_status)
        return query.order_by(Appointment.appointment_date.asc()).all()

    @staticmethod
    def find_by_patient(db: Session, patient_id: int) -> List[Appointment]:
        return (
            _with_parties(db.query(Appointment))
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date.asc())
            .all()
        )

    @staticmethod
    def list_all(db: Session) -> List[Appointment]:
        return (
            _with_parties(db.query(Appointment))
            .order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .all()
        )

    @staticmethod
    def create(db: Session, **fields) -> Appointment:
        appointment = Appointment(**fields)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def update_status(db: Session, appointment: Appointment, status: AppointmentStatus) -> Appointment:
        appointment.status = status
        db.flush()
        return appointment

    @staticmethod
    def count(db: Session, status: Optional[AppointmentStatus] = None) -> int:
        query = db.query(Appointment)
        if status is not None:
            query = query.filter(Appointment.status == status)
        return query.count()
