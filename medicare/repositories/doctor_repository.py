"""Doctor repository - Database operations for doctor profiles"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from medicare.models.doctor import Doctor


class DoctorRepository:
    """Repository for doctor database operations"""

    @staticmethod
    def get_by_id(db: Session, doctor_id: int) -> Optional[Doctor]:
        """Get doctor by ID with the owning user loaded"""
        return (
            db.query(Doctor)
            .options(joinedload(Doctor.user))
            .filter(Doctor.id == doctor_id)
            .first()
        )

    @staticmethod
    def get_by_user_id(db: Session, user_id: int) -> Optional[Doctor]:
        """Get the doctor profile owned by a user"""
        return (
            db.query(Doctor)
            .options(joinedload(Doctor.user))
            .filter(Doctor.user_id == user_id)
            .first()
        )

    @staticmethod
    def list_doctors(
        db: Session,
        approved_only: bool = False,
        specialty: Optional[str] = None,
        available: Optional[bool] = None,
    ) -> List[Doctor]:
        query = db.query(Doctor).options(joinedload(Doctor.user))
        if approved_only:
            query = query.filter(Doctor.approved.is_(True))
        if specialty:
            query = query.filter(Doctor.specialty.ilike(f"%{specialty.strip()}%"))
        if available is not None:
            query = query.filter(Doctor.available.is_(available))
        return query.order_by(Doctor.created_at.desc(), Doctor.id.desc()).all()

    @staticmethod
    def create(db: Session, user_id: int, fields: Dict[str, Any]) -> Doctor:
        doctor = Doctor(user_id=user_id, **fields)
        db.add(doctor)
        db.flush()
        return doctor

    @staticmethod
    def update(db: Session, doctor: Doctor, fields: Dict[str, Any]) -> Doctor:
        """Apply a partial update; caller commits"""
        for key, value in fields.items():
            setattr(doctor, key, value)
        db.flush()
        return doctor

    @staticmethod
    def count(db: Session) -> int:
        return db.query(Doctor).count()
