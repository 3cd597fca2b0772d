from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging
from medicare.models.doctor import Doctor
from medicare.models.user import UserRole
from medicare.repositories.doctor_repository import DoctorRepository
from medicare.repositories.user_repository import UserRepository
from medicare.utils.exceptions import ConflictError, ForbiddenError, InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_ABOUT = "Experienced medical professional dedicated to providing quality healthcare."
AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=0D8ABC&color=fff&size=150"
PROFILE_FIELDS = ("specialty", "experience", "fee", "photo", "about", "available")


class DoctorService:
    @staticmethod
    def photo_url(photo: Optional[str], doctor_name: Optional[str], base_url: str = "") -> str:
        if not photo:
            return AVATAR_URL.format(name=quote(doctor_name or "Doctor"))
        if photo.startswith("http://") or photo.startswith("https://"):
            return photo
        return f"{base_url.rstrip('/')}/{photo.lstrip('/')}"

    @staticmethod
    def format_doctor(doctor: Doctor, base_url: str = "") -> Dict[str, Any]:
        """Public view of a doctor, flattened with the owning user's name and email"""
        name = doctor.user.name if doctor.user else None
        return {
            "id": doctor.id,
            "user_id": doctor.user_id,
            "name": name,
            "email": doctor.user.email if doctor.user else None,
            "specialty": doctor.specialty,
            "experience": doctor.experience,
            "fee": float(doctor.fee) if doctor.fee is not None else 0.0,
            "approved": doctor.approved,
            "available": doctor.available,
            "photo": DoctorService.photo_url(doctor.photo, name, base_url),
            "about": doctor.about or DEFAULT_ABOUT,
            "created_at": doctor.created_at,
        }

    @staticmethod
    def get_public_doctors(
        db: Session,
        specialty: Optional[str] = None,
        available: Optional[bool] = None,
    ) -> List[Doctor]:
        doctors = DoctorRepository.list_doctors(db, approved_only=True, specialty=specialty, available=available)
        return [doc for doc in doctors if doc.user and doc.user.name]

    @staticmethod
    def get_all_doctors(db: Session) -> List[Doctor]:
        return DoctorRepository.list_doctors(db)

    @staticmethod
    def get_doctor_by_id(db: Session, doctor_id: int) -> Doctor:
        doctor = DoctorRepository.get_by_id(db, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    @staticmethod
    def get_doctor_by_user_id(db: Session, user_id: int) -> Doctor:
        doctor = DoctorRepository.get_by_user_id(db, user_id)
        if not doctor:
            raise ForbiddenError("Access denied. Doctor only.")
        return doctor

    @staticmethod
    def clean_profile_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {key: value for key, value in fields.items() if key in PROFILE_FIELDS and value is not None}

        if "experience" in cleaned and int(cleaned["experience"]) < 0:
            raise InvalidArgumentError("Experience cannot be negative")
        if "fee" in cleaned and float(cleaned["fee"]) < 0:
            raise InvalidArgumentError("Fee cannot be negative")
        if "specialty" in cleaned and not str(cleaned["specialty"]).strip():
            raise InvalidArgumentError("Specialty cannot be empty")

        return cleaned

    @staticmethod
    def create_doctor_profile(db: Session, user_id: int, fields: Dict[str, Any], by_admin: bool = False) -> Doctor:
        """
        Attach a doctor profile to a user.

        Doctors complete their own profile; an admin may create one for any user.
        New profiles wait for admin approval before they appear publicly.
        """
        user = UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        if not by_admin and user.role != UserRole.DOCTOR:
            raise ForbiddenError("Access denied. Doctor only.")

        if DoctorRepository.get_by_user_id(db, user_id):
            raise ConflictError("User already has a doctor profile")

        cleaned = DoctorService.clean_profile_fields(fields)
        if "specialty" not in cleaned:
            raise InvalidArgumentError("Specialty is required")

        try:
            doctor = DoctorRepository.create(db, user_id, cleaned)
            if by_admin and user.role == UserRole.PATIENT:
                user.role = UserRole.DOCTOR
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("User already has a doctor profile")

        logger.info(f"Doctor profile {doctor.id} created for user {user_id}")
        return DoctorRepository.get_by_id(db, doctor.id)

    @staticmethod
    def update_doctor_profile(db: Session, user_id: int, fields: Dict[str, Any]) -> Doctor:
        doctor = DoctorService.get_doctor_by_user_id(db, user_id)

        DoctorRepository.update(db, doctor, DoctorService.clean_profile_fields(fields))
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def set_approval(db: Session, doctor_id: int, approved: bool) -> Doctor:
        doctor = DoctorService.get_doctor_by_id(db, doctor_id)
        doctor.approved = approved
        db.commit()
        db.refresh(doctor)
        logger.info(f"Doctor {doctor_id} {'approved' if approved else 'rejected'}")
        return doctor
