from sqlalchemy.orm import Session
from typing import Dict, List, Union
import logging
from medicare.models.appointment import AppointmentStatus
from medicare.models.user import User, UserRole
from medicare.repositories.appointment_repository import AppointmentRepository
from medicare.repositories.doctor_repository import DoctorRepository
from medicare.repositories.user_repository import UserRepository
from medicare.utils.exceptions import InvalidArgumentError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


class AdminService:
    @staticmethod
    def get_all_users(db: Session) -> List[User]:
        return UserRepository.list_all(db)

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def update_role(db: Session, user_id: int, role: Union[str, UserRole]) -> User:
        try:
            new_role = role if isinstance(role, UserRole) else UserRole(str(role).strip().upper())
        except ValueError:
            raise InvalidArgumentError(f"Invalid role '{role}'")

        user = AdminService.get_user(db, user_id)
        user.role = new_role
        db.commit()
        db.refresh(user)
        logger.info(f"User {user_id} role set to {new_role.value}")
        return user

    @staticmethod
    def set_blocked(db: Session, admin_id: int, user_id: int, blocked: bool) -> User:
        if blocked and admin_id == user_id:
            raise InvalidStateError("Admins cannot block themselves")

        user = AdminService.get_user(db, user_id)
        user.is_blocked = blocked
        db.commit()
        db.refresh(user)
        logger.info(f"User {user_id} {'blocked' if blocked else 'unblocked'}")
        return user

    @staticmethod
    def delete_user(db: Session, admin_id: int, user_id: int) -> Dict[str, str]:
        """Remove a user with their bookings, doctor profile and that profile's bookings"""
        if admin_id == user_id:
            raise InvalidStateError("Admins cannot delete their own account")

        user = AdminService.get_user(db, user_id)
        db.delete(user)
        db.commit()
        logger.info(f"User {user_id} deleted")
        return {"message": "User deleted successfully"}

    @staticmethod
    def get_stats(db: Session) -> Dict[str, int]:
        return {
            "total_users": UserRepository.count(db),
            "total_doctors": DoctorRepository.count(db),
            "total_appointments": AppointmentRepository.count(db),
            "pending_appointments": AppointmentRepository.count(db, AppointmentStatus.PENDING),
        }
