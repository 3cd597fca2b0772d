"""User repository - Database operations for accounts"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from medicare.models.user import User, UserRole


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email, ignoring case"""
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    @staticmethod
    def list_all(db: Session) -> List[User]:
        return (
            db.query(User)
            .options(joinedload(User.doctor))
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )

    @staticmethod
    def create(db: Session, name: str, email: str, password_hash: str, role: UserRole = UserRole.PATIENT) -> User:
        user = User(name=name, email=email, password_hash=password_hash, role=role)
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def count(db: Session) -> int:
        return db.query(User).count()
