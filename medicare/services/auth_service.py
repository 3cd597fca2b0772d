from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple
import logging
from medicare.models.user import User, UserRole
from medicare.repositories.user_repository import UserRepository
from medicare.utils.exceptions import ConflictError, InvalidArgumentError, UnauthorizedError
from medicare.utils.security import create_access_token, decode_access_token, hash_password, verify_password
from medicare.utils.validators import normalize_email

logger = logging.getLogger(__name__)


class AuthService:
    MIN_PASSWORD_LENGTH = 6

    @staticmethod
    def register(db: Session, name: str, email: str, password: str) -> Tuple[User, str]:
        """Create a PATIENT account and return it with a fresh access token"""
        email = normalize_email(email)
        if not name or not name.strip():
            raise InvalidArgumentError("Name is required")
        if not email:
            raise InvalidArgumentError("Email is required")
        if not password or len(password) < AuthService.MIN_PASSWORD_LENGTH:
            raise InvalidArgumentError(
                f"Password must be at least {AuthService.MIN_PASSWORD_LENGTH} characters"
            )

        if UserRepository.get_by_email(db, email):
            raise ConflictError("User already exists")

        try:
            user = UserRepository.create(db, name.strip(), email, hash_password(password), UserRole.PATIENT)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("User already exists")

        db.refresh(user)
        logger.info(f"User registered: {email}")
        return user, create_access_token(user.id)

    @staticmethod
    def login(db: Session, email: str, password: str) -> Tuple[User, str]:
        # Unknown emails are rejected, never provisioned
        user = UserRepository.get_by_email(db, normalize_email(email))
        if not user or not verify_password(password or "", user.password_hash):
            logger.info(f"Failed login for {normalize_email(email)}")
            raise UnauthorizedError("Invalid credentials")

        logger.info(f"Login successful: {user.email}")
        return user, create_access_token(user.id)

    @staticmethod
    def resolve_token(db: Session, token: Optional[str]) -> User:
        """User behind an access token; its role is whatever storage says"""
        if not token:
            raise UnauthorizedError("No token, authorization denied")

        payload = decode_access_token(token)
        if not payload or not payload.get("sub"):
            raise UnauthorizedError("Token is not valid")

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise UnauthorizedError("Token is not valid")

        user = UserRepository.get_by_id(db, user_id)
        if not user:
            raise UnauthorizedError("User not found")
        return user
