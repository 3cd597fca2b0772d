import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from medicare.config.database import get_db
from medicare.models.user import User, UserRole
from medicare.services.auth_service import AuthService
from medicare.utils.exceptions import ForbiddenError

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"

security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated actor from the session cookie or a bearer token"""
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(TOKEN_COOKIE)

    user = AuthService.resolve_token(db, token)
    if user.is_blocked:
        logger.info(f"Blocked user {user.id} denied")
        raise ForbiddenError("Your account has been blocked")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError("Access denied. Admin only.")
    return current_user


def require_doctor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.DOCTOR:
        raise ForbiddenError("Access denied. Doctor only.")
    return current_user
