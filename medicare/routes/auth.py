from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from medicare.config.database import get_db, settings
from medicare.dependencies import TOKEN_COOKIE, get_current_user
from medicare.models.user import User
from medicare.schemas.user import AuthResponse, UserLogin, UserRegister, UserResponse
from medicare.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def set_token_cookie(response: Response, token: str):
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, response: Response, db: Session = Depends(get_db)):
    """Create a patient account and start a session"""
    user, token = AuthService.register(db, payload.name, payload.email, payload.password)
    set_token_cookie(response, token)
    return {"token": token, "user": user}


@router.post("/login", response_model=AuthResponse)
def login(payload: UserLogin, response: Response, db: Session = Depends(get_db)):
    """Log in with email and password"""
    user, token = AuthService.login(db, payload.email, payload.password)
    set_token_cookie(response, token)
    return {"token": token, "user": user}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Current user, including the role the server holds for them"""
    return current_user
