from pydantic import BaseModel, Field, EmailStr
from datetime import datetime
from typing import Optional
from medicare.models.user import UserRole

class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class DoctorProfileSummary(BaseModel):
    id: int
    specialty: str
    approved: bool
    available: bool

    class Config:
        from_attributes = True

class UserResponse(UserSummary):
    role: UserRole
    is_blocked: bool
    created_at: Optional[datetime] = None
    doctor: Optional[DoctorProfileSummary] = None

class AuthResponse(BaseModel):
    token: str
    user: UserResponse

class RoleUpdate(BaseModel):
    role: UserRole
