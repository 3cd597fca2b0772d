from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class DoctorProfileCreate(BaseModel):
    specialty: str = Field(..., min_length=1, max_length=100)
    experience: int = Field(0, ge=0)
    fee: float = Field(0, ge=0)
    photo: Optional[str] = Field(None, max_length=500)
    about: Optional[str] = None

class DoctorProfileUpdate(BaseModel):
    specialty: Optional[str] = Field(None, min_length=1, max_length=100)
    experience: Optional[int] = Field(None, ge=0)
    fee: Optional[float] = Field(None, ge=0)
    photo: Optional[str] = Field(None, max_length=500)
    about: Optional[str] = None
    available: Optional[bool] = None

class DoctorResponse(BaseModel):
    id: int
    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    specialty: str
    experience: int
    fee: float
    approved: bool
    available: bool
    photo: str
    about: str
    created_at: Optional[datetime] = None
