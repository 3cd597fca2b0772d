from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from medicare.models.appointment import AppointmentStatus
from medicare.schemas.user import UserSummary

class AppointmentCreate(BaseModel):
    doctor_id: int = Field(..., ge=1)
    appointment_date: str = Field(..., description="Format: YYYY-MM-DD or ISO datetime")
    time: str = Field(..., description="Format: HH:MM")
    reason: Optional[str] = Field(None, max_length=1000)

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus

class AppointmentDoctor(BaseModel):
    id: int
    specialty: str
    fee: float
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_date: datetime
    time: str
    reason: str
    status: AppointmentStatus
    created_at: datetime
    patient: Optional[UserSummary] = None
    doctor: Optional[AppointmentDoctor] = None

    class Config:
        from_attributes = True
