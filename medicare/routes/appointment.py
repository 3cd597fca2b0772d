from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from medicare.config.database import get_db
from medicare.dependencies import get_current_user
from medicare.models.user import User
from medicare.schemas.appointment import AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate
from medicare.services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("/book", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    appointment: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book a new appointment for the logged-in user"""
    return AppointmentService.book_appointment(
        db,
        current_user.id,
        appointment.doctor_id,
        appointment.appointment_date,
        appointment.time,
        appointment.reason
    )

@router.get("/patient", response_model=List[AppointmentResponse])
def get_patient_appointments(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Appointments booked by the logged-in user"""
    return AppointmentService.get_patient_appointments(db, current_user.id)

@router.get("/doctor", response_model=List[AppointmentResponse])
def get_doctor_appointments(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Appointments with the logged-in doctor"""
    return AppointmentService.get_doctor_appointments(db, current_user.id)

@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AppointmentService.get_appointment(db, current_user.role, current_user.id, appointment_id)

@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accept or reject (doctor), cancel (patient) or override (admin)"""
    return AppointmentService.transition_status(
        db, current_user.role, current_user.id, appointment_id, update.status
    )

@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel a pending appointment you booked"""
    return AppointmentService.cancel_appointment(db, current_user.id, appointment_id)
