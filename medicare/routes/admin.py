from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List
from medicare.config.database import get_db
from medicare.dependencies import require_admin
from medicare.models.user import User
from medicare.schemas.admin import StatsResponse
from medicare.schemas.appointment import AppointmentResponse, AppointmentStatusUpdate
from medicare.schemas.doctor import DoctorProfileCreate, DoctorResponse
from medicare.schemas.user import RoleUpdate, UserResponse
from medicare.services.admin_service import AdminService
from medicare.services.appointment_service import AppointmentService
from medicare.services.doctor_service import DoctorService

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("/users", response_model=List[UserResponse])
def get_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AdminService.get_all_users(db)

@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    update: RoleUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return AdminService.update_role(db, user_id, update.role)

@router.put("/users/{user_id}/block", response_model=UserResponse)
def block_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AdminService.set_blocked(db, admin.id, user_id, True)

@router.put("/users/{user_id}/unblock", response_model=UserResponse)
def unblock_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AdminService.set_blocked(db, admin.id, user_id, False)

@router.delete("/users/{user_id}")
def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Delete a user together with their appointments and doctor profile"""
    return AdminService.delete_user(db, admin.id, user_id)

@router.get("/appointments", response_model=List[AppointmentResponse])
def get_appointments(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AppointmentService.get_all_appointments(db)

@router.put("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
def override_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Set any status on any appointment"""
    return AppointmentService.transition_status(db, admin.role, admin.id, appointment_id, update.status)

@router.get("/stats", response_model=StatsResponse)
def get_stats(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AdminService.get_stats(db)

@router.get("/doctors", response_model=List[DoctorResponse])
def get_doctors(request: Request, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """All doctors, approved or not"""
    return [DoctorService.format_doctor(doc, str(request.base_url)) for doc in DoctorService.get_all_doctors(db)]

@router.put("/doctors/{doctor_id}/approve", response_model=DoctorResponse)
def approve_doctor(doctor_id: int, request: Request, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return DoctorService.format_doctor(DoctorService.set_approval(db, doctor_id, True), str(request.base_url))

@router.put("/doctors/{doctor_id}/reject", response_model=DoctorResponse)
def reject_doctor(doctor_id: int, request: Request, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return DoctorService.format_doctor(DoctorService.set_approval(db, doctor_id, False), str(request.base_url))

@router.post("/create-doctor/{user_id}", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(
    user_id: int,
    profile: DoctorProfileCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a doctor profile for an existing user"""
    doctor = DoctorService.create_doctor_profile(db, user_id, profile.model_dump(), by_admin=True)
    return DoctorService.format_doctor(doctor, str(request.base_url))
