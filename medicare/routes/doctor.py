from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from medicare.config.database import get_db
from medicare.dependencies import require_doctor
from medicare.models.user import User
from medicare.schemas.availability import AvailabilityResponse, AvailabilityUpdate, AvailableSlotsResponse
from medicare.schemas.doctor import DoctorProfileCreate, DoctorProfileUpdate, DoctorResponse
from medicare.services.appointment_service import AppointmentService
from medicare.services.availability_service import AvailabilityService
from medicare.services.doctor_service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get(
    "/",
    response_model=List[DoctorResponse],
    summary="List approved doctors",
    description="Public directory of approved doctors, newest first",
    responses={
        200: {"description": "List of doctors retrieved successfully"}
    }
)
def get_doctors(
    request: Request,
    specialty: Optional[str] = Query(None, description="Case-insensitive specialty filter"),
    available: Optional[bool] = Query(None, description="Only doctors taking bookings (or not)"),
    db: Session = Depends(get_db)
):
    """
    Get all approved doctors

    - **specialty**: Partial, case-insensitive match on the doctor's specialty
    - **available**: Filter by whether the doctor currently takes bookings
    """
    doctors = DoctorService.get_public_doctors(db, specialty, available)
    return [DoctorService.format_doctor(doc, str(request.base_url)) for doc in doctors]


@router.post(
    "/profile",
    response_model=DoctorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Complete doctor profile",
    responses={
        201: {"description": "Doctor profile created, pending admin approval"},
        403: {"description": "Only doctor accounts can create a profile"},
        409: {"description": "Profile already exists"}
    }
)
def create_profile(
    request: Request,
    profile: DoctorProfileCreate,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    doctor = DoctorService.create_doctor_profile(db, current_user.id, profile.model_dump())
    return DoctorService.format_doctor(doctor, str(request.base_url))


@router.put(
    "/profile",
    response_model=DoctorResponse,
    summary="Update doctor profile",
    description="Partial update of the logged-in doctor's profile"
)
def update_profile(
    request: Request,
    profile: DoctorProfileUpdate,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """Only provided fields will be updated."""
    doctor = DoctorService.update_doctor_profile(db, current_user.id, profile.model_dump(exclude_unset=True))
    return DoctorService.format_doctor(doctor, str(request.base_url))


@router.get("/me/availability", response_model=AvailabilityResponse, summary="Get own availability")
def get_my_availability(current_user: User = Depends(require_doctor), db: Session = Depends(get_db)):
    """Booking calendar of the logged-in doctor, created with defaults on first read"""
    DoctorService.get_doctor_by_user_id(db, current_user.id)
    return AvailabilityService.get_or_create(db, current_user.id).to_dict()


@router.put("/me/availability", response_model=AvailabilityResponse, summary="Update own availability")
def update_my_availability(
    availability: AvailabilityUpdate,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """Fields left out keep their current value; lists replace the stored list."""
    DoctorService.get_doctor_by_user_id(db, current_user.id)
    return AvailabilityService.set_availability(db, current_user.id, availability.model_dump(exclude_unset=True))


@router.get(
    "/{doctor_id}",
    response_model=DoctorResponse,
    summary="Get doctor by ID",
    responses={
        200: {"description": "Doctor details retrieved successfully"},
        404: {"description": "Doctor not found"}
    }
)
def get_doctor(doctor_id: int, request: Request, db: Session = Depends(get_db)):
    doctor = DoctorService.get_doctor_by_id(db, doctor_id)
    return DoctorService.format_doctor(doctor, str(request.base_url))


@router.get(
    "/{doctor_id}/available-slots",
    response_model=AvailableSlotsResponse,
    summary="Free time slots on a date"
)
def get_available_slots(
    doctor_id: int,
    date: str = Query(..., description="Format: YYYY-MM-DD"),
    db: Session = Depends(get_db)
):
    """Configured slots for the day minus the ones already booked"""
    return AppointmentService.get_available_slots(db, doctor_id, date)
