from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime, time as dt_time
from typing import Dict, FrozenSet, List, Optional, Union
import logging
from medicare.models.appointment import Appointment, AppointmentStatus
from medicare.models.user import UserRole
from medicare.repositories.appointment_repository import AppointmentRepository
from medicare.repositories.doctor_repository import DoctorRepository
from medicare.services.availability_service import AvailabilityService
from medicare.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from medicare.utils.validators import DateInput, parse_booking_date, parse_time_label

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Time slot already booked"


class AppointmentService:
    # Non-admin moves only ever leave PENDING
    ROLE_TARGETS: Dict[UserRole, FrozenSet[AppointmentStatus]] = {
        UserRole.DOCTOR: frozenset({AppointmentStatus.ACCEPTED, AppointmentStatus.REJECTED}),
        UserRole.PATIENT: frozenset({AppointmentStatus.CANCELLED}),
    }

    TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
        AppointmentStatus.PENDING: frozenset({
            AppointmentStatus.ACCEPTED,
            AppointmentStatus.REJECTED,
            AppointmentStatus.CANCELLED,
        }),
        AppointmentStatus.ACCEPTED: frozenset({AppointmentStatus.CANCELLED}),
        AppointmentStatus.REJECTED: frozenset(),
        AppointmentStatus.CANCELLED: frozenset(),
    }

    @staticmethod
    def parse_status(value: Union[str, AppointmentStatus]) -> AppointmentStatus:
        if isinstance(value, AppointmentStatus):
            return value
        try:
            return AppointmentStatus(str(value).strip().upper())
        except ValueError:
            raise InvalidArgumentError(
                f"Invalid status '{value}'. Use one of: {', '.join(s.value for s in AppointmentStatus)}"
            )

    @staticmethod
    def resolve_slot(when: DateInput, time_label: str):
        """
        Returns (calendar_day, HH:MM label, appointment datetime).

        The time label decides the slot; a datetime carrying its own time of day
        has to agree with it.
        """
        label = parse_time_label(time_label)
        day, time_of_day = parse_booking_date(when)
        slot_time = dt_time(int(label[:2]), int(label[3:]))

        if time_of_day is not None and time_of_day.replace(second=0, microsecond=0) != slot_time:
            raise InvalidArgumentError(
                f"Appointment date time {time_of_day.strftime('%H:%M')} does not match selected time {label}"
            )

        return day, label, datetime.combine(day, slot_time)

    @staticmethod
    def book_appointment(
        db: Session,
        patient_id: int,
        doctor_id: int,
        appointment_date: DateInput,
        time: str,
        reason: Optional[str] = None,
    ) -> Appointment:
        doctor = DoctorRepository.get_by_id(db, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")

        if not doctor.available:
            raise InvalidStateError("Doctor not available")

        day, label, scheduled_at = AppointmentService.resolve_slot(appointment_date, time)

        AvailabilityService.ensure_bookable(db, doctor.user_id, day)

        existing_appointment = AppointmentRepository.find_conflicting(db, doctor.id, day, label)
        if existing_appointment:
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        try:
            appointment = AppointmentRepository.create(
                db,
                patient_id=patient_id,
                doctor_id=doctor.id,
                appointment_date=scheduled_at,
                slot_date=day,
                time=label,
                reason=(reason or "").strip(),
                status=AppointmentStatus.PENDING,
            )
            db.commit()
        except IntegrityError:
            # A concurrent booking won the slot between the check and the insert
            db.rollback()
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        logger.info(f"Appointment {appointment.id} booked: doctor {doctor.id} on {day} at {label}")
        return AppointmentRepository.get_by_id(db, appointment.id)

    @staticmethod
    def _get_visible(db: Session, actor_role: UserRole, actor_id: int, appointment_id: int) -> Appointment:
        """Appointment the actor may see. Missing and not-yours look identical to non-admins."""
        appointment = AppointmentRepository.get_by_id(db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")

        if actor_role == UserRole.ADMIN:
            return appointment

        if actor_role == UserRole.PATIENT and appointment.patient_id == actor_id:
            return appointment

        if actor_role == UserRole.DOCTOR:
            if appointment.doctor is not None and appointment.doctor.user_id == actor_id:
                return appointment
            if appointment.patient_id == actor_id:
                return appointment

        raise NotFoundError("Appointment not found")

    @staticmethod
    def get_appointment(db: Session, actor_role: UserRole, actor_id: int, appointment_id: int) -> Appointment:
        return AppointmentService._get_visible(db, actor_role, actor_id, appointment_id)

    @staticmethod
    def _apply_status(db: Session, appointment: Appointment, new_status: AppointmentStatus) -> Appointment:
        previous = appointment.status
        try:
            AppointmentRepository.update_status(db, appointment, new_status)
            db.commit()
        except IntegrityError:
            # Reviving a cancelled booking whose slot has been taken again
            db.rollback()
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        logger.info(f"Appointment {appointment.id}: {previous.value} -> {new_status.value}")
        return AppointmentRepository.get_by_id(db, appointment.id)

    @staticmethod
    def transition_status(
        db: Session,
        actor_role: UserRole,
        actor_id: int,
        appointment_id: int,
        new_status: Union[str, AppointmentStatus],
    ) -> Appointment:
        """
        Move an appointment to `new_status` on behalf of an actor.

        - DOCTOR: PENDING -> ACCEPTED or REJECTED, only on their own appointments
        - PATIENT: PENDING -> CANCELLED, only on appointments they booked
        - ADMIN: any status, from any status
        """
        target = AppointmentService.parse_status(new_status)

        if actor_role == UserRole.ADMIN:
            appointment = AppointmentService._get_visible(db, actor_role, actor_id, appointment_id)
            return AppointmentService._apply_status(db, appointment, target)

        if actor_role == UserRole.DOCTOR:
            doctor = DoctorRepository.get_by_user_id(db, actor_id)
            if not doctor:
                raise ForbiddenError("Access denied. Doctor only.")
            appointment = AppointmentRepository.get_by_id(db, appointment_id)
            if not appointment or appointment.doctor_id != doctor.id:
                raise NotFoundError("Appointment not found")
        elif actor_role == UserRole.PATIENT:
            appointment = AppointmentRepository.get_by_id(db, appointment_id)
            if not appointment or appointment.patient_id != actor_id:
                raise NotFoundError("Appointment not found")
        else:
            raise ForbiddenError("Access denied")

        if appointment.status != AppointmentStatus.PENDING or target not in AppointmentService.TRANSITIONS[appointment.status]:
            if actor_role == UserRole.PATIENT:
                raise InvalidStateError("Can only cancel pending appointments")
            raise InvalidStateError(
                f"Cannot change a {appointment.status.value.lower()} appointment to {target.value.lower()}"
            )

        if target not in AppointmentService.ROLE_TARGETS[actor_role]:
            raise ForbiddenError(f"Access denied. {actor_role.value.title()}s cannot set status {target.value}")

        return AppointmentService._apply_status(db, appointment, target)

    @staticmethod
    def cancel_appointment(db: Session, patient_id: int, appointment_id: int) -> Appointment:
        return AppointmentService.transition_status(
            db, UserRole.PATIENT, patient_id, appointment_id, AppointmentStatus.CANCELLED
        )

    @staticmethod
    def get_patient_appointments(db: Session, patient_id: int) -> List[Appointment]:
        return AppointmentRepository.find_by_patient(db, patient_id)

    @staticmethod
    def get_doctor_appointments(db: Session, doctor_user_id: int) -> List[Appointment]:
        doctor = DoctorRepository.get_by_user_id(db, doctor_user_id)
        if not doctor:
            raise ForbiddenError("Access denied. Doctor only.")
        return AppointmentRepository.find_by_doctor(db, doctor.id)

    @staticmethod
    def get_all_appointments(db: Session) -> List[Appointment]:
        return AppointmentRepository.list_all(db)

    @staticmethod
    def get_available_slots(db: Session, doctor_id: int, appointment_date: DateInput) -> dict:
        doctor = DoctorRepository.get_by_id(db, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")

        if not doctor.available:
            raise InvalidStateError("Doctor not available")

        config = AvailabilityService.get_config(db, doctor.user_id)
        day = AvailabilityService.ensure_bookable(db, doctor.user_id, appointment_date, config=config)

        booked = AppointmentRepository.find_by_doctor(
            db, doctor.id, date_range=(day, day), exclude_status=AppointmentStatus.CANCELLED
        )
        booked_times = {apt.time for apt in booked}
        all_slots = config.get("time_slots") or []

        return {
            "doctor_id": doctor.id,
            "date": day.isoformat(),
            "total_slots": len(all_slots),
            "booked_slots": len(booked_times),
            "available_slots": [slot for slot in all_slots if slot not in booked_times],
        }
