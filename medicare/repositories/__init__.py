from medicare.repositories.user_repository import UserRepository
from medicare.repositories.doctor_repository import DoctorRepository
from medicare.repositories.availability_repository import AvailabilityRepository
from medicare.repositories.appointment_repository import AppointmentRepository
from medicare.repositories.payment_repository import PaymentRepository

__all__ = [
    "UserRepository",
    "DoctorRepository",
    "AvailabilityRepository",
    "AppointmentRepository",
    "PaymentRepository",
]
