from medicare.models.user import User, UserRole
from medicare.models.doctor import Doctor
from medicare.models.availability import AvailabilityConfig
from medicare.models.appointment import Appointment, AppointmentStatus
from medicare.models.payment import Payment, PaymentMethod, PaymentStatus

__all__ = [
    "User", "UserRole", "Doctor", "AvailabilityConfig",
    "Appointment", "AppointmentStatus",
    "Payment", "PaymentMethod", "PaymentStatus",
]
