from sqlalchemy import Column, Integer, String, DateTime, Date, Text, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from medicare.config.database import Base

class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # One live booking per (doctor, day, time); cancelled rows free the slot
        Index(
            "uq_appointments_live_slot",
            "doctor_id", "slot_date", "time",
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    appointment_date = Column(DateTime, nullable=False)  # UTC, calendar day + time
    slot_date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM
    reason = Column(Text, nullable=False, default="")
    status = Column(Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.PENDING)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = relationship("User", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    payment = relationship(
        "Payment",
        back_populates="appointment",
        uselist=False,
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Appointment {self.id} doctor={self.doctor_id} on {self.slot_date} {self.time} [{self.status.value if self.status else None}]>"
