from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from medicare.config.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    specialty = Column(String(100), nullable=False, default="General Physician")
    experience = Column(Integer, nullable=False, default=0)
    fee = Column(Numeric(10, 2), nullable=False, default=0)
    approved = Column(Boolean, nullable=False, default=False)
    available = Column(Boolean, nullable=False, default=True)
    photo = Column(String(500))
    about = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="doctor")
    appointments = relationship(
        "Appointment",
        back_populates="doctor",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Doctor {self.id} ({self.specialty})>"
