from sqlalchemy import Column, Integer, Boolean, DateTime, JSON, ForeignKey, func
from sqlalchemy.orm import relationship
from medicare.config.database import Base

DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]
DEFAULT_TIME_SLOTS = ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"]


class AvailabilityConfig(Base):
    """Per-doctor booking calendar, keyed by the doctor's owning user."""
    __tablename__ = "doctor_availability"

    owner_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    enabled = Column(Boolean, nullable=False, default=True)
    working_days = Column(JSON, nullable=False, default=lambda: list(DEFAULT_WORKING_DAYS))  # 0=Sunday..6=Saturday
    disabled_dates = Column(JSON, nullable=False, default=list)  # YYYY-MM-DD strings
    time_slots = Column(JSON, nullable=False, default=lambda: list(DEFAULT_TIME_SLOTS))  # HH:MM labels
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="availability")

    def to_dict(self):
        return {
            "enabled": self.enabled,
            "working_days": list(self.working_days or []),
            "disabled_dates": list(self.disabled_dates or []),
            "time_slots": list(self.time_slots or []),
        }
