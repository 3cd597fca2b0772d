from pydantic import BaseModel, Field
from typing import List, Optional

class AvailabilityUpdate(BaseModel):
    enabled: Optional[bool] = None
    working_days: Optional[List[int]] = Field(None, description="0=Sunday .. 6=Saturday")
    disabled_dates: Optional[List[str]] = Field(None, description="Format: YYYY-MM-DD")
    time_slots: Optional[List[str]] = Field(None, description="Format: HH:MM")

class AvailabilityResponse(BaseModel):
    enabled: bool
    working_days: List[int]
    disabled_dates: List[str]
    time_slots: List[str]

class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: str
    total_slots: int
    booked_slots: int
    available_slots: List[str]
