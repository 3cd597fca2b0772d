from pydantic import BaseModel

class StatsResponse(BaseModel):
    total_users: int
    total_doctors: int
    total_appointments: int
    pending_appointments: int
