from pydantic import BaseModel
from typing import Optional

class DashboardStats(BaseModel):
    total_buses: int
    total_bookings: int
    total_waiting: int
    total_capacity: int
    occupancy_rate: int

class ConductorSummary(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True
