from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
import re

from campusbus.bookings.schemas import SeatInfo

TIME_PATTERN = re.compile(r"^(0?[1-9]|1[0-2]):[0-5][0-9] (AM|PM)$")

def _check_time(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if not TIME_PATTERN.match(v):
        raise ValueError('Time must look like "8:30 AM"')
    return v

class ConductorInfo(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True

class TripBase(BaseModel):
    bus_number: str = Field(..., min_length=1)
    route: str = Field(..., min_length=1)
    driver: str = Field(..., min_length=1)
    total_seats: int = Field(40, ge=1, le=100)
    departure_time: str = Field(..., description='12-hour clock, e.g. "8:30 AM"')
    arrival_time: str = Field(..., description='12-hour clock, e.g. "9:15 AM"')

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def validate_times(cls, v):
        return _check_time(v)

class TripCreate(TripBase):
    conductor_id: Optional[int] = None

class TripUpdate(BaseModel):
    """Partial update; sending "conductor_id": null unassigns the conductor"""
    bus_number: Optional[str] = Field(None, min_length=1)
    route: Optional[str] = Field(None, min_length=1)
    driver: Optional[str] = Field(None, min_length=1)
    total_seats: Optional[int] = Field(None, ge=1, le=100)
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    conductor_id: Optional[int] = None

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def validate_times(cls, v):
        return _check_time(v)

class Trip(BaseModel):
    id: int
    bus_number: str
    route: str
    driver: str
    total_seats: int
    departure_time: str
    arrival_time: str
    conductor_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TripSummary(BaseModel):
    """Trip listing row with its live booked-seat count"""
    id: int
    bus_number: str
    route: str
    departure_time: str
    arrival_time: str
    total_seats: int
    booked_seats: int
    driver: Optional[str] = None
    conductor: Optional[ConductorInfo] = None

class TripDetail(BaseModel):
    trip: Trip
    seats: List[SeatInfo]
    available_count: int
    booked_count: int

class FleetDeleteResult(BaseModel):
    message: str
    deleted_schedules_count: int
