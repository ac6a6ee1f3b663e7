from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    CONFIRMED = "confirmed"
    ATTENDED = "attended"
    ABSENT = "absent"
    CANCELLED = "cancelled"

class AttendanceStatus(str, Enum):
    """Statuses a conductor may record"""
    ATTENDED = "attended"
    ABSENT = "absent"

# Request Models
class BookingCreate(BaseModel):
    """Request to book a seat on a trip"""
    trip_id: int = Field(..., description="Trip to book")
    seat_number: int = Field(..., description="Seat number, starting at 1")

class WaitingListJoin(BaseModel):
    trip_id: int

class AttendanceUpdate(BaseModel):
    # Plain string so an unknown value reaches the service and fails as 400
    status: str

# Response Models
class BookingResponse(BaseModel):
    id: int
    user_id: int
    trip_id: int
    bus_number: str
    route: str
    departure_time: str
    seat_number: int
    status: BookingStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class WaitingListEntryResponse(BaseModel):
    id: int
    trip_id: int
    bus_number: str
    route: str
    departure_time: str
    position: int = Field(..., description="1-based place in the queue")
    created_at: Optional[datetime] = None

class MessageResponse(BaseModel):
    message: str

class SeatInfo(BaseModel):
    id: str
    row: int
    number: int
    status: str
    booking_id: Optional[int] = None
    user_name: Optional[str] = None

class SeatMap(BaseModel):
    seats: List[SeatInfo]
    available_count: int
    booked_count: int
