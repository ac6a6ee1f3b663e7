from pydantic import BaseModel
from typing import List

from campusbus.bookings.schemas import SeatInfo

class RosterTrip(BaseModel):
    id: int
    bus_number: str
    route: str

class TripRoster(BaseModel):
    bus: RosterTrip
    seats: List[SeatInfo]
