from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from campusbus.auth.dependencies import require_conductor
from campusbus.bookings.schemas import AttendanceUpdate, MessageResponse
from campusbus.clock import Clock, get_clock
from campusbus.conductor.schemas import TripRoster
from campusbus.conductor.service import AttendanceService
from campusbus.database import get_db
from campusbus.exceptions import ServiceError

router = APIRouter()

@router.get("/bus/{trip_id}/bookings", response_model=TripRoster)
def get_trip_bookings(
    trip_id: int,
    conductor = Depends(require_conductor),
    db: Session = Depends(get_db)
):
    """Seat-by-seat passenger list for the conductor's trip"""
    try:
        return AttendanceService(db).get_trip_roster(conductor, trip_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.put("/bookings/{booking_id}/status", response_model=MessageResponse)
def update_booking_status(
    booking_id: int,
    update: AttendanceUpdate,
    conductor = Depends(require_conductor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Mark a passenger as attended or absent"""
    try:
        booking = AttendanceService(db, clock).mark_status(conductor, booking_id, update.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message=f"Booking marked as {booking.status}")
