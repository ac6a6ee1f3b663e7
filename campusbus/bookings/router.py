from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from campusbus.auth.dependencies import require_student_or_admin
from campusbus.bookings.booking_service import BookingService
from campusbus.bookings.schemas import (
    BookingCreate, BookingResponse, WaitingListJoin, WaitingListEntryResponse, MessageResponse
)
from campusbus.bookings.tasks import promote_waiting_list_task
from campusbus.clock import Clock, get_clock
from campusbus.database import get_db, get_session_factory
from campusbus.exceptions import ServiceError
from campusbus.notifications import get_notifier

router = APIRouter()

def get_booking_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier = Depends(get_notifier)
) -> BookingService:
    return BookingService(db, clock, notifier)

@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreate,
    current_user = Depends(require_student_or_admin),
    service: BookingService = Depends(get_booking_service)
):
    """Book a seat on a trip"""
    try:
        return service.create_booking(current_user, request.trip_id, request.seat_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/mybookings", response_model=List[BookingResponse])
def get_my_bookings(
    current_user = Depends(require_student_or_admin),
    service: BookingService = Depends(get_booking_service)
):
    """The logged-in user's bookings, newest first"""
    return service.get_user_bookings(current_user)

@router.post("/waitlist", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def join_waiting_list(
    request: WaitingListJoin,
    current_user = Depends(require_student_or_admin),
    service: BookingService = Depends(get_booking_service)
):
    """Join the waiting list of a full trip"""
    try:
        service.join_waiting_list(current_user, request.trip_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Successfully joined waiting list")

@router.get("/waitlist", response_model=List[WaitingListEntryResponse])
def get_my_waiting_list(
    current_user = Depends(require_student_or_admin),
    service: BookingService = Depends(get_booking_service)
):
    """Trips the user is queued for, with queue position"""
    return [
        WaitingListEntryResponse(
            id=entry.id,
            trip_id=entry.trip_id,
            bus_number=entry.trip.bus_number,
            route=entry.trip.route,
            departure_time=entry.trip.departure_time,
            position=position,
            created_at=entry.created_at
        )
        for entry, position in service.get_user_waiting_list(current_user)
    ]

@router.delete("/waitlist/{trip_id}", response_model=MessageResponse)
def leave_waiting_list(
    trip_id: int,
    current_user = Depends(require_student_or_admin),
    service: BookingService = Depends(get_booking_service)
):
    """Leave a trip's waiting list"""
    try:
        service.leave_waiting_list(current_user, trip_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Removed from waiting list")

@router.delete("/{booking_id}", response_model=MessageResponse)
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    current_user = Depends(require_student_or_admin),
    service: BookingService = Depends(get_booking_service),
    session_factory = Depends(get_session_factory)
):
    """Cancel a booking; the freed seat goes to the head of the waiting list"""
    try:
        booking = service.cancel_booking(current_user, booking_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    background_tasks.add_task(promote_waiting_list_task, session_factory, booking.trip_id)
    return MessageResponse(message="Booking cancelled successfully")
