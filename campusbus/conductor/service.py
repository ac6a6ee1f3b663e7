import logging
from typing import Dict, Any
from sqlalchemy.orm import Session, joinedload

from campusbus.bookings.ledger import SeatLedger
from campusbus.bookings.schemas import AttendanceStatus, BookingStatus
from campusbus.clock import Clock, system_clock
from campusbus.config import settings
from campusbus.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from campusbus.models import Booking, Trip, User

logger = logging.getLogger(__name__)


class AttendanceService:
    """Conductor-side view of a trip and attendance marking"""

    def __init__(self, db: Session, clock: Clock = None):
        self.db = db
        self.clock = clock or system_clock

    def mark_status(self, conductor: User, booking_id: int, status: str) -> Booking:
        """Record a passenger as attended or absent.

        Marking opens ATTENDANCE_WINDOW_MINUTES before departure and stays
        open after the bus has left.
        """
        valid = [s.value for s in AttendanceStatus]
        if status not in valid:
            raise BadRequestError('Invalid status. Must be "attended" or "absent".')

        booking = self.db.query(Booking).options(
            joinedload(Booking.trip)
        ).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking not found")

        trip = booking.trip
        if not trip or trip.conductor_id is None or trip.conductor_id != conductor.id:
            raise ForbiddenError("Not authorized to update this booking")

        if booking.status == BookingStatus.CANCELLED.value:
            raise ConflictError("This booking has been cancelled")

        window = settings.ATTENDANCE_WINDOW_MINUTES
        if self.clock.minutes_until(trip.departure_time) > window:
            raise ConflictError(f"Attendance can only be started {window} minutes before departure.")

        booking.status = status
        self.db.commit()
        self.db.refresh(booking)

        logger.info("Conductor %s marked booking %s as %s", conductor.id, booking.id, status)
        return booking

    def get_trip_roster(self, conductor: User, trip_id: int) -> Dict[str, Any]:
        """Seat layout of a trip annotated with each passenger's booking"""
        trip = self.db.query(Trip).filter(Trip.id == trip_id).first()
        if not trip:
            raise NotFoundError("Bus not found")

        if trip.conductor_id is None or trip.conductor_id != conductor.id:
            raise ForbiddenError("Not authorized to view bookings for this bus")

        bookings = self.db.query(Booking).options(
            joinedload(Booking.user)
        ).filter(
            Booking.trip_id == trip.id,
            Booking.status != BookingStatus.CANCELLED.value
        ).all()

        seats = SeatLedger(trip.total_seats, []).seat_map()
        by_number = {seat["number"]: seat for seat in seats}
        for booking in bookings:
            seat = by_number.get(booking.seat_number)
            if seat:
                seat["status"] = booking.status
                seat["booking_id"] = booking.id
                seat["user_name"] = booking.user.name if booking.user else "N/A"

        return {
            "bus": {"id": trip.id, "bus_number": trip.bus_number, "route": trip.route},
            "seats": seats,
        }
