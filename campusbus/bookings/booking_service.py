import logging
from collections import defaultdict
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusbus.bookings.ledger import SeatLedger
from campusbus.bookings.schemas import BookingStatus
from campusbus.clock import Clock, system_clock
from campusbus.config import settings
from campusbus.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from campusbus.models import Booking, Trip, User, WaitingListEntry, OCCUPIED_STATUSES
from campusbus import notifications

logger = logging.getLogger(__name__)


class BookingService:
    """Seat bookings and the per-trip waiting list"""

    def __init__(self, db: Session, clock: Clock = None, notifier=None):
        self.db = db
        self.clock = clock or system_clock
        self.notifier = notifier or notifications.email_notifier

    def create_booking(self, user: User, trip_id: int, seat_number: int) -> Booking:
        """Book a specific seat for the user"""

        trip = self._get_bookable_trip(trip_id)

        if seat_number < 1 or seat_number > trip.total_seats:
            raise BadRequestError(f"Seat number must be between 1 and {trip.total_seats}")

        ledger = SeatLedger.for_trip(self.db, trip)
        if not ledger.is_seat_free(seat_number):
            raise ConflictError("This seat is already booked")

        if self._get_active_booking(user.id, trip.id):
            raise ConflictError("You already have a booking on this bus")

        booking = self._new_booking(user.id, trip, seat_number)
        self.db.add(booking)

        # A direct booking supersedes any place in the queue
        self.db.query(WaitingListEntry).filter(
            WaitingListEntry.user_id == user.id,
            WaitingListEntry.trip_id == trip.id
        ).delete(synchronize_session=False)

        self._commit_or_conflict("This seat is already booked")
        self.db.refresh(booking)

        logger.info("User %s booked seat %s on trip %s", user.id, seat_number, trip.id)
        self._notify(user, *notifications.booking_confirmed_message(
            user.name, trip.bus_number, trip.route, seat_number, trip.departure_time
        ))
        return booking

    def cancel_booking(self, user: User, booking_id: int) -> Booking:
        """Cancel the user's booking.

        The row is kept with status "cancelled", which frees the seat. Callers
        are expected to run ``promote_waiting_list`` for the trip afterwards.
        """

        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking not found")

        if booking.user_id != user.id:
            raise UnauthorizedError("Not authorized to cancel this booking")

        if booking.status == BookingStatus.CANCELLED.value:
            raise ConflictError("Booking is already cancelled")

        if booking.status in (BookingStatus.ATTENDED.value, BookingStatus.ABSENT.value):
            raise ConflictError("Cannot cancel booking after attendance has been marked by the conductor.")

        cutoff = settings.CANCELLATION_CUTOFF_MINUTES
        if self.clock.minutes_until(booking.departure_time) < cutoff:
            raise ConflictError(f"Cannot cancel booking less than {cutoff} minutes before departure.")

        booking.status = BookingStatus.CANCELLED.value
        self.db.commit()
        self.db.refresh(booking)

        logger.info("User %s cancelled booking %s (trip %s, seat %s)", user.id, booking.id, booking.trip_id, booking.seat_number)
        self._notify(user, *notifications.booking_cancelled_message(
            user.name, booking.bus_number, booking.seat_number
        ))
        return booking

    def join_waiting_list(self, user: User, trip_id: int) -> WaitingListEntry:
        """Queue the user for a full trip"""

        trip = self._get_bookable_trip(trip_id)

        ledger = SeatLedger.for_trip(self.db, trip)
        if not ledger.is_full():
            raise ConflictError("This bus is not full. Please book a seat directly.")

        already_waiting = self.db.query(WaitingListEntry).filter(
            WaitingListEntry.user_id == user.id,
            WaitingListEntry.trip_id == trip.id
        ).first()
        if already_waiting:
            raise ConflictError("You are already on the waiting list for this bus")

        if self._get_active_booking(user.id, trip.id):
            raise ConflictError("You already have a confirmed booking on this bus")

        entry = WaitingListEntry(user_id=user.id, trip_id=trip.id)
        self.db.add(entry)
        self._commit_or_conflict("You are already on the waiting list for this bus")
        self.db.refresh(entry)

        logger.info("User %s joined the waiting list for trip %s", user.id, trip.id)
        return entry

    def leave_waiting_list(self, user: User, trip_id: int) -> None:
        entry = self.db.query(WaitingListEntry).filter(
            WaitingListEntry.user_id == user.id,
            WaitingListEntry.trip_id == trip_id
        ).first()
        if not entry:
            raise NotFoundError("You are not on the waiting list for this bus")

        self.db.delete(entry)
        self.db.commit()

    def promote_waiting_list(self, trip_id: int) -> Optional[Booking]:
        """Give the lowest free seat to the longest-waiting user.

        Promotes at most one entry per call and does nothing when the trip is
        gone, is a placeholder, is still full or has nobody waiting.
        """

        trip = self.db.query(Trip).filter(Trip.id == trip_id).first()
        if not trip or trip.is_placeholder:
            return None

        seat_number = SeatLedger.for_trip(self.db, trip).find_lowest_free_seat()
        if seat_number is None:
            return None

        queue = self.db.query(WaitingListEntry).filter(
            WaitingListEntry.trip_id == trip.id
        ).order_by(WaitingListEntry.created_at, WaitingListEntry.id).all()

        for entry in queue:
            if self._get_active_booking(entry.user_id, trip.id):
                # Stale entry: the user already got a seat some other way
                self.db.delete(entry)
                continue

            user = entry.user
            booking = self._new_booking(entry.user_id, trip, seat_number)
            self.db.add(booking)
            self.db.delete(entry)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.warning("Seat %s on trip %s was taken during promotion", seat_number, trip.id)
                return None
            self.db.refresh(booking)

            logger.info("Promoted user %s from the waiting list to seat %s on trip %s", booking.user_id, seat_number, trip.id)
            if user:
                self._notify(user, *notifications.waiting_list_promoted_message(
                    user.name, trip.bus_number, trip.route, seat_number, trip.departure_time
                ))
            return booking

        # Only stale entries were found
        self.db.commit()
        return None

    def get_user_bookings(self, user: User) -> List[Booking]:
        """Get all bookings for a user, newest first"""
        return self.db.query(Booking).filter(
            Booking.user_id == user.id
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def get_user_waiting_list(self, user: User) -> List[Tuple[WaitingListEntry, int]]:
        """Get the user's waiting-list entries with their 1-based queue position"""
        entries = self.db.query(WaitingListEntry).filter(
            WaitingListEntry.user_id == user.id
        ).order_by(WaitingListEntry.created_at, WaitingListEntry.id).all()

        if not entries:
            return []

        queue = self.db.query(WaitingListEntry.id, WaitingListEntry.trip_id).filter(
            WaitingListEntry.trip_id.in_([entry.trip_id for entry in entries])
        ).order_by(WaitingListEntry.created_at, WaitingListEntry.id).all()

        seen = defaultdict(int)
        positions = {}
        for row in queue:
            seen[row.trip_id] += 1
            positions[row.id] = seen[row.trip_id]

        return [(entry, positions[entry.id]) for entry in entries]

    def _get_bookable_trip(self, trip_id: int) -> Trip:
        trip = self.db.query(Trip).filter(Trip.id == trip_id).first()
        if not trip or trip.is_placeholder:
            raise NotFoundError("Bus not found")
        return trip

    def _get_active_booking(self, user_id: int, trip_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(
            Booking.user_id == user_id,
            Booking.trip_id == trip_id,
            Booking.status.in_(OCCUPIED_STATUSES)
        ).first()

    def _new_booking(self, user_id: int, trip: Trip, seat_number: int) -> Booking:
        return Booking(
            user_id=user_id,
            trip_id=trip.id,
            bus_number=trip.bus_number,
            route=trip.route,
            departure_time=trip.departure_time,
            seat_number=seat_number,
            status=BookingStatus.CONFIRMED.value
        )

    def _commit_or_conflict(self, message: str):
        # The partial unique indexes settle races between concurrent requests
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(message)

    def _notify(self, user: User, subject: str, body: str):
        try:
            self.notifier.send(user.email, subject, body)
        except Exception:
            logger.exception("Notification %r to user %s failed", subject, user.id)
