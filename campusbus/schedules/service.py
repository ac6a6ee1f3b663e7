import logging
from typing import Dict, List
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from campusbus.bookings.booking_service import BookingService
from campusbus.bookings.ledger import SeatLedger
from campusbus.clock import Clock, minutes_since_midnight, system_clock
from campusbus.exceptions import BadRequestError, ConflictError, NotFoundError
from campusbus.models import Booking, Trip, User, PLACEHOLDER_ROUTE, OCCUPIED_STATUSES
from campusbus.schedules.schemas import TripCreate, TripUpdate

logger = logging.getLogger(__name__)


class ScheduleService:
    """Bus schedules and fleet assets"""

    def __init__(self, db: Session, clock: Clock = None, notifier=None):
        self.db = db
        self.clock = clock or system_clock
        self.notifier = notifier

    def get_trip(self, trip_id: int) -> Trip:
        trip = self.db.query(Trip).filter(Trip.id == trip_id).first()
        if not trip:
            raise NotFoundError("Bus not found")
        return trip

    def booked_counts(self, trip_ids: List[int] = None) -> Dict[int, int]:
        """Occupied seat count per trip"""
        query = self.db.query(Booking.trip_id, func.count(Booking.id)).filter(
            Booking.status.in_(OCCUPIED_STATUSES)
        )
        if trip_ids is not None:
            query = query.filter(Booking.trip_id.in_(trip_ids))
        return dict(query.group_by(Booking.trip_id).all())

    def summarize(self, trips: List[Trip]) -> List[Dict]:
        """Listing rows with booked-seat counts"""
        counts = self.booked_counts([trip.id for trip in trips])
        return [
            {
                "id": trip.id,
                "bus_number": trip.bus_number,
                "route": trip.route,
                "departure_time": trip.departure_time,
                "arrival_time": trip.arrival_time,
                "total_seats": trip.total_seats,
                "booked_seats": counts.get(trip.id, 0),
                "driver": trip.driver,
                "conductor": trip.conductor,
            }
            for trip in trips
        ]

    def list_upcoming_trips(self) -> List[Trip]:
        """Real trips that have not departed yet (student view)"""
        trips = self.db.query(Trip).options(joinedload(Trip.conductor)).all()
        return [
            trip for trip in trips
            if not trip.is_placeholder and self.clock.is_upcoming(trip.departure_time)
        ]

    def list_active_records(self) -> List[Trip]:
        """Upcoming trips plus placeholder assets (admin view)"""
        trips = self.db.query(Trip).options(joinedload(Trip.conductor)).all()
        return [
            trip for trip in trips
            if trip.is_placeholder or self.clock.is_upcoming(trip.departure_time)
        ]

    def get_trip_detail(self, trip_id: int) -> Dict:
        """Trip with its seat layout"""
        trip = self.get_trip(trip_id)
        ledger = SeatLedger.for_trip(self.db, trip)
        return {
            "trip": trip,
            "seats": ledger.seat_map(),
            "available_count": ledger.free_count(),
            "booked_count": ledger.occupied_count(),
        }

    def get_conductor_trip(self, conductor: User) -> Trip:
        """The trip a conductor should be working next"""
        trips = self.db.query(Trip).filter(Trip.conductor_id == conductor.id).all()
        if not trips:
            raise NotFoundError("You are not assigned to any bus.")

        trips.sort(key=lambda t: minutes_since_midnight(t.departure_time))
        real_trips = [t for t in trips if not t.is_placeholder]

        for trip in real_trips:
            if self.clock.is_upcoming(trip.departure_time):
                return trip
        return real_trips[0] if real_trips else trips[0]

    def create_trip(self, data: TripCreate) -> Trip:
        self._check_duplicate(data.bus_number, data.departure_time, data.route)

        if data.conductor_id is not None:
            self._check_conductor(data.conductor_id)

        trip = Trip(**data.model_dump())
        self.db.add(trip)
        self.db.commit()
        self.db.refresh(trip)

        logger.info("Created trip %s (bus %s at %s)", trip.id, trip.bus_number, trip.departure_time)
        return trip

    def update_trip(self, trip_id: int, data: TripUpdate) -> Trip:
        trip = self.get_trip(trip_id)
        update_data = data.model_dump(exclude_unset=True)

        if "conductor_id" in update_data and update_data["conductor_id"] is not None:
            self._check_conductor(update_data["conductor_id"])

        if update_data.keys() & {"bus_number", "departure_time", "route"}:
            self._check_duplicate(
                update_data.get("bus_number") or trip.bus_number,
                update_data.get("departure_time") or trip.departure_time,
                update_data.get("route") or trip.route,
                exclude_id=trip.id
            )

        added_seats = 0
        if "total_seats" in update_data and update_data["total_seats"] is not None:
            ledger = SeatLedger.for_trip(self.db, trip)
            highest = max(ledger.occupied_seats, default=0)
            if update_data["total_seats"] < highest:
                raise ConflictError(f"Seat {highest} is booked; total seats cannot go below it")
            added_seats = update_data["total_seats"] - trip.total_seats

        for field, value in update_data.items():
            # Only the conductor may be cleared
            if value is None and field != "conductor_id":
                continue
            setattr(trip, field, value)

        self.db.commit()
        self.db.refresh(trip)

        if added_seats > 0:
            self._promote_into_new_seats(trip)
        return trip

    def delete_trip(self, trip_id: int) -> None:
        """Delete one schedule together with its bookings and waiting list"""
        trip = self.get_trip(trip_id)
        self.db.delete(trip)
        self.db.commit()
        logger.info("Deleted trip %s", trip_id)

    def delete_fleet_asset(self, bus_number: str) -> int:
        """Delete every schedule (real and placeholder) of a physical bus"""
        trips = self.db.query(Trip).filter(Trip.bus_number == bus_number).all()
        if not trips:
            raise NotFoundError(f"Physical Bus Asset {bus_number} not found.")

        for trip in trips:
            self.db.delete(trip)
        self.db.commit()

        logger.info("Deleted bus %s and %d schedules", bus_number, len(trips))
        return len(trips)

    def _check_duplicate(self, bus_number: str, departure_time: str, route: str, exclude_id: int = None):
        query = self.db.query(Trip).filter(
            Trip.bus_number == bus_number,
            Trip.departure_time == departure_time
        )
        if exclude_id is not None:
            query = query.filter(Trip.id != exclude_id)

        # Placeholders may repeat; real schedules may not
        if query.first() and route != PLACEHOLDER_ROUTE:
            raise ConflictError(
                f"A schedule for Bus {bus_number} departing at {departure_time} already exists."
            )

    def _promote_into_new_seats(self, trip: Trip):
        """Hand seats added to a trip to its waiting list, oldest entry first"""
        booking_service = BookingService(self.db, self.clock, self.notifier)
        promoted = 0
        while booking_service.promote_waiting_list(trip.id) is not None:
            promoted += 1
        if promoted:
            logger.info("Promoted %d waiting users into new seats on trip %s", promoted, trip.id)
        self.db.refresh(trip)

    def _check_conductor(self, user_id: int):
        conductor = self.db.query(User).filter(User.id == user_id).first()
        if not conductor or conductor.role != "conductor":
            raise BadRequestError("Assigned conductor must be a conductor account")
