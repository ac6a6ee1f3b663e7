from typing import Dict, Iterable, List, Optional, Any
from sqlalchemy.orm import Session

from campusbus.models import Booking, Trip, OCCUPIED_STATUSES

SEATS_PER_ROW = 4


class SeatLedger:
    """Seat occupancy of a single trip"""

    def __init__(self, total_seats: int, occupied_seats: Iterable[int]):
        self.total_seats = total_seats
        self.occupied_seats = set(occupied_seats)

    @classmethod
    def for_trip(cls, db: Session, trip: Trip) -> "SeatLedger":
        """Build the ledger from the trip's occupied bookings"""
        rows = db.query(Booking.seat_number).filter(
            Booking.trip_id == trip.id,
            Booking.status.in_(OCCUPIED_STATUSES)
        ).all()
        return cls(trip.total_seats, [row.seat_number for row in rows])

    def find_lowest_free_seat(self) -> Optional[int]:
        for seat_number in range(1, self.total_seats + 1):
            if seat_number not in self.occupied_seats:
                return seat_number
        return None

    def is_seat_free(self, seat_number: int) -> bool:
        if seat_number < 1 or seat_number > self.total_seats:
            return False
        return seat_number not in self.occupied_seats

    def occupied_count(self) -> int:
        return len(self.occupied_seats)

    def free_count(self) -> int:
        return max(self.total_seats - self.occupied_count(), 0)

    def is_full(self) -> bool:
        return self.occupied_count() >= self.total_seats

    def seat_map(self) -> List[Dict[str, Any]]:
        """Seat layout, four seats to a row"""
        seats = []
        for seat_number in range(1, self.total_seats + 1):
            row = (seat_number - 1) // SEATS_PER_ROW + 1
            col = (seat_number - 1) % SEATS_PER_ROW + 1
            seats.append({
                "id": f"{row}-{col}",
                "row": row,
                "number": seat_number,
                "status": "available" if seat_number not in self.occupied_seats else "booked",
            })
        return seats
