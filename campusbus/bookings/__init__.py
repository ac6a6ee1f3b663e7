"""
Seat booking and waiting list.

- ledger.py: seat occupancy of a trip (lowest free seat, counts, seat map)
- booking_service.py: booking creation and cancellation, waiting list and promotion
- tasks.py: background promotion run after a cancellation
- router.py: student-facing endpoints
- schemas.py: request and response models
"""

from .ledger import SeatLedger
from .booking_service import BookingService
from .schemas import BookingStatus, AttendanceStatus

__all__ = [
    "SeatLedger",
    "BookingService",
    "BookingStatus",
    "AttendanceStatus",
]
