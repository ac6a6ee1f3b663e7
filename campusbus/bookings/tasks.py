import logging
from typing import Callable
from sqlalchemy.orm import Session

from campusbus.bookings.booking_service import BookingService

logger = logging.getLogger(__name__)


def promote_waiting_list_task(session_factory: Callable[[], Session], trip_id: int, notifier=None):
    """Run waiting-list promotion outside the request that freed the seat.

    Failures are logged and swallowed; the cancellation that triggered this
    has already been committed.
    """
    db = session_factory()
    try:
        BookingService(db, notifier=notifier).promote_waiting_list(trip_id)
    except Exception:
        db.rollback()
        logger.exception("Waiting list promotion failed for trip %s", trip_id)
    finally:
        db.close()
