import pytest

from campusbus.bookings.booking_service import BookingService
from campusbus.conductor.service import AttendanceService
from campusbus.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError

from tests.conftest import make_trip, make_user


@pytest.fixture
def setup(db, clock, notifier):
    conductor = make_user(db, "Ramesh Kumar", role="conductor", phone="9876543210")
    trip = make_trip(db, departure_time="10:00 AM", conductor=conductor)
    student = make_user(db, "Asha Verma")
    booking = BookingService(db, clock, notifier).create_booking(student, trip.id, 5)
    return conductor, trip, booking


def test_marking_opens_ten_minutes_before_departure(db, clock, setup):
    conductor, trip, booking = setup
    service = AttendanceService(db, clock)

    clock.set(9, 45)
    with pytest.raises(ConflictError, match="10 minutes"):
        service.mark_status(conductor, booking.id, "attended")

    clock.set(9, 51)
    marked = service.mark_status(conductor, booking.id, "attended")
    assert marked.status == "attended"


def test_marking_stays_open_after_departure(db, clock, setup):
    conductor, trip, booking = setup
    clock.set(11, 30)

    marked = AttendanceService(db, clock).mark_status(conductor, booking.id, "absent")
    assert marked.status == "absent"


def test_only_assigned_conductor_may_mark(db, clock, setup):
    conductor, trip, booking = setup
    other = make_user(db, "Suresh Meena", role="conductor", phone="9876501234")
    clock.set(9, 55)

    with pytest.raises(ForbiddenError):
        AttendanceService(db, clock).mark_status(other, booking.id, "attended")


def test_unassigned_trip_cannot_be_marked(db, clock, notifier):
    conductor = make_user(db, "Ramesh Kumar", role="conductor", phone="9876543210")
    trip = make_trip(db, departure_time="10:00 AM")
    student = make_user(db, "Asha Verma")
    booking = BookingService(db, clock, notifier).create_booking(student, trip.id, 1)
    clock.set(9, 55)

    with pytest.raises(ForbiddenError):
        AttendanceService(db, clock).mark_status(conductor, booking.id, "attended")


def test_invalid_status_and_missing_booking(db, clock, setup):
    conductor, trip, booking = setup
    service = AttendanceService(db, clock)

    with pytest.raises(BadRequestError):
        service.mark_status(conductor, booking.id, "confirmed")
    with pytest.raises(NotFoundError):
        service.mark_status(conductor, 9999, "attended")


def test_cancelled_booking_cannot_be_marked(db, clock, notifier, setup):
    conductor, trip, booking = setup
    BookingService(db, clock, notifier).cancel_booking(booking.user, booking.id)
    clock.set(9, 55)

    with pytest.raises(ConflictError, match="cancelled"):
        AttendanceService(db, clock).mark_status(conductor, booking.id, "attended")


def test_trip_roster(db, clock, setup):
    conductor, trip, booking = setup

    roster = AttendanceService(db, clock).get_trip_roster(conductor, trip.id)

    assert roster["bus"] == {"id": trip.id, "bus_number": trip.bus_number, "route": trip.route}
    assert len(roster["seats"]) == 40
    seat = roster["seats"][4]
    assert seat["number"] == 5
    assert seat["status"] == "confirmed"
    assert seat["booking_id"] == booking.id
    assert seat["user_name"] == "Asha Verma"
    assert roster["seats"][0]["status"] == "available"


def test_roster_of_another_conductors_trip(db, clock, setup):
    conductor, trip, booking = setup
    other = make_user(db, "Suresh Meena", role="conductor", phone="9876501234")
    service = AttendanceService(db, clock)

    with pytest.raises(ForbiddenError):
        service.get_trip_roster(other, trip.id)
    with pytest.raises(NotFoundError):
        service.get_trip_roster(conductor, 9999)
