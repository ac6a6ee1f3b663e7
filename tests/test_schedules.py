import pytest

from campusbus.bookings.booking_service import BookingService
from campusbus.exceptions import BadRequestError, ConflictError, NotFoundError
from campusbus.models import Booking, Trip, WaitingListEntry, PLACEHOLDER_ROUTE
from campusbus.schedules.schemas import TripCreate, TripUpdate
from campusbus.schedules.service import ScheduleService

from tests.conftest import make_trip, make_user


@pytest.fixture
def service(db, clock, notifier):
    return ScheduleService(db, clock, notifier)


def trip_data(**overrides):
    data = {
        "bus_number": "RJ14-1001",
        "route": "Campus → City",
        "driver": "Mohan Lal",
        "total_seats": 40,
        "departure_time": "10:00 AM",
        "arrival_time": "11:00 AM",
    }
    data.update(overrides)
    return TripCreate(**data)


def test_time_format_is_validated():
    assert trip_data(departure_time=" 8:30 am ").departure_time == "8:30 AM"
    with pytest.raises(ValueError):
        trip_data(departure_time="20:30")
    with pytest.raises(ValueError):
        trip_data(total_seats=0)


def test_duplicate_schedule_is_rejected(service):
    service.create_trip(trip_data())
    with pytest.raises(ConflictError):
        service.create_trip(trip_data(route="City → Campus"))

    # same bus at another time is a new schedule
    service.create_trip(trip_data(departure_time="6:00 PM"))


def test_placeholders_may_repeat(service, db):
    service.create_trip(trip_data(route=PLACEHOLDER_ROUTE, departure_time="12:00 AM"))
    service.create_trip(trip_data(route=PLACEHOLDER_ROUTE, departure_time="12:00 AM"))
    assert db.query(Trip).count() == 2


def test_conductor_assignment_requires_conductor(service, db):
    student = make_user(db, "Asha Verma")
    conductor = make_user(db, "Ramesh Kumar", role="conductor", phone="9876543210")

    with pytest.raises(BadRequestError):
        service.create_trip(trip_data(conductor_id=student.id))

    trip = service.create_trip(trip_data(conductor_id=conductor.id))
    assert trip.conductor_id == conductor.id

    updated = service.update_trip(trip.id, TripUpdate(conductor_id=None))
    assert updated.conductor_id is None


def test_update_trip(service, db, clock, notifier):
    trip = make_trip(db)
    BookingService(db, clock, notifier).create_booking(make_user(db, "Asha Verma"), trip.id, 12)

    updated = service.update_trip(trip.id, TripUpdate(driver="Kishan Singh", total_seats=20))
    assert updated.driver == "Kishan Singh"
    assert updated.total_seats == 20
    assert updated.route == "Campus → City"

    with pytest.raises(ConflictError):
        service.update_trip(trip.id, TripUpdate(total_seats=10))
    with pytest.raises(NotFoundError):
        service.update_trip(9999, TripUpdate(driver="Nobody"))


def test_delete_trip_cascades(service, db, clock, notifier):
    trip = make_trip(db, total_seats=1)
    bookings = BookingService(db, clock, notifier)
    bookings.create_booking(make_user(db, "Asha Verma"), trip.id, 1)
    bookings.join_waiting_list(make_user(db, "Ravi Jain"), trip.id)

    service.delete_trip(trip.id)

    assert db.query(Trip).count() == 0
    assert db.query(Booking).count() == 0
    assert db.query(WaitingListEntry).count() == 0


def test_delete_fleet_asset(service, db):
    make_trip(db, bus_number="RJ14-1001", departure_time="10:00 AM")
    make_trip(db, bus_number="RJ14-1001", departure_time="6:00 PM")
    make_trip(db, bus_number="RJ14-1001", route=PLACEHOLDER_ROUTE, departure_time="12:00 AM")
    make_trip(db, bus_number="RJ14-2002", departure_time="10:00 AM")

    assert service.delete_fleet_asset("RJ14-1001") == 3
    assert [t.bus_number for t in db.query(Trip).all()] == ["RJ14-2002"]

    with pytest.raises(NotFoundError):
        service.delete_fleet_asset("RJ14-1001")


def test_upcoming_trips_hide_departed_and_placeholders(service, db, clock):
    make_trip(db, bus_number="RJ14-1001", departure_time="7:30 AM")
    upcoming = make_trip(db, bus_number="RJ14-2002", departure_time="10:00 AM")
    placeholder = make_trip(db, bus_number="RJ14-3003", route=PLACEHOLDER_ROUTE, departure_time="12:00 AM")

    assert [t.id for t in service.list_upcoming_trips()] == [upcoming.id]
    assert {t.id for t in service.list_active_records()} == {upcoming.id, placeholder.id}


def test_summaries_count_occupied_seats(service, db, clock, notifier):
    trip = make_trip(db)
    bookings = BookingService(db, clock, notifier)
    bookings.create_booking(make_user(db, "Asha Verma"), trip.id, 1)
    cancelled = bookings.create_booking(make_user(db, "Ravi Jain"), trip.id, 2)
    bookings.cancel_booking(cancelled.user, cancelled.id)

    [summary] = service.summarize([trip])
    assert summary["booked_seats"] == 1

    detail = service.get_trip_detail(trip.id)
    assert detail["booked_count"] == 1
    assert detail["available_count"] == 39
    assert detail["seats"][1]["status"] == "available"


def test_conductor_trip_prefers_next_departure(service, db, clock):
    conductor = make_user(db, "Ramesh Kumar", role="conductor", phone="9876543210")
    make_trip(db, bus_number="RJ14-1001", departure_time="6:00 PM", conductor=conductor)
    morning = make_trip(db, bus_number="RJ14-1001", departure_time="9:00 AM", conductor=conductor)
    early = make_trip(db, bus_number="RJ14-1001", departure_time="7:00 AM", conductor=conductor)

    clock.set(8, 0)
    assert service.get_conductor_trip(conductor).id == morning.id

    # everything has left: fall back to the first trip of the day
    clock.set(23, 0)
    assert service.get_conductor_trip(conductor).id == early.id


def test_conductor_without_trip(service, db):
    conductor = make_user(db, "Ramesh Kumar", role="conductor", phone="9876543210")
    with pytest.raises(NotFoundError):
        service.get_conductor_trip(conductor)


def test_added_seats_go_to_waiting_list(service, db, clock, notifier):
    trip = make_trip(db, total_seats=1)
    bookings = BookingService(db, clock, notifier)
    bookings.create_booking(make_user(db, "Asha Verma"), trip.id, 1)
    first = make_user(db, "First Waiting")
    second = make_user(db, "Second Waiting")
    bookings.join_waiting_list(first, trip.id)
    bookings.join_waiting_list(second, trip.id)

    service.update_trip(trip.id, TripUpdate(total_seats=3))

    promoted = {
        b.user_id: b.seat_number
        for b in db.query(Booking).filter(Booking.trip_id == trip.id, Booking.status == "confirmed")
    }
    assert promoted[first.id] == 2
    assert promoted[second.id] == 3
    assert db.query(WaitingListEntry).count() == 0
    assert "off the waiting list" in notifier.subjects()[-1]


def test_added_seats_beyond_the_queue_stay_free(service, db, clock, notifier):
    trip = make_trip(db, total_seats=1)
    bookings = BookingService(db, clock, notifier)
    bookings.create_booking(make_user(db, "Asha Verma"), trip.id, 1)
    bookings.join_waiting_list(make_user(db, "Ravi Jain"), trip.id)

    service.update_trip(trip.id, TripUpdate(total_seats=4))

    detail = service.get_trip_detail(trip.id)
    assert detail["booked_count"] == 2
    assert detail["available_count"] == 2
    assert db.query(WaitingListEntry).count() == 0


def test_update_cannot_duplicate_schedule(service, db):
    make_trip(db, bus_number="RJ14-1001", departure_time="10:00 AM")
    evening = make_trip(db, bus_number="RJ14-1001", departure_time="6:00 PM")
    other_bus = make_trip(db, bus_number="RJ14-2002", departure_time="6:00 PM")

    with pytest.raises(ConflictError):
        service.update_trip(evening.id, TripUpdate(departure_time="10:00 AM"))
    with pytest.raises(ConflictError):
        service.update_trip(other_bus.id, TripUpdate(bus_number="RJ14-1001"))

    # keeping its own key is not a duplicate
    updated = service.update_trip(evening.id, TripUpdate(departure_time="6:00 PM", driver="Kishan Singh"))
    assert updated.driver == "Kishan Singh"


def test_update_rejects_blank_fields():
    with pytest.raises(ValueError):
        TripUpdate(bus_number="")
    with pytest.raises(ValueError):
        TripUpdate(route="")
