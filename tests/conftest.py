import re

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campusbus.auth.utils import create_access_token, get_password_hash
from campusbus.clock import FixedClock, get_clock
from campusbus.database import Base, get_db, get_session_factory
from campusbus.main import app
from campusbus.models import Trip, User
from campusbus.notifications import get_notifier

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret-pass"
# bcrypt is slow; hash once for every fixture user
PASSWORD_HASH = get_password_hash(PASSWORD)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, to_address, subject, body):
        self.sent.append({"to": to_address, "subject": subject, "body": body})
        return True

    def subjects(self):
        return [message["subject"] for message in self.sent]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FixedClock(8, 0)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, clock, notifier):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, name, role="student", email=None, phone=None):
    slug = re.sub(r"[^a-z0-9]+", ".", name.lower()).strip(".")
    if role in ("student", "admin") and email is None:
        email = f"{slug}@lnmiit.ac.in"
    if role == "conductor" and phone is None:
        phone = str(9000000000 + abs(hash(slug)) % 999999999)
    user = User(name=name, role=role, email=email, phone=phone, password=PASSWORD_HASH)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_trip(db, bus_number="RJ14-1001", departure_time="10:00 AM", total_seats=40,
              route="Campus → City", conductor=None, arrival_time="11:00 AM"):
    trip = Trip(
        bus_number=bus_number,
        route=route,
        driver="Mohan Lal",
        total_seats=total_seats,
        departure_time=departure_time,
        arrival_time=arrival_time,
        conductor_id=conductor.id if conductor else None,
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip


def auth_headers(user):
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}
