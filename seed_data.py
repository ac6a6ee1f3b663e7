#!/usr/bin/env python3
"""
Seed Data Script

Creates the admin account, two conductors, the campus shuttle timetable and a
placeholder fleet asset. Existing bookings, waiting lists, trips and users are
cleared first.

Usage:
    python seed_data.py
"""

from campusbus.auth.utils import get_password_hash
from campusbus.config import settings
from campusbus.database import Base, SessionLocal, engine
from campusbus.models import Booking, Trip, User, WaitingListEntry, PLACEHOLDER_ROUTE

DEFAULT_PASSWORD = "password123"

def create_seed_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for the Campus Bus Booking System...")

        # Clear existing data (in reverse dependency order)
        print("Clearing existing data...")
        db.query(WaitingListEntry).delete()
        db.query(Booking).delete()
        db.query(Trip).delete()
        db.query(User).delete()

        # 1. Create Users
        print("Creating users...")
        admin = User(
            name="Transport Office",
            email=settings.ADMIN_EMAIL,
            password=get_password_hash(DEFAULT_PASSWORD),
            role="admin"
        )
        conductors = [
            User(name="Ramesh Kumar", phone="9876543210", password=get_password_hash(DEFAULT_PASSWORD), role="conductor"),
            User(name="Suresh Meena", phone="9876501234", password=get_password_hash(DEFAULT_PASSWORD), role="conductor"),
        ]
        student = User(
            name="Demo Student",
            email=f"demo.student@{settings.EMAIL_DOMAIN}",
            password=get_password_hash(DEFAULT_PASSWORD),
            role="student"
        )
        db.add_all([admin, student, *conductors])
        db.flush()

        # 2. Create Trips
        print("Creating bus schedules...")
        trips = [
            Trip(bus_number="RJ14-PA-1001", route="Campus → Jaipur Railway Station", driver="Mohan Lal",
                 total_seats=40, departure_time="8:00 AM", arrival_time="8:50 AM", conductor_id=conductors[0].id),
            Trip(bus_number="RJ14-PA-1001", route="Jaipur Railway Station → Campus", driver="Mohan Lal",
                 total_seats=40, departure_time="10:30 AM", arrival_time="11:20 AM", conductor_id=conductors[0].id),
            Trip(bus_number="RJ14-PA-2002", route="Campus → Raja Park", driver="Kishan Singh",
                 total_seats=32, departure_time="5:30 PM", arrival_time="6:15 PM", conductor_id=conductors[1].id),
            Trip(bus_number="RJ14-PA-2002", route="Raja Park → Campus", driver="Kishan Singh",
                 total_seats=32, departure_time="9:00 PM", arrival_time="9:45 PM", conductor_id=conductors[1].id),
        ]

        # 3. Create Fleet Assets
        print("Creating fleet placeholders...")
        placeholders = [
            Trip(bus_number="RJ14-PA-3003", route=PLACEHOLDER_ROUTE, driver="Unassigned",
                 total_seats=40, departure_time="12:00 AM", arrival_time="12:00 AM"),
        ]
        db.add_all(trips + placeholders)

        # Commit all changes
        db.commit()
        print("✅ Successfully created seed data!")
        print(f"Created:")
        print(f"  - 1 admin ({settings.ADMIN_EMAIL})")
        print(f"  - {len(conductors)} conductors")
        print(f"  - 1 demo student")
        print(f"  - {len(trips)} bus schedules")
        print(f"  - {len(placeholders)} placeholder assets")
        print(f"All accounts use the password '{DEFAULT_PASSWORD}'")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
