from sqlalchemy import Column, Integer, BigInteger, String, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from campusbus.database import Base

PLACEHOLDER_ROUTE = "New Asset (Placeholder)"

OCCUPIED_STATUSES = ("confirmed", "attended", "absent")

# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer, "sqlite")

# Partial index predicate shared by the seat and passenger uniqueness rules
_ACTIVE_BOOKING = text("status != 'cancelled'")

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(IdType, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=True, index=True)
    phone = Column(String(32), unique=True, nullable=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="student")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="user")
    waiting_entries = relationship("WaitingListEntry", back_populates="user")
    assigned_trips = relationship("Trip", back_populates="conductor")

    __table_args__ = (
        CheckConstraint("role IN ('student', 'admin', 'conductor')", name="ck_users_role"),
    )

# ================================
# Trips (bus schedules and fleet assets)
# ================================
class Trip(Base):
    __tablename__ = "trips"

    id = Column(IdType, primary_key=True, index=True)
    bus_number = Column(String(50), nullable=False, index=True)
    route = Column(String(255), nullable=False)
    driver = Column(String(255), nullable=False)
    total_seats = Column(Integer, nullable=False, default=40)
    departure_time = Column(String(20), nullable=False)
    arrival_time = Column(String(20), nullable=False)
    conductor_id = Column(IdType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    conductor = relationship("User", back_populates="assigned_trips")
    bookings = relationship("Booking", back_populates="trip", cascade="all, delete-orphan")
    waiting_entries = relationship("WaitingListEntry", back_populates="trip", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("total_seats > 0", name="ck_trips_total_seats"),
    )

    @property
    def is_placeholder(self) -> bool:
        return self.route == PLACEHOLDER_ROUTE

# ================================
# Bookings
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(IdType, primary_key=True, index=True)
    user_id = Column(IdType, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(IdType, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    # Copied from the trip at booking time and never re-synced
    bus_number = Column(String(50), nullable=False)
    route = Column(String(255), nullable=False)
    departure_time = Column(String(20), nullable=False)
    seat_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")
    trip = relationship("Trip", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("status IN ('confirmed', 'attended', 'absent', 'cancelled')", name="ck_bookings_status"),
        CheckConstraint("seat_number >= 1", name="ck_bookings_seat_number"),
        Index(
            "uq_bookings_trip_seat_active", "trip_id", "seat_number",
            unique=True, sqlite_where=_ACTIVE_BOOKING, postgresql_where=_ACTIVE_BOOKING
        ),
        Index(
            "uq_bookings_trip_user_active", "trip_id", "user_id",
            unique=True, sqlite_where=_ACTIVE_BOOKING, postgresql_where=_ACTIVE_BOOKING
        ),
    )

# ================================
# Waiting List
# ================================
class WaitingListEntry(Base):
    __tablename__ = "waiting_list"

    id = Column(IdType, primary_key=True, index=True)
    user_id = Column(IdType, ForeignKey("users.id"), nullable=False)
    trip_id = Column(IdType, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="waiting_entries")
    trip = relationship("Trip", back_populates="waiting_entries")

    __table_args__ = (
        UniqueConstraint("user_id", "trip_id", name="uq_waiting_list_user_trip"),
    )
