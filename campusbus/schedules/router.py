from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from campusbus.auth.dependencies import get_current_user, require_admin, require_conductor
from campusbus.clock import Clock, get_clock
from campusbus.database import get_db
from campusbus.exceptions import ServiceError
from campusbus.notifications import get_notifier
from campusbus.schedules.schemas import Trip, TripCreate, TripUpdate, TripSummary, TripDetail, FleetDeleteResult
from campusbus.schedules.service import ScheduleService

router = APIRouter()

def get_schedule_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier = Depends(get_notifier)
) -> ScheduleService:
    return ScheduleService(db, clock, notifier)

@router.get("/", response_model=List[TripSummary])
def get_upcoming_trips(
    current_user = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Upcoming trips with booked seat counts"""
    return service.summarize(service.list_upcoming_trips())

@router.get("/mybus", response_model=TripSummary)
def get_conductor_trip(
    conductor = Depends(require_conductor),
    service: ScheduleService = Depends(get_schedule_service)
):
    """The trip assigned to the logged-in conductor"""
    try:
        trip = service.get_conductor_trip(conductor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return service.summarize([trip])[0]

@router.get("/{trip_id}", response_model=TripDetail)
def get_trip(
    trip_id: int,
    current_user = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Trip details with seat layout"""
    try:
        return service.get_trip_detail(trip_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/", response_model=Trip, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip: TripCreate,
    admin = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Create a bus schedule or a placeholder fleet asset"""
    try:
        return service.create_trip(trip)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.put("/{trip_id}", response_model=Trip)
def update_trip(
    trip_id: int,
    trip_update: TripUpdate,
    admin = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Update a bus schedule"""
    try:
        return service.update_trip(trip_id, trip_update)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.delete("/fleet/{bus_number}", response_model=FleetDeleteResult)
def delete_fleet_asset(
    bus_number: str,
    admin = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Delete a physical bus with all of its schedules and bookings"""
    try:
        deleted = service.delete_fleet_asset(bus_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return FleetDeleteResult(
        message=f"Physical Bus Asset {bus_number} and all {deleted} schedules deleted successfully.",
        deleted_schedules_count=deleted
    )

@router.delete("/{trip_id}")
def delete_trip(
    trip_id: int,
    admin = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Delete a bus schedule and its bookings"""
    try:
        service.delete_trip(trip_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"message": "Bus schedule removed"}
