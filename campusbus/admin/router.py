from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import List

from campusbus.admin.admin_service import AdminManagementService
from campusbus.admin.schemas import DashboardStats, ConductorSummary
from campusbus.auth.dependencies import require_admin
from campusbus.clock import Clock, get_clock
from campusbus.database import get_db
from campusbus.exceptions import ServiceError
from campusbus.schedules.schemas import TripSummary

router = APIRouter()

REPORT_MEDIA_TYPES = {
    "csv": "text/csv",
    "pdf": "application/pdf",
}

def get_admin_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> AdminManagementService:
    return AdminManagementService(db, clock)

@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    admin = Depends(require_admin),
    service: AdminManagementService = Depends(get_admin_service)
):
    """Dashboard figures for upcoming trips and fleet assets"""
    return service.get_dashboard_stats()

@router.get("/report")
def download_report(
    type: str = Query("pdf", description="Report format: csv or pdf"),
    admin = Depends(require_admin),
    service: AdminManagementService = Depends(get_admin_service)
):
    """Download all bookings as CSV or PDF"""
    try:
        content = service.generate_report(type)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return Response(
        content=content,
        media_type=REPORT_MEDIA_TYPES[type],
        headers={"Content-Disposition": f'attachment; filename="bookings_report.{type}"'}
    )

@router.get("/conductors", response_model=List[ConductorSummary])
def get_conductors(
    admin = Depends(require_admin),
    service: AdminManagementService = Depends(get_admin_service)
):
    """All conductor accounts, for assigning to trips"""
    return service.get_conductors()

@router.get("/buses/all", response_model=List[TripSummary])
def get_all_schedules(
    admin = Depends(require_admin),
    service: AdminManagementService = Depends(get_admin_service)
):
    """Upcoming schedules and placeholder assets"""
    return service.get_all_schedules()
