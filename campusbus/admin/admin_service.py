from typing import List, Dict, Any
from sqlalchemy.orm import Session, joinedload
import csv
import io

from campusbus.clock import Clock, system_clock
from campusbus.exceptions import BadRequestError, NotFoundError
from campusbus.models import Booking, User, WaitingListEntry, OCCUPIED_STATUSES
from campusbus.schedules.service import ScheduleService

REPORT_FIELDS = [
    "Booking ID", "Student Name", "Student Email", "Bus Number",
    "Route", "Seat Number", "Status", "Date",
]


class AdminManagementService:
    """Dashboard statistics and booking reports for administrators"""

    def __init__(self, db: Session, clock: Clock = None):
        self.db = db
        self.clock = clock or system_clock
        self.schedule_service = ScheduleService(db, self.clock)

    def get_dashboard_stats(self) -> Dict[str, Any]:
        """Fleet and occupancy figures over upcoming trips and placeholder assets"""

        active_records = self.schedule_service.list_active_records()
        active_ids = [trip.id for trip in active_records]

        total_buses = len({trip.bus_number for trip in active_records})

        total_bookings = 0
        total_waiting = 0
        if active_ids:
            total_bookings = self.db.query(Booking).filter(
                Booking.trip_id.in_(active_ids),
                Booking.status.in_(OCCUPIED_STATUSES)
            ).count()
            total_waiting = self.db.query(WaitingListEntry).filter(
                WaitingListEntry.trip_id.in_(active_ids)
            ).count()

        # Placeholders carry no capacity
        total_capacity = sum(trip.total_seats for trip in active_records if not trip.is_placeholder)
        occupancy_rate = round(total_bookings / total_capacity * 100) if total_capacity > 0 else 0

        return {
            "total_buses": total_buses,
            "total_bookings": total_bookings,
            "total_waiting": total_waiting,
            "total_capacity": total_capacity,
            "occupancy_rate": occupancy_rate,
        }

    def get_conductors(self) -> List[User]:
        return self.db.query(User).filter(User.role == "conductor").order_by(User.name).all()

    def get_all_schedules(self) -> List[Dict[str, Any]]:
        """Upcoming schedules and placeholder assets with booked counts"""
        return self.schedule_service.summarize(self.schedule_service.list_active_records())

    def get_report_rows(self) -> List[Dict[str, Any]]:
        bookings = self.db.query(Booking).options(
            joinedload(Booking.user)
        ).order_by(Booking.created_at, Booking.id).all()

        if not bookings:
            raise NotFoundError("No bookings found to generate report")

        return [
            {
                "Booking ID": b.id,
                "Student Name": b.user.name if b.user else "",
                "Student Email": (b.user.email or "") if b.user else "",
                "Bus Number": b.bus_number,
                "Route": b.route,
                "Seat Number": b.seat_number,
                "Status": b.status,
                "Date": b.created_at.date().isoformat() if b.created_at else "",
            }
            for b in bookings
        ]

    def generate_report(self, report_type: str = "pdf") -> bytes:
        """Render the bookings report as CSV or PDF"""
        if report_type not in ("csv", "pdf"):
            raise BadRequestError('Report type must be "csv" or "pdf"')

        rows = self.get_report_rows()
        if report_type == "csv":
            return self._generate_csv(rows).encode("utf-8")
        return self._generate_pdf(rows)

    def _generate_csv(self, data: List[Dict[str, Any]]) -> str:
        """Generate CSV content from data"""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        writer.writerows(data)
        return output.getvalue()

    def _generate_pdf(self, data: List[Dict[str, Any]]) -> bytes:
        """Generate a PDF table of bookings"""

        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4)
        styles = getSampleStyleSheet()
        story = [
            Paragraph("Campus Bus Bookings Report", styles['Title']),
            Spacer(1, 20),
        ]

        table_data = [["Booking ID", "Student", "Bus", "Seat", "Status", "Date"]]
        for row in data:
            table_data.append([
                str(row["Booking ID"]),
                row["Student Name"],
                row["Bus Number"],
                str(row["Seat Number"]),
                row["Status"],
                row["Date"],
            ])

        table = Table(table_data, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
            ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
            ('GRID', (0, 0), (-1, -1), 1, colors.black)
        ]))
        story.append(table)

        doc.build(story)
        return buffer.getvalue()
