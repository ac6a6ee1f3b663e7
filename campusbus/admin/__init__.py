"""
Administration module: dashboard statistics, conductor listing, the schedule
overview used for fleet management, and CSV/PDF booking reports.
"""

from .admin_service import AdminManagementService

__all__ = ["AdminManagementService"]
