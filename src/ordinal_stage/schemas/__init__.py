"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .maintenance import MaintenanceReportResponse, MigrateResponse, MigrationFlagResponse
from .record import ErrorResponse, RecordListItem, SaveOrderRequest, SaveOrderResponse

__all__ = [
    "ErrorResponse",
    "MaintenanceReportResponse",
    "MigrateResponse",
    "MigrationFlagResponse",
    "RecordListItem",
    "SaveOrderRequest",
    "SaveOrderResponse",
]
