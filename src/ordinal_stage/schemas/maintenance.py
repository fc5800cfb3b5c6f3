# src/ordinal_stage/schemas/maintenance.py
"""Administrative maintenance schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MaintenanceReportResponse(BaseModel):
    """Outcome of one maintenance task."""

    task: str
    status: str = Field(..., description="completed, skipped or failed")
    details: dict[str, int] = Field(default_factory=dict)


class MigrateResponse(BaseModel):
    """Reports for every task run by the migrate trigger."""

    reports: list[MaintenanceReportResponse]


class MigrationFlagResponse(BaseModel):
    """State of a persisted migration flag."""

    name: str
    done: bool
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
