"""Administrative maintenance endpoints.

Migration and duplicate repair are explicit, idempotent operations meant to
be called by a scheduler or a deployment hook.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from ordinal_stage.api.v1.dependencies import AdminDep, SessionDep, ThrottleDep
from ordinal_stage.core.errors import NotFoundError
from ordinal_stage.schemas.maintenance import (
    MaintenanceReportResponse,
    MigrateResponse,
    MigrationFlagResponse,
)
from ordinal_stage.schemas.record import ErrorResponse
from ordinal_stage.services.maintenance import MaintenanceReport, MaintenanceService
from ordinal_stage.services.migration_gate import KNOWN_FLAGS

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    },
)


def _to_response(report: MaintenanceReport) -> MaintenanceReportResponse:
    return MaintenanceReportResponse(task=report.task, status=report.status, details=report.details)


@router.post("/migrate", response_model=MigrateResponse)
async def migrate(_: AdminDep, db: SessionDep, throttle: ThrottleDep) -> MigrateResponse:
    """Run the one-time order migration and duplicate repair.

    Safe to call repeatedly: completed tasks report ``skipped``.
    """
    service = MaintenanceService(db, throttle=throttle)
    service.ensure_flags()
    reports = [service.migrate(), service.fix_duplicates()]
    return MigrateResponse(reports=[_to_response(report) for report in reports])


@router.post("/fix-duplicates", response_model=MaintenanceReportResponse)
async def fix_duplicates(
    _: AdminDep, db: SessionDep, throttle: ThrottleDep
) -> MaintenanceReportResponse:
    """Run the duplicate sweep unless it already completed."""
    return _to_response(MaintenanceService(db, throttle=throttle).fix_duplicates())


@router.post("/sync", response_model=MaintenanceReportResponse)
async def sync(_: AdminDep, db: SessionDep, throttle: ThrottleDep) -> MaintenanceReportResponse:
    """Reconcile now, ignoring the read-path time window."""
    return _to_response(MaintenanceService(db, throttle=throttle).sync(force=True))


@router.get("/flags", response_model=list[MigrationFlagResponse])
async def list_flags(_: AdminDep, db: SessionDep, throttle: ThrottleDep) -> list[MigrationFlagResponse]:
    """Return the state of every migration flag."""
    flags = MaintenanceService(db, throttle=throttle).list_flags()
    return [MigrationFlagResponse.model_validate(flag) for flag in flags]


@router.delete(
    "/flags/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def reset_flag(name: str, _: AdminDep, db: SessionDep, throttle: ThrottleDep) -> None:
    """Reset a migration flag so its routine runs on the next trigger.

    Raises:
        NotFoundError: If the flag is unknown
    """
    if name not in KNOWN_FLAGS:
        raise NotFoundError(f"Unknown migration flag: {name}")
    service = MaintenanceService(db, throttle=throttle)
    service.ensure_flags()
    service.reset_flag(name)
