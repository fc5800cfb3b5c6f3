"""System endpoints for the Ordinal Stage API."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ordinal_stage.api.v1.dependencies import SessionDep
from ordinal_stage.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "ordering": {
            "managed_record_type": settings.managed_record_type,
            "ordinal_base": 0,
            "sync_ttl_seconds": settings.order_sync_ttl_seconds,
        },
        "rate_limit": {
            "reorder_calls": settings.reorder_rate_limit,
            "window_seconds": settings.reorder_rate_window_seconds,
        },
    }


@router.get("/health")
async def get_system_health(db: SessionDep) -> dict[str, object]:
    """Health check including database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": int(time.time()),
        "components": {"database": db_status},
        "version": settings.app_version,
    }
