"""Record listing and reorder endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, status

from ordinal_stage.api.v1.dependencies import EditorDep, SessionDep, ThrottleDep
from ordinal_stage.core.errors import RateLimitError
from ordinal_stage.core.settings import settings
from ordinal_stage.repositories.record_repo import OrderStore
from ordinal_stage.schemas.record import (
    ErrorResponse,
    RecordListItem,
    SaveOrderRequest,
    SaveOrderResponse,
)
from ordinal_stage.services.maintenance import MaintenanceService
from ordinal_stage.services.reorder import ReorderService

logger = logging.getLogger(__name__)

# Maximum number of records the public listing returns
MAX_RECORDS_LIMIT = 50

router = APIRouter(prefix="/records", tags=["records"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
}


@router.get("/", response_model=list[RecordListItem], responses=_ERROR_RESPONSES)
async def list_records(principal: EditorDep, db: SessionDep) -> list[RecordListItem]:
    """List published records in their current order for the reorder UI.

    Args:
        principal: Caller holding the ``edit_records`` capability
        db: Database session

    Returns:
        Records sorted by primary ordinal ascending
    """
    records = ReorderService(db).list_for_editing()
    logger.debug("Listing %d records for %s", len(records), principal.subject)
    return [RecordListItem.from_record(record) for record in records]


@router.post(
    "/order",
    response_model=SaveOrderResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
    },
)
async def save_order(
    payload: SaveOrderRequest,
    principal: EditorDep,
    db: SessionDep,
    throttle: ThrottleDep,
) -> SaveOrderResponse:
    """Persist a new order for the submitted records as one unit.

    Args:
        payload: Ordered record ids
        principal: Caller holding the ``edit_records`` capability
        db: Database session
        throttle: Rate limiter for save calls

    Returns:
        Number of records updated and an optional partial-success warning

    Raises:
        RateLimitError: If the caller exceeded the save budget
    """
    if not throttle.hit(
        f"reorder:{principal.subject}",
        settings.reorder_rate_limit,
        settings.reorder_rate_window_seconds,
    ):
        raise RateLimitError("Too many reorder requests; try again later")

    result = ReorderService(db).save_order(list(payload.ordered_ids))
    return SaveOrderResponse(updated_count=result.updated_count, warning=result.warning)


@router.get("/ordered", response_model=list[RecordListItem])
async def list_ordered_records(
    db: SessionDep,
    throttle: ThrottleDep,
    limit: int = Query(MAX_RECORDS_LIMIT, ge=1, le=MAX_RECORDS_LIMIT),
) -> list[RecordListItem]:
    """Public read path returning records in display order.

    Runs the time-boxed reconciliation first; a failed sync is logged and
    the current order is served anyway.

    Args:
        db: Database session
        throttle: Holder of the sync time window
        limit: Maximum number of records to return

    Returns:
        Records sorted by primary ordinal ascending
    """
    MaintenanceService(db, throttle=throttle).sync()
    records = OrderStore(db).list_ordered(limit=limit)
    return [RecordListItem.from_record(record) for record in records]
