"""Inventory snapshot, report and movement log routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, Request

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.schemas.stock import StockMovementResponse
from glowstock.services.inventory_report_service import InventoryReportService

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def inventory_snapshot(request: Request, db: DbSession):
    """Materials with stock value and Low/OK status."""
    return list_response(InventoryReportService(db).snapshot())


@router.get("/report")
@limiter.limit("30/minute")
def inventory_report(
    request: Request,
    db: DbSession,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
):
    """Stock values, low-stock counts, consumption and top production for a period."""
    return InventoryReportService(db).report(date_from=date_from, date_to=date_to)


@router.get("/movements")
@limiter.limit("60/minute")
def list_movements(
    request: Request,
    db: DbSession,
    material_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    reason: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Stock movement log, newest first."""
    rows, total = InventoryReportService(db).movements(
        material_id=material_id, product_id=product_id, reason=reason, limit=limit, offset=offset,
    )
    return list_response(
        [StockMovementResponse.model_validate(r).model_dump(mode="json") for r in rows], total
    )
