"""Storefront order routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.models.order import OrderStatus
from glowstock.schemas.order import (
    OrderCreate,
    OrderDeductionResponse,
    OrderResponse,
    OrderStatusUpdate,
    PackOrdersRequest,
)
from glowstock.services.order_service import (
    InsufficientStockError,
    InvalidStatusTransition,
    OrderNotFoundError,
    OrderService,
)
from glowstock.services.stock_engine import StockEngine
from glowstock.services.stock_store import StockNotFoundError

router = APIRouter()


def _serialize(order) -> dict:
    return OrderResponse.model_validate(order).model_dump(mode="json")


def _get_order_or_404(service: OrderService, order_id: int):
    try:
        return service.get(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")


@router.get("/")
@limiter.limit("60/minute")
def list_orders(
    request: Request,
    db: DbSession,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List orders, newest first."""
    orders, total = OrderService(db).list_orders(status=status_filter, limit=limit, offset=offset)
    return list_response([_serialize(o) for o in orders], total)


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_order(request: Request, data: OrderCreate, db: DbSession):
    """Place an order and consume its item and material stock."""
    service = OrderService(db)
    try:
        order, stock = service.create_order(
            data.customer_name,
            [item.model_dump() for item in data.items],
        )
    except StockNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientStockError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"order": _serialize(order), "stock": stock.to_dict()}


@router.post("/pack")
@limiter.limit("30/minute")
def pack_orders(request: Request, data: PackOrdersRequest, db: DbSession):
    """Deduct packaging for each order and mark it packed."""
    results = OrderService(db).pack_orders(data.order_ids)
    return {"success": all(r["success"] for r in results), "results": results}


@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
def get_order(request: Request, order_id: int, db: DbSession):
    """Get an order by ID."""
    return _get_order_or_404(OrderService(db), order_id)


@router.put("/{order_id}/status")
@limiter.limit("30/minute")
def update_order_status(request: Request, order_id: int, data: OrderStatusUpdate, db: DbSession):
    """Change order status. Processing deducts packaging; cancelled restores stock."""
    service = OrderService(db)
    try:
        order, stock = service.change_status(order_id, data.status)
    except OrderNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {
        "order": _serialize(order),
        "stock": stock.to_dict() if stock is not None else None,
    }


@router.delete("/{order_id}")
@limiter.limit("30/minute")
def delete_order(request: Request, order_id: int, db: DbSession):
    """Delete an order, restoring its stock first unless it was cancelled."""
    try:
        stock = OrderService(db).delete_order(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return {
        "deleted": True,
        "order_id": order_id,
        "stock": stock.to_dict() if stock is not None else None,
    }


@router.get("/{order_id}/deductions")
@limiter.limit("60/minute")
def list_order_deductions(request: Request, order_id: int, db: DbSession):
    """Packaging ledger entries for an order."""
    service = OrderService(db)
    _get_order_or_404(service, order_id)
    entries = service.engine.ledger.entries_for(order_id)
    return list_response([OrderDeductionResponse.model_validate(e).model_dump(mode="json") for e in entries])


@router.post("/{order_id}/restore-packaging")
@limiter.limit("30/minute")
def restore_order_packaging(request: Request, order_id: int, db: DbSession):
    """Give back the packaging recorded for an order and clear its ledger."""
    _get_order_or_404(OrderService(db), order_id)
    return StockEngine(db).restore_packaging_for_order(order_id).to_dict()
