"""Production routes."""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder

from glowstock.core.rate_limit import limiter
from glowstock.db.session import DbSession
from glowstock.schemas.production import ProductionRequest
from glowstock.services.production_service import InsufficientMaterialsError, ProductionService
from glowstock.services.stock_store import StockNotFoundError

router = APIRouter()


@router.post("/requirements")
@limiter.limit("60/minute")
def production_requirements(request: Request, data: ProductionRequest, db: DbSession):
    """Materials needed to produce ``qty`` units, against what is in stock."""
    try:
        rows = ProductionService(db).requirements(data.product_id, data.qty, variant_id=data.variant_id)
    except StockNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {
        "product_id": data.product_id,
        "variant_id": data.variant_id,
        "qty": data.qty,
        "can_produce": all(r["shortage"] == 0 for r in rows),
        "requirements": rows,
    }


@router.post("/complete")
@limiter.limit("30/minute")
def complete_production(request: Request, data: ProductionRequest, db: DbSession):
    """Consume materials and add the produced units to product or variant stock."""
    try:
        return ProductionService(db).complete(data.product_id, data.qty, variant_id=data.variant_id)
    except StockNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientMaterialsError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "INSUFFICIENT_MATERIALS", "shortage": jsonable_encoder(e.shortages)},
        )
