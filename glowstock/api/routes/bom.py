"""Bill of Materials routes for products and variants."""

from fastapi import APIRouter, HTTPException, Request, status

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.schemas.bom import BomCostResponse, BomEntryResponse, BomReplaceRequest
from glowstock.services.bom_index import BomIndex
from glowstock.services.stock_store import (
    ItemRef,
    ItemStockStore,
    MaterialNotFoundError,
    StockNotFoundError,
)

router = APIRouter()


def _get_bom(db, ref: ItemRef) -> dict:
    try:
        ItemStockStore(db).get(ref)
    except StockNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    entries = BomIndex(db).entries_for(ref)
    return list_response([BomEntryResponse.model_validate(e).model_dump(mode="json") for e in entries])


def _replace_bom(db, ref: ItemRef, data: BomReplaceRequest) -> dict:
    try:
        entries = BomIndex(db).replace_entries(
            ref, [(e.material_id, e.quantity_per_unit) for e in data.entries]
        )
    except MaterialNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StockNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    return list_response([BomEntryResponse.model_validate(e).model_dump(mode="json") for e in entries])


def _bom_cost(db, ref: ItemRef) -> BomCostResponse:
    try:
        ItemStockStore(db).get(ref)
    except StockNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return BomCostResponse(kind=ref.kind, target_id=ref.target_id, unit_cost=BomIndex(db).unit_cost(ref))


@router.get("/products/{product_id}")
@limiter.limit("60/minute")
def get_product_bom(request: Request, product_id: int, db: DbSession):
    """Product-level BOM (entries without a variant)."""
    return _get_bom(db, ItemRef(product_id=product_id))


@router.put("/products/{product_id}")
@limiter.limit("30/minute")
def replace_product_bom(request: Request, product_id: int, data: BomReplaceRequest, db: DbSession):
    """Replace a product's BOM."""
    return _replace_bom(db, ItemRef(product_id=product_id), data)


@router.get("/products/{product_id}/cost", response_model=BomCostResponse)
@limiter.limit("60/minute")
def get_product_cost(request: Request, product_id: int, db: DbSession):
    """Material cost of one unit of a product."""
    return _bom_cost(db, ItemRef(product_id=product_id))


@router.get("/variants/{variant_id}")
@limiter.limit("60/minute")
def get_variant_bom(request: Request, variant_id: int, db: DbSession):
    """Variant BOM."""
    return _get_bom(db, ItemRef(variant_id=variant_id))


@router.put("/variants/{variant_id}")
@limiter.limit("30/minute")
def replace_variant_bom(request: Request, variant_id: int, data: BomReplaceRequest, db: DbSession):
    """Replace a variant's BOM."""
    return _replace_bom(db, ItemRef(variant_id=variant_id), data)


@router.get("/variants/{variant_id}/cost", response_model=BomCostResponse)
@limiter.limit("60/minute")
def get_variant_cost(request: Request, variant_id: int, db: DbSession):
    """Material cost of one unit of a variant."""
    return _bom_cost(db, ItemRef(variant_id=variant_id))
