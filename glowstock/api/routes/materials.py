"""Material routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.models.material import Material
from glowstock.models.stock import MovementReason
from glowstock.schemas.material import (
    MaterialCreate,
    MaterialResponse,
    MaterialStockAdjust,
    MaterialUpdate,
)
from glowstock.services.stock_store import MaterialNotFoundError, MaterialStore

router = APIRouter()


def _serialize(material: Material) -> dict:
    return MaterialResponse.model_validate(material).model_dump(mode="json")


@router.get("/")
@limiter.limit("60/minute")
def list_materials(
    request: Request,
    db: DbSession,
    search: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List materials."""
    query = db.query(Material)
    if search:
        query = query.filter(Material.name.ilike(f"%{search}%"))
    total = query.count()
    materials = query.order_by(Material.name).offset(offset).limit(limit).all()
    return list_response([_serialize(m) for m in materials], total)


@router.get("/low-stock")
@limiter.limit("60/minute")
def list_low_stock(request: Request, db: DbSession):
    """Materials at or below their low-stock threshold."""
    materials = MaterialStore(db).low_stock()
    return list_response([_serialize(m) for m in materials])


@router.get("/{material_id}", response_model=MaterialResponse)
@limiter.limit("60/minute")
def get_material(request: Request, material_id: int, db: DbSession):
    """Get a material by ID."""
    try:
        return MaterialStore(db).get(material_id)
    except MaterialNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Material not found")


@router.post("/", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_material(request: Request, data: MaterialCreate, db: DbSession):
    """Create a material. Opening stock is logged as an adjustment."""
    material = Material(
        name=data.name,
        unit=data.unit,
        stock_quantity=0,
        unit_price=data.unit_price,
        low_stock_threshold=data.low_stock_threshold,
    )
    db.add(material)
    db.flush()
    if data.stock_quantity > 0:
        MaterialStore(db).adjust_stock(
            material.id, data.stock_quantity,
            reason=MovementReason.ADJUSTMENT, notes="Opening stock",
        )
    db.commit()
    db.refresh(material)
    return material


@router.patch("/{material_id}", response_model=MaterialResponse)
@limiter.limit("30/minute")
def update_material(request: Request, material_id: int, data: MaterialUpdate, db: DbSession):
    """Update material details and price."""
    store = MaterialStore(db)
    try:
        material = store.get(material_id)
    except MaterialNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Material not found")

    update_data = data.model_dump(exclude_unset=True)
    unit_price = update_data.pop("unit_price", None)
    for field, value in update_data.items():
        setattr(material, field, value)
    if unit_price is not None:
        store.adjust_price(material_id, unit_price)

    db.commit()
    db.refresh(material)
    return material


@router.post("/{material_id}/adjust", response_model=MaterialResponse)
@limiter.limit("30/minute")
def adjust_material_stock(request: Request, material_id: int, data: MaterialStockAdjust, db: DbSession):
    """Add or remove material stock. The result never goes below zero."""
    store = MaterialStore(db)
    try:
        store.adjust_stock(
            material_id, data.delta,
            reason=MovementReason.ADJUSTMENT, notes=data.notes,
        )
    except MaterialNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Material not found")
    db.commit()
    return store.get(material_id)
