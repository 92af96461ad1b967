"""Supplier routes."""

from fastapi import APIRouter, HTTPException, Request, status

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.schemas.purchase import SupplierCreate, SupplierResponse, SupplierUpdate
from glowstock.services.purchase_service import (
    PurchaseService,
    SupplierInUseError,
    SupplierNotFoundError,
)

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_suppliers(request: Request, db: DbSession):
    """List all suppliers with their invoice counts."""
    suppliers = PurchaseService(db).list_suppliers()
    return list_response([SupplierResponse.from_supplier(s).model_dump(mode="json") for s in suppliers])


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_supplier(request: Request, data: SupplierCreate, db: DbSession):
    """Create a supplier."""
    supplier = PurchaseService(db).save_supplier(data.model_dump())
    db.commit()
    db.refresh(supplier)
    return SupplierResponse.from_supplier(supplier)


@router.get("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("60/minute")
def get_supplier(request: Request, supplier_id: int, db: DbSession):
    """Get a supplier by ID."""
    try:
        supplier = PurchaseService(db).get_supplier(supplier_id)
    except SupplierNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return SupplierResponse.from_supplier(supplier)


@router.put("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("30/minute")
def update_supplier(request: Request, supplier_id: int, data: SupplierUpdate, db: DbSession):
    """Update a supplier."""
    try:
        supplier = PurchaseService(db).save_supplier(data.model_dump(exclude_unset=True), supplier_id=supplier_id)
    except SupplierNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    db.commit()
    db.refresh(supplier)
    return SupplierResponse.from_supplier(supplier)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_supplier(request: Request, supplier_id: int, db: DbSession):
    """Delete a supplier that has no invoices."""
    try:
        PurchaseService(db).delete_supplier(supplier_id)
    except SupplierNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    except SupplierInUseError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    db.commit()
