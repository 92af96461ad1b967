"""Purchase invoice routes: material stock-in from suppliers."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.schemas.purchase import (
    PurchaseInvoiceCreate,
    PurchaseInvoiceResponse,
    PurchaseInvoiceUpdate,
)
from glowstock.services.purchase_service import (
    DuplicateInvoiceError,
    PurchaseInvoiceNotFoundError,
    PurchaseService,
    SupplierNotFoundError,
)
from glowstock.services.stock_store import MaterialNotFoundError

router = APIRouter()


def _serialize(invoice) -> dict:
    return PurchaseInvoiceResponse.model_validate(invoice).model_dump(mode="json")


@router.get("/")
@limiter.limit("60/minute")
def list_purchase_invoices(
    request: Request,
    db: DbSession,
    supplier_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List purchase invoices, newest first."""
    invoices, total = PurchaseService(db).list_invoices(supplier_id=supplier_id, limit=limit, offset=offset)
    return list_response([_serialize(i) for i in invoices], total)


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_purchase_invoice(request: Request, data: PurchaseInvoiceCreate, db: DbSession):
    """Record a supplier invoice and add its materials to stock."""
    try:
        invoice = PurchaseService(db).create_invoice(
            data.supplier_id,
            data.invoice_no,
            [item.model_dump() for item in data.items],
            invoice_date=data.invoice_date,
            total=data.total,
            extra_expenses=data.extra_expenses,
            note=data.note,
        )
    except SupplierNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    except MaterialNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateInvoiceError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _serialize(invoice)


@router.get("/{invoice_id}")
@limiter.limit("60/minute")
def get_purchase_invoice(request: Request, invoice_id: int, db: DbSession):
    """Get a purchase invoice with its lines."""
    try:
        return _serialize(PurchaseService(db).get_invoice(invoice_id))
    except PurchaseInvoiceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase invoice not found")


@router.put("/{invoice_id}")
@limiter.limit("30/minute")
def update_purchase_invoice(request: Request, invoice_id: int, data: PurchaseInvoiceUpdate, db: DbSession):
    """Edit invoice header fields."""
    try:
        invoice = PurchaseService(db).update_invoice(invoice_id, data.model_dump(exclude_unset=True))
    except PurchaseInvoiceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase invoice not found")
    except DuplicateInvoiceError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    db.commit()
    db.refresh(invoice)
    return _serialize(invoice)


@router.delete("/{invoice_id}")
@limiter.limit("30/minute")
def delete_purchase_invoice(request: Request, invoice_id: int, db: DbSession):
    """Delete an invoice and take its materials back out of stock."""
    try:
        reversed_lines = PurchaseService(db).delete_invoice(invoice_id)
    except PurchaseInvoiceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase invoice not found")
    return {"deleted": True, "invoice_id": invoice_id, "reversed": reversed_lines}
