"""Suppliers and purchase invoices: the stock-in side of the material ledger.

Creating an invoice adds each line's quantity to its material and resets the
material's unit price to what was paid on that line. Deleting an invoice
takes the received quantities back out, floored at zero like any other
stock change.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from glowstock.models.purchase import PurchaseInvoice, PurchaseInvoiceItem
from glowstock.models.stock import MovementReason
from glowstock.models.supplier import Supplier
from glowstock.services.stock_store import MaterialStore, ZERO

logger = logging.getLogger(__name__)

SUPPLIER_FIELDS = ("name", "phone", "email", "address", "notes")
INVOICE_FIELDS = ("invoice_no", "invoice_date", "total", "extra_expenses", "note")


class SupplierNotFoundError(Exception):
    """Raised when a supplier id does not exist."""
    def __init__(self, supplier_id: int):
        self.supplier_id = supplier_id
        super().__init__(f"Supplier {supplier_id} not found")


class SupplierInUseError(Exception):
    """Raised when deleting a supplier that still has invoices."""
    def __init__(self, supplier_id: int, invoice_count: int):
        self.supplier_id = supplier_id
        self.invoice_count = invoice_count
        super().__init__(f"Supplier {supplier_id} has {invoice_count} invoices")


class PurchaseInvoiceNotFoundError(Exception):
    """Raised when a purchase invoice id does not exist."""
    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        super().__init__(f"Purchase invoice {invoice_id} not found")


class DuplicateInvoiceError(Exception):
    """Raised when a supplier already has an invoice with the same number."""
    def __init__(self, supplier_id: int, invoice_no: str):
        self.supplier_id = supplier_id
        self.invoice_no = invoice_no
        super().__init__(f"Supplier {supplier_id} already has invoice '{invoice_no}'")


class PurchaseService:
    """Supplier records and material stock-in from purchase invoices."""

    def __init__(self, db: Session):
        self.db = db
        self.materials = MaterialStore(db)

    # ===== SUPPLIERS =====

    def list_suppliers(self) -> List[Supplier]:
        return self.db.query(Supplier).options(selectinload(Supplier.invoices)).order_by(Supplier.name).all()

    def get_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.db.query(Supplier).filter(Supplier.id == supplier_id).first()
        if not supplier:
            raise SupplierNotFoundError(supplier_id)
        return supplier

    def save_supplier(self, data: Dict[str, Any], supplier_id: Optional[int] = None) -> Supplier:
        """Create a supplier, or update the given fields of an existing one."""
        if supplier_id is None:
            supplier = Supplier(**{k: data.get(k) for k in SUPPLIER_FIELDS})
            self.db.add(supplier)
        else:
            supplier = self.get_supplier(supplier_id)
            for key in SUPPLIER_FIELDS:
                if key in data and data[key] is not None:
                    setattr(supplier, key, data[key])
        self.db.flush()
        return supplier

    def delete_supplier(self, supplier_id: int) -> None:
        supplier = self.get_supplier(supplier_id)
        invoice_count = self.db.query(PurchaseInvoice).filter(
            PurchaseInvoice.supplier_id == supplier_id
        ).count()
        if invoice_count:
            raise SupplierInUseError(supplier_id, invoice_count)
        self.db.delete(supplier)
        self.db.flush()

    # ===== INVOICES =====

    def list_invoices(
        self,
        supplier_id: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[PurchaseInvoice], int]:
        query = self.db.query(PurchaseInvoice)
        if supplier_id is not None:
            query = query.filter(PurchaseInvoice.supplier_id == supplier_id)
        total = query.count()
        invoices = query.options(selectinload(PurchaseInvoice.items)).order_by(
            PurchaseInvoice.id.desc()
        ).offset(offset).limit(limit).all()
        return invoices, total

    def get_invoice(self, invoice_id: int) -> PurchaseInvoice:
        invoice = self.db.query(PurchaseInvoice).options(selectinload(PurchaseInvoice.items)).filter(
            PurchaseInvoice.id == invoice_id
        ).first()
        if not invoice:
            raise PurchaseInvoiceNotFoundError(invoice_id)
        return invoice

    def create_invoice(
        self,
        supplier_id: int,
        invoice_no: str,
        items: List[Dict[str, Any]],
        invoice_date: Optional[date] = None,
        total: Optional[Decimal] = None,
        extra_expenses: Decimal = ZERO,
        note: Optional[str] = None,
    ) -> PurchaseInvoice:
        """Record a supplier invoice and bring its materials into stock.

        Each item is a dict with ``material_id``, ``quantity`` and an optional
        ``line_total``. When ``total`` is not given it is the sum of the line
        totals plus ``extra_expenses``. Everything is validated before any
        stock moves, and the invoice commits as one transaction.
        """
        if not invoice_no or not invoice_no.strip():
            raise ValueError("invoice_no is required")
        if not items:
            raise ValueError("An invoice needs at least one item")
        self.get_supplier(supplier_id)

        lines = []
        for item in items:
            quantity = Decimal(str(item.get("quantity") or 0))
            if quantity <= 0:
                raise ValueError("Item quantity must be > 0")
            line_total = item.get("line_total")
            if line_total is not None:
                line_total = Decimal(str(line_total))
                if line_total < 0:
                    raise ValueError("line_total must be >= 0")
            self.materials.get(item["material_id"])
            lines.append(PurchaseInvoiceItem(
                material_id=item["material_id"], quantity=quantity, line_total=line_total,
            ))

        extra_expenses = Decimal(str(extra_expenses or 0))
        if total is None:
            total = sum((line.line_total or ZERO for line in lines), ZERO) + extra_expenses

        invoice = PurchaseInvoice(
            supplier_id=supplier_id,
            invoice_no=invoice_no.strip(),
            invoice_date=invoice_date,
            total=Decimal(str(total)),
            extra_expenses=extra_expenses,
            note=note,
            items=lines,
        )
        try:
            self.db.add(invoice)
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateInvoiceError(supplier_id, invoice_no.strip())

        try:
            for line in lines:
                self.materials.adjust_stock(
                    line.material_id, line.quantity,
                    reason=MovementReason.PURCHASE, ref_type="purchase_invoice", ref_id=invoice.id,
                    notes=f"Invoice {invoice.invoice_no}",
                )
                if line.line_total is not None:
                    self.materials.adjust_price(line.material_id, line.line_total / line.quantity)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Purchase invoice {invoice_no} from supplier {supplier_id} failed")
            raise

        self.db.refresh(invoice)
        logger.info(
            f"Purchase invoice {invoice.id} ({invoice.invoice_no}) received: "
            f"{len(lines)} materials from supplier {supplier_id}"
        )
        return invoice

    def update_invoice(self, invoice_id: int, data: Dict[str, Any]) -> PurchaseInvoice:
        """Edit invoice header fields. Lines, and so stock, are left as they are."""
        invoice = self.get_invoice(invoice_id)
        for key in INVOICE_FIELDS:
            if key in data and data[key] is not None:
                setattr(invoice, key, data[key])
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateInvoiceError(invoice.supplier_id, data.get("invoice_no"))
        return invoice

    def delete_invoice(self, invoice_id: int) -> List[Dict[str, Any]]:
        """Delete an invoice and take its received quantities back out of stock."""
        invoice = self.get_invoice(invoice_id)

        reversed_lines = []
        try:
            for line in invoice.items:
                new_qty = self.materials.adjust_stock(
                    line.material_id, -line.quantity,
                    reason=MovementReason.PURCHASE, ref_type="purchase_invoice", ref_id=invoice.id,
                    notes=f"Invoice {invoice.invoice_no} deleted",
                )
                reversed_lines.append({
                    "material_id": line.material_id,
                    "quantity": line.quantity,
                    "stock_quantity": new_qty,
                })
            self.db.delete(invoice)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Deleting purchase invoice {invoice_id} failed")
            raise

        logger.info(f"Purchase invoice {invoice_id} deleted, {len(reversed_lines)} materials reversed")
        return reversed_lines
