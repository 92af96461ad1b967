"""Purchase invoice models: materials bought from a supplier."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glowstock.db.base import Base, TimestampMixin


class PurchaseInvoice(Base, TimestampMixin):
    """A supplier invoice. Creating one brings its materials into stock."""

    __tablename__ = "purchase_invoices"
    __table_args__ = (
        UniqueConstraint("supplier_id", "invoice_no", name="uq_purchase_invoice_supplier_no"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_no: Mapped[str] = mapped_column(String(100), nullable=False)
    invoice_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    total: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=0, nullable=False)
    extra_expenses: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=0, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Relationships
    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="invoices")
    items: Mapped[list["PurchaseInvoiceItem"]] = relationship(
        "PurchaseInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="PurchaseInvoiceItem.id",
    )


class PurchaseInvoiceItem(Base):
    """One material line of a purchase invoice."""

    __tablename__ = "purchase_invoice_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_item_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    line_total: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)  # price paid for the line

    # Relationships
    invoice: Mapped["PurchaseInvoice"] = relationship("PurchaseInvoice", back_populates="items")
    material: Mapped["Material"] = relationship("Material")
