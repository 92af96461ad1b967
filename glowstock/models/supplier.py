"""Supplier model."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glowstock.db.base import Base, TimestampMixin


class Supplier(Base, TimestampMixin):
    """Supplier of materials."""

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Relationships
    invoices: Mapped[list["PurchaseInvoice"]] = relationship(
        "PurchaseInvoice", back_populates="supplier", order_by="PurchaseInvoice.id"
    )
