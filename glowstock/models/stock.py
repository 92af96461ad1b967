"""Stock movement log."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from glowstock.db.base import Base


class MovementReason(str, Enum):
    """Reasons for stock movements."""

    SALE = "sale"  # Consumed when an order is placed
    PACKAGING = "packaging"  # Packaging rule deduction
    RESTORE = "restore"  # Order cancelled or deleted
    PACKAGING_RESTORE = "packaging_restore"  # Packaging ledger reversed
    PRODUCTION = "production"  # Production run (materials out, product in)
    PURCHASE = "purchase"  # Received on a supplier invoice
    ADJUSTMENT = "adjustment"  # Manual admin adjustment


class StockMovement(Base):
    """Append-only record of every stock change.

    Exactly one of material_id / product_id / variant_id identifies the
    stock that moved. qty_delta is the change actually applied, after the
    zero floor.
    """

    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(primary_key=True)
    ts: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    material_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("materials.id", ondelete="CASCADE"), nullable=True, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True
    )
    variant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True, index=True
    )
    qty_delta: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    reason: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    ref_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # order, production, purchase_invoice
    ref_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
