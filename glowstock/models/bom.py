"""Bill of Materials model."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glowstock.db.base import Base


class BomEntry(Base):
    """Material consumed per unit of a product or of a variant.

    Exactly one of product_id / variant_id is set. Variant entries are not
    merged with the parent product's entries.
    """

    __tablename__ = "bom_entries"
    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) <> (variant_id IS NULL)",
            name="ck_bom_entry_single_owner",
        ),
        CheckConstraint("quantity_per_unit > 0", name="ck_bom_entry_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True
    )
    variant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)

    # Relationships
    material: Mapped["Material"] = relationship("Material", back_populates="bom_entries")
