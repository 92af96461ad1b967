"""Material model: raw ingredients and packaging supplies."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glowstock.db.base import Base, TimestampMixin


class Material(Base, TimestampMixin):
    """A stocked material, measured in grams or units."""

    __tablename__ = "materials"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_material_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    unit: Mapped[str] = mapped_column(String(20), default="g", nullable=False)  # g, ml, pcs
    stock_quantity: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=0, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    low_stock_threshold: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)

    # Relationships
    bom_entries: Mapped[list["BomEntry"]] = relationship(
        "BomEntry", back_populates="material", cascade="all, delete-orphan"
    )

    @property
    def is_low(self) -> bool:
        # No threshold means only an empty material counts as low
        threshold = self.low_stock_threshold if self.low_stock_threshold is not None else 0
        return (self.stock_quantity or 0) <= threshold
