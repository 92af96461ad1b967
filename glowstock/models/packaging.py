"""Packaging rule and deduction ledger models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glowstock.db.base import Base


class DeductionType(str, Enum):
    """How a packaging rule scales with the order."""

    PER_ORDER = "per_order"
    PER_ITEM = "per_item"


class AppliesTo(str, Enum):
    """Which orders a packaging rule fires for."""

    ALL = "all"
    SPECIFIC = "specific"


class PackagingRule(Base):
    """Auxiliary material (box, tape, tissue) consumed when an order is packed."""

    __tablename__ = "packaging_rules"

    id: Mapped[int] = mapped_column(primary_key=True)
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True
    )
    deduction_type: Mapped[DeductionType] = mapped_column(
        SQLEnum(DeductionType), default=DeductionType.PER_ORDER, nullable=False
    )
    applies_to: Mapped[AppliesTo] = mapped_column(
        SQLEnum(AppliesTo), default=AppliesTo.ALL, nullable=False
    )
    quantity_single: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    quantity_multiple: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    material: Mapped["Material"] = relationship("Material")
    targets: Mapped[list["PackagingRuleTarget"]] = relationship(
        "PackagingRuleTarget", back_populates="rule", cascade="all, delete-orphan"
    )

    @property
    def target_product_ids(self) -> set[int]:
        return {t.target_id for t in self.targets}


class PackagingRuleTarget(Base):
    """Product or variant id a ``specific`` rule is limited to."""

    __tablename__ = "packaging_rule_targets"
    __table_args__ = (
        UniqueConstraint("rule_id", "target_id", name="uq_packaging_rule_target"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    rule_id: Mapped[int] = mapped_column(
        ForeignKey("packaging_rules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Matched against both product ids and variant ids, so no FK
    target_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    rule: Mapped["PackagingRule"] = relationship("PackagingRule", back_populates="targets")


class OrderMaterialDeduction(Base):
    """Ledger of packaging material deducted for an order (one row per material)."""

    __tablename__ = "order_material_deductions"
    __table_args__ = (
        UniqueConstraint("order_id", "material_id", name="uq_order_material_deduction"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id"), nullable=False, index=True
    )
    quantity_deducted: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
