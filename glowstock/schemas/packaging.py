"""Packaging rule schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from glowstock.models.packaging import AppliesTo, DeductionType


class PackagingRuleIn(BaseModel):
    """Packaging rule create/update schema."""

    material_id: int
    deduction_type: DeductionType = DeductionType.PER_ORDER
    applies_to: AppliesTo = AppliesTo.ALL
    quantity_single: Decimal = Field(default=Decimal("0"), ge=0)
    quantity_multiple: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True
    product_ids: List[int] = []


class PackagingRuleResponse(BaseModel):
    """Packaging rule response schema."""

    id: int
    material_id: int
    deduction_type: DeductionType
    applies_to: AppliesTo
    quantity_single: Decimal
    quantity_multiple: Decimal
    is_active: bool
    product_ids: List[int] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_rule(cls, rule) -> "PackagingRuleResponse":
        return cls(
            id=rule.id,
            material_id=rule.material_id,
            deduction_type=rule.deduction_type,
            applies_to=rule.applies_to,
            quantity_single=rule.quantity_single,
            quantity_multiple=rule.quantity_multiple,
            is_active=rule.is_active,
            product_ids=sorted(rule.target_product_ids),
            created_at=rule.created_at,
        )
