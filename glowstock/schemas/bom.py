"""Bill of Materials schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class BomEntryIn(BaseModel):
    """One material line of a BOM."""

    material_id: int
    quantity_per_unit: Decimal = Field(gt=0)


class BomReplaceRequest(BaseModel):
    """Full replacement of an item's BOM."""

    entries: List[BomEntryIn] = []

    @field_validator("entries")
    @classmethod
    def unique_materials(cls, v: List[BomEntryIn]) -> List[BomEntryIn]:
        ids = [e.material_id for e in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each material may appear only once")
        return v


class BomEntryResponse(BaseModel):
    """BOM entry response schema."""

    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    material_id: int
    quantity_per_unit: Decimal

    model_config = {"from_attributes": True}


class BomCostResponse(BaseModel):
    """Material cost of one unit of an item."""

    kind: str
    target_id: int
    unit_cost: Decimal
