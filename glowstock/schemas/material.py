"""Material schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class MaterialCreate(BaseModel):
    """Material creation schema."""

    name: str = Field(min_length=1, max_length=255)
    unit: str = "g"
    stock_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    low_stock_threshold: Optional[Decimal] = Field(default=None, ge=0)


class MaterialUpdate(BaseModel):
    """Material update schema. Stock changes go through /adjust."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    low_stock_threshold: Optional[Decimal] = Field(default=None, ge=0)


class MaterialResponse(BaseModel):
    """Material response schema."""

    id: int
    name: str
    unit: str
    stock_quantity: Decimal
    unit_price: Decimal
    low_stock_threshold: Optional[Decimal] = None
    is_low: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MaterialStockAdjust(BaseModel):
    """Manual stock adjustment. The result is floored at zero."""

    delta: Decimal
    notes: Optional[str] = None
