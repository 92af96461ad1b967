"""Storefront order schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from glowstock.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    """Order line: a product or a variant, never both."""

    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: int = Field(gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def exactly_one_item(self):
        if (self.product_id is None) == (self.variant_id is None):
            raise ValueError("Exactly one of product_id or variant_id is required")
        return self


class OrderCreate(BaseModel):
    """Order creation schema."""

    customer_name: Optional[str] = None
    items: List[OrderItemCreate] = Field(min_length=1)


class OrderItemResponse(BaseModel):
    """Order line response schema."""

    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: int
    unit_price: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    """Order response schema."""

    id: int
    customer_name: Optional[str] = None
    status: OrderStatus
    packed: bool
    total_items: int
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []

    model_config = {"from_attributes": True}


class OrderStatusUpdate(BaseModel):
    """Order status change request."""

    status: OrderStatus


class PackOrdersRequest(BaseModel):
    """Pack a batch of orders."""

    order_ids: List[int] = Field(min_length=1)


class OrderDeductionResponse(BaseModel):
    """Packaging ledger entry."""

    id: int
    order_id: int
    material_id: int
    quantity_deducted: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}
