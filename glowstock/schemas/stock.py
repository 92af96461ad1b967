"""Stock movement schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class StockMovementResponse(BaseModel):
    """Stock movement response schema."""

    id: int
    ts: datetime
    material_id: Optional[int] = None
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    qty_delta: Decimal
    reason: str
    ref_type: Optional[str] = None
    ref_id: Optional[int] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}
