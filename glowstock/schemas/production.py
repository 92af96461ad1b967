"""Production run schemas."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ProductionRequest(BaseModel):
    """Production run for a product or one of its variants."""

    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    qty: int = Field(gt=0)

    @model_validator(mode="after")
    def exactly_one_item(self):
        if (self.product_id is None) == (self.variant_id is None):
            raise ValueError("Exactly one of product_id or variant_id is required")
        return self
