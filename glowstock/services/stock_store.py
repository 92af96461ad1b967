"""Stock stores for materials, products and product variants.

Every store takes the caller's SQLAlchemy session and only flushes, so an
engine operation can span several stores inside one transaction. Each stock
change is floored at zero and written to the StockMovement log with the
delta that was actually applied.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from glowstock.models.material import Material
from glowstock.models.product import Product, ProductVariant
from glowstock.models.stock import MovementReason, StockMovement

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class StockNotFoundError(Exception):
    """Raised when a stock record (material, product, variant) does not exist."""

    kind = "item"

    def __init__(self, target_id: Optional[int]):
        self.target_id = target_id
        super().__init__(f"{self.kind.capitalize()} {target_id} not found")


class MaterialNotFoundError(StockNotFoundError):
    kind = "material"


class ProductNotFoundError(StockNotFoundError):
    kind = "product"


class VariantNotFoundError(StockNotFoundError):
    kind = "variant"


@dataclass(frozen=True)
class ItemRef:
    """Reference to a sellable item: a product or one of its variants."""

    product_id: Optional[int] = None
    variant_id: Optional[int] = None

    def __post_init__(self):
        if (self.product_id is None) == (self.variant_id is None):
            raise ValueError("Exactly one of product_id / variant_id must be set")

    @property
    def kind(self) -> str:
        return "variant" if self.variant_id is not None else "product"

    @property
    def target_id(self) -> int:
        return self.variant_id if self.variant_id is not None else self.product_id

    @classmethod
    def for_line(cls, line) -> Optional["ItemRef"]:
        """Build a ref from an order line. A variant id wins over a product id."""
        if line.variant_id is not None:
            return cls(variant_id=line.variant_id)
        if line.product_id is not None:
            return cls(product_id=line.product_id)
        return None


def _reason_value(reason: Union[MovementReason, str]) -> str:
    return reason.value if isinstance(reason, MovementReason) else str(reason)


class MaterialStore:
    """Reads and adjusts material stock."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, material_id: int) -> Material:
        material = self.db.query(Material).filter(Material.id == material_id).first()
        if not material:
            raise MaterialNotFoundError(material_id)
        return material

    def get_stock(self, material_id: int) -> Decimal:
        return self.get(material_id).stock_quantity or ZERO

    def adjust_stock(
        self,
        material_id: int,
        delta: Decimal,
        reason: Union[MovementReason, str] = MovementReason.ADJUSTMENT,
        ref_type: Optional[str] = None,
        ref_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Decimal:
        """Apply ``new = max(0, old + delta)`` and return the new quantity."""
        material = self.get(material_id)
        delta = Decimal(str(delta))

        old_qty = material.stock_quantity or ZERO
        new_qty = old_qty + delta
        if new_qty < 0:
            logger.warning(
                f"Material {material_id} ('{material.name}') floored at 0: "
                f"had {old_qty}, requested {delta}"
            )
            new_qty = ZERO

        material.stock_quantity = new_qty
        self.db.add(StockMovement(
            material_id=material_id,
            qty_delta=new_qty - old_qty,
            reason=_reason_value(reason),
            ref_type=ref_type,
            ref_id=ref_id,
            notes=notes,
        ))
        self.db.flush()
        return new_qty

    def adjust_price(self, material_id: int, unit_price: Decimal) -> Material:
        if Decimal(str(unit_price)) < 0:
            raise ValueError("unit_price must be >= 0")
        material = self.get(material_id)
        material.unit_price = Decimal(str(unit_price))
        self.db.flush()
        return material

    def low_stock(self) -> List[Material]:
        """Materials at or below their low-stock threshold."""
        materials = self.db.query(Material).order_by(Material.name).all()
        return [m for m in materials if m.is_low]


class ItemStockStore:
    """Reads and adjusts the sellable stock of products and variants."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, ref: ItemRef) -> Union[Product, ProductVariant]:
        if ref.variant_id is not None:
            variant = self.db.query(ProductVariant).filter(ProductVariant.id == ref.variant_id).first()
            if not variant:
                raise VariantNotFoundError(ref.variant_id)
            return variant

        product = self.db.query(Product).filter(Product.id == ref.product_id).first()
        if not product:
            raise ProductNotFoundError(ref.product_id)
        return product

    def get_stock(self, ref: ItemRef) -> int:
        return self.get(ref).stock or 0

    def adjust_stock(
        self,
        ref: ItemRef,
        delta: int,
        reason: Union[MovementReason, str] = MovementReason.ADJUSTMENT,
        ref_type: Optional[str] = None,
        ref_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Apply ``new = max(0, old + delta)`` and return the new stock count."""
        item = self.get(ref)
        old_qty = item.stock or 0
        new_qty = max(0, old_qty + int(delta))
        if old_qty + int(delta) < 0:
            logger.warning(
                f"{ref.kind.capitalize()} {ref.target_id} stock floored at 0: "
                f"had {old_qty}, requested {delta}"
            )

        item.stock = new_qty
        self.db.add(StockMovement(
            product_id=ref.product_id,
            variant_id=ref.variant_id,
            qty_delta=Decimal(new_qty - old_qty),
            reason=_reason_value(reason),
            ref_type=ref_type,
            ref_id=ref_id,
            notes=notes,
        ))
        self.db.flush()
        return new_qty
