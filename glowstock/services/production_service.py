"""Production runs: turn materials into finished product or variant stock."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from glowstock.models.stock import MovementReason
from glowstock.services.bom_index import BomIndex
from glowstock.services.stock_store import ItemRef, ItemStockStore, MaterialStore

logger = logging.getLogger(__name__)


class InsufficientMaterialsError(Exception):
    """Raised when a production run needs more material than is in stock."""
    def __init__(self, shortages: List[Dict[str, Any]]):
        self.shortages = shortages
        names = ", ".join(s["name"] for s in shortages)
        super().__init__(f"Insufficient materials: {names}")


class ProductionService:
    """Plans and completes production runs from an item's BOM.

    A product run uses the product-level BOM; a variant run uses the
    variant's own BOM, the same split order lines use.
    """

    def __init__(self, db: Session):
        self.db = db
        self.materials = MaterialStore(db)
        self.items = ItemStockStore(db)
        self.bom = BomIndex(db)

    def requirements(
        self,
        product_id: Optional[int],
        qty: int,
        variant_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Material needs for ``qty`` units against what is in stock."""
        if qty <= 0:
            raise ValueError("qty must be > 0")
        ref = ItemRef(product_id=product_id, variant_id=variant_id)
        self.items.get(ref)

        rows = []
        for entry in self.bom.entries_for(ref):
            material = entry.material
            need = entry.quantity_per_unit * qty
            available = material.stock_quantity or Decimal("0")
            rows.append({
                "material_id": material.id,
                "name": material.name,
                "unit": material.unit,
                "need_qty": need,
                "available": available,
                "unit_price": material.unit_price,
                "shortage": max(Decimal("0"), need - available),
            })
        return rows

    def complete(
        self,
        product_id: Optional[int],
        qty: int,
        variant_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Consume materials and add ``qty`` to the item's stock in one transaction."""
        requirements = self.requirements(product_id, qty, variant_id=variant_id)
        ref = ItemRef(product_id=product_id, variant_id=variant_id)

        shortages = [r for r in requirements if r["need_qty"] > r["available"]]
        if shortages:
            logger.warning(
                f"Production of {ref.kind} {ref.target_id} x{qty} refused: {len(shortages)} shortages"
            )
            raise InsufficientMaterialsError(shortages)

        try:
            for row in requirements:
                self.materials.adjust_stock(
                    row["material_id"], -row["need_qty"],
                    reason=MovementReason.PRODUCTION, ref_type="production", ref_id=ref.target_id,
                )
            new_stock = self.items.adjust_stock(
                ref, qty,
                reason=MovementReason.PRODUCTION, ref_type="production", ref_id=ref.target_id,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Production of {ref.kind} {ref.target_id} x{qty} failed")
            raise

        logger.info(f"Produced {qty} of {ref.kind} {ref.target_id}, stock now {new_stock}")
        return {
            "product_id": product_id,
            "variant_id": variant_id,
            "qty": qty,
            "stock": new_stock,
            "materials_used": [
                {"material_id": r["material_id"], "name": r["name"], "quantity": r["need_qty"]}
                for r in requirements
            ],
        }
