"""Bill of Materials lookups and editing."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from glowstock.models.bom import BomEntry
from glowstock.services.stock_store import ItemRef, ItemStockStore, MaterialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BomRequirement:
    """Material consumed per unit of an item."""

    material_id: int
    quantity_per_unit: Decimal


class BomIndex:
    """Maps a product or variant to the materials it consumes.

    A variant line only ever sees entries keyed by its variant_id; a product
    line only sees entries keyed by its product_id with no variant_id. The two
    sets are never merged, so a variant with its own BOM is not also charged
    for the parent product's BOM.
    """

    def __init__(self, db: Session):
        self.db = db

    def entries_for(self, ref: ItemRef) -> List[BomEntry]:
        query = self.db.query(BomEntry)
        if ref.variant_id is not None:
            query = query.filter(BomEntry.variant_id == ref.variant_id)
        else:
            query = query.filter(
                BomEntry.product_id == ref.product_id,
                BomEntry.variant_id.is_(None),
            )
        return query.order_by(BomEntry.id).all()

    def materials_for(self, ref: ItemRef) -> List[BomRequirement]:
        return [
            BomRequirement(material_id=e.material_id, quantity_per_unit=e.quantity_per_unit)
            for e in self.entries_for(ref)
        ]

    def replace_entries(
        self,
        ref: ItemRef,
        entries: Iterable[Tuple[int, Decimal]],
    ) -> List[BomEntry]:
        """Replace the whole BOM of an item with ``(material_id, quantity_per_unit)`` pairs."""
        ItemStockStore(self.db).get(ref)
        materials = MaterialStore(self.db)

        pairs = [(material_id, Decimal(str(qty))) for material_id, qty in entries]
        seen = set()
        for material_id, qty in pairs:
            if qty <= 0:
                raise ValueError(f"quantity_per_unit must be > 0 (material {material_id})")
            if material_id in seen:
                raise ValueError(f"Material {material_id} listed more than once")
            seen.add(material_id)
            materials.get(material_id)

        for entry in self.entries_for(ref):
            self.db.delete(entry)
        self.db.flush()

        created = []
        for material_id, qty in pairs:
            entry = BomEntry(
                product_id=ref.product_id,
                variant_id=ref.variant_id,
                material_id=material_id,
                quantity_per_unit=qty,
            )
            self.db.add(entry)
            created.append(entry)
        self.db.flush()

        logger.info(f"BOM for {ref.kind} {ref.target_id} replaced with {len(created)} entries")
        return created

    def unit_cost(self, ref: ItemRef) -> Decimal:
        """Material cost of one unit of the item."""
        total = Decimal("0")
        for entry in self.entries_for(ref):
            total += entry.quantity_per_unit * (entry.material.unit_price or Decimal("0"))
        return total
