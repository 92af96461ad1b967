"""Packaging deduction ledger: one row per (order, material) deducted."""

from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from glowstock.models.packaging import OrderMaterialDeduction


class DeductionLedger:
    """Append-only log used as the idempotency guard and for exact reversal."""

    def __init__(self, db: Session):
        self.db = db

    def has_deductions_for(self, order_id: int) -> bool:
        return self.db.query(OrderMaterialDeduction.id).filter(
            OrderMaterialDeduction.order_id == order_id
        ).first() is not None

    def has_deduction(self, order_id: int, material_id: int) -> bool:
        return self.db.query(OrderMaterialDeduction.id).filter(
            OrderMaterialDeduction.order_id == order_id,
            OrderMaterialDeduction.material_id == material_id,
        ).first() is not None

    def record(self, order_id: int, material_id: int, quantity: Decimal) -> OrderMaterialDeduction:
        entry = OrderMaterialDeduction(
            order_id=order_id,
            material_id=material_id,
            quantity_deducted=Decimal(str(quantity)),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def entries_for(self, order_id: int) -> List[OrderMaterialDeduction]:
        return self.db.query(OrderMaterialDeduction).filter(
            OrderMaterialDeduction.order_id == order_id
        ).order_by(OrderMaterialDeduction.id).all()

    def clear(self, order_id: int) -> int:
        deleted = self.db.query(OrderMaterialDeduction).filter(
            OrderMaterialDeduction.order_id == order_id
        ).delete(synchronize_session=False)
        self.db.flush()
        return deleted

    def remove(self, entry: OrderMaterialDeduction) -> None:
        self.db.delete(entry)
        self.db.flush()
