"""Stock Engine - deducts and restores stock for orders.

Flow:
1. Order placed: consume_order_stock takes item stock and BOM materials.
2. Order packed / enters processing: deduct_packaging takes the packaging
   materials from every matching rule and records each one in the ledger.
3. Order cancelled or deleted: restore_order_stock gives back item stock,
   BOM materials and exactly the packaging the ledger recorded.

Every single stock change runs in its own SAVEPOINT. A failure rolls back
that change only and is reported in the returned StockOperationResult; the
loop always continues. Operations never raise for partial failures.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from glowstock.models.order import OrderItem
from glowstock.models.stock import MovementReason
from glowstock.services.bom_index import BomIndex
from glowstock.services.deduction_ledger import DeductionLedger
from glowstock.services.packaging_rules import PackagingRuleSet
from glowstock.services.stock_store import (
    ItemRef,
    ItemStockStore,
    MaterialStore,
    StockNotFoundError,
    ZERO,
)

logger = logging.getLogger(__name__)


class ItemOutcome(str, Enum):
    """Outcome of a single stock change."""

    OK = "ok"
    NOT_FOUND = "not_found"  # Material, product or variant does not exist
    WRITE_FAILED = "write_failed"  # Database error, change rolled back
    SKIPPED = "skipped"  # Already applied (ledger guard)


@dataclass
class StockChange:
    kind: str  # material, product, variant
    target_id: Optional[int]
    quantity: Decimal
    outcome: ItemOutcome
    detail: Optional[str] = None
    new_quantity: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "target_id": self.target_id,
            "quantity": float(self.quantity),
            "outcome": self.outcome.value,
            "detail": self.detail,
            "new_quantity": float(self.new_quantity) if self.new_quantity is not None else None,
        }


@dataclass
class StockOperationResult:
    operation: str
    order_id: int
    changes: List[StockChange] = field(default_factory=list)

    @property
    def failed(self) -> List[StockChange]:
        return [
            c for c in self.changes
            if c.outcome in (ItemOutcome.NOT_FOUND, ItemOutcome.WRITE_FAILED)
        ]

    @property
    def success(self) -> bool:
        return not self.failed

    def outcomes(self, outcome: ItemOutcome) -> List[StockChange]:
        return [c for c in self.changes if c.outcome == outcome]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "order_id": self.order_id,
            "success": self.success,
            "changes": [c.to_dict() for c in self.changes],
            "failed": len(self.failed),
        }


class StockEngine:
    """Applies order-driven stock changes on one session.

    All collaborators share ``db``, so the stores, the BOM index, the rule
    set and the ledger all see and write the same transaction. Pass
    ``commit=False`` when the caller commits together with its own changes
    (OrderService does, so a status flip and its stock effects land at once).
    """

    def __init__(self, db: Session):
        self.db = db
        self.materials = MaterialStore(db)
        self.items = ItemStockStore(db)
        self.bom = BomIndex(db)
        self.rules = PackagingRuleSet(db)
        self.ledger = DeductionLedger(db)

    def _order_lines(self, order_id: int) -> List[OrderItem]:
        return self.db.query(OrderItem).filter(
            OrderItem.order_id == order_id
        ).order_by(OrderItem.id).all()

    def _apply(
        self,
        kind: str,
        target_id: Optional[int],
        quantity: Decimal,
        change: Callable[[], Any],
        ledger_insert: bool = False,
    ) -> StockChange:
        """Run one stock change inside a savepoint and classify the outcome.

        With ``ledger_insert`` an IntegrityError means another run recorded the
        same (order, material) first and the change is reported as skipped.
        Anywhere else it is a failed write.
        """
        try:
            with self.db.begin_nested():
                new_quantity = change()
        except StockNotFoundError as e:
            logger.error(f"{kind} {target_id} skipped: {e}")
            return StockChange(kind, target_id, quantity, ItemOutcome.NOT_FOUND, detail=str(e))
        except IntegrityError as e:
            if ledger_insert:
                logger.warning(f"{kind} {target_id} already recorded by a concurrent run: {e.orig}")
                return StockChange(kind, target_id, quantity, ItemOutcome.SKIPPED, detail="already deducted")
            logger.error(f"Stock write failed for {kind} {target_id}: {e.orig}")
            return StockChange(kind, target_id, quantity, ItemOutcome.WRITE_FAILED, detail=str(e.orig))
        except SQLAlchemyError as e:
            logger.error(f"Stock write failed for {kind} {target_id}: {e}")
            return StockChange(kind, target_id, quantity, ItemOutcome.WRITE_FAILED, detail=str(e))

        return StockChange(
            kind, target_id, quantity, ItemOutcome.OK,
            new_quantity=Decimal(str(new_quantity)) if new_quantity is not None else None,
        )

    def _finish(self, result: StockOperationResult, commit: bool) -> StockOperationResult:
        if commit:
            self.db.commit()
        if result.failed:
            logger.warning(
                f"{result.operation} for order {result.order_id}: "
                f"{len(result.failed)} of {len(result.changes)} changes failed"
            )
        else:
            logger.info(
                f"{result.operation} for order {result.order_id}: {len(result.changes)} changes applied"
            )
        return result

    # ===== PACKAGING =====

    def packaging_plan(self, order_id: int) -> Dict[int, Decimal]:
        """Material id -> quantity the active rules would deduct for the order."""
        rules = self.rules.active_rules()
        if not rules:
            return {}
        lines = self._order_lines(order_id)
        if not lines:
            return {}

        total_item_count = sum(line.quantity for line in lines)
        plan: Dict[int, Decimal] = {}
        for rule in rules:
            if not self.rules.applies_to_order(rule, lines):
                continue
            quantity = self.rules.quantity_for(rule, total_item_count)
            if quantity <= 0:
                continue
            plan[rule.material_id] = plan.get(rule.material_id, ZERO) + quantity
        return plan

    def _deduct_packaging_material(self, order_id: int, material_id: int, quantity: Decimal) -> Decimal:
        old_qty = self.materials.get_stock(material_id)
        new_qty = self.materials.adjust_stock(
            material_id, -quantity,
            reason=MovementReason.PACKAGING, ref_type="order", ref_id=order_id,
        )
        # Record what actually left stock so a restore is exact
        self.ledger.record(order_id, material_id, old_qty - new_qty)
        return new_qty

    def deduct_packaging(self, order_id: int, commit: bool = True) -> StockOperationResult:
        """Deduct packaging materials for an order, at most once per material."""
        result = StockOperationResult("deduct_packaging", order_id)

        plan = self.packaging_plan(order_id)
        if not plan:
            logger.info(f"No packaging to deduct for order {order_id}")
            return result

        recorded = {e.material_id for e in self.ledger.entries_for(order_id)}
        if recorded and recorded.issuperset(plan):
            logger.info(f"Packaging for order {order_id} already deducted")
            return result

        for material_id, quantity in plan.items():
            if self.ledger.has_deduction(order_id, material_id):
                result.changes.append(StockChange(
                    "material", material_id, quantity, ItemOutcome.SKIPPED, detail="already deducted",
                ))
                continue
            result.changes.append(self._apply(
                "material", material_id, quantity,
                partial(self._deduct_packaging_material, order_id, material_id, quantity),
                ledger_insert=True,
            ))

        return self._finish(result, commit)

    def _restore_packaging_entry(self, order_id: int, entry) -> Decimal:
        new_qty = self.materials.adjust_stock(
            entry.material_id, entry.quantity_deducted,
            reason=MovementReason.PACKAGING_RESTORE, ref_type="order", ref_id=order_id,
        )
        self.ledger.remove(entry)
        return new_qty

    def _restore_packaging(self, order_id: int, result: StockOperationResult) -> None:
        entries = self.ledger.entries_for(order_id)
        if not entries:
            return

        restored = 0
        for entry in entries:
            # Stock and ledger row go together: a failed restore keeps its row
            change = self._apply(
                "material", entry.material_id, entry.quantity_deducted,
                partial(self._restore_packaging_entry, order_id, entry),
            )
            result.changes.append(change)
            if change.outcome == ItemOutcome.OK:
                restored += 1

        remaining = len(entries) - restored
        if remaining:
            logger.warning(f"Order {order_id}: {remaining} packaging ledger entries kept for retry")
        logger.info(f"Cleared {restored} packaging ledger entries for order {order_id}")

    def restore_packaging_for_order(self, order_id: int, commit: bool = True) -> StockOperationResult:
        """Give back exactly the packaging the ledger recorded, removing each restored row."""
        result = StockOperationResult("restore_packaging", order_id)
        self._restore_packaging(order_id, result)
        return self._finish(result, commit)

    # ===== LINE ITEMS =====

    def _apply_lines(
        self,
        order_id: int,
        lines: List[OrderItem],
        sign: int,
        reason: MovementReason,
        result: StockOperationResult,
    ) -> None:
        """Move item stock and BOM materials by ``sign * line.quantity`` per line."""
        for line in lines:
            ref = ItemRef.for_line(line)
            if ref is None:
                result.changes.append(StockChange(
                    "product", None, Decimal(line.quantity), ItemOutcome.NOT_FOUND,
                    detail=f"Order line {line.id} has no product or variant",
                ))
                continue

            item_change = self._apply(
                ref.kind, ref.target_id, Decimal(line.quantity),
                partial(
                    self.items.adjust_stock, ref, sign * line.quantity,
                    reason=reason, ref_type="order", ref_id=order_id,
                ),
            )
            result.changes.append(item_change)
            if item_change.outcome == ItemOutcome.NOT_FOUND:
                continue

            for requirement in self.bom.materials_for(ref):
                quantity = requirement.quantity_per_unit * line.quantity
                result.changes.append(self._apply(
                    "material", requirement.material_id, quantity,
                    partial(
                        self.materials.adjust_stock, requirement.material_id, sign * quantity,
                        reason=reason, ref_type="order", ref_id=order_id,
                    ),
                ))

    def consume_order_stock(self, order_id: int, commit: bool = True) -> StockOperationResult:
        """Take item stock and BOM materials for a newly placed order."""
        result = StockOperationResult("consume_order_stock", order_id)
        lines = self._order_lines(order_id)
        if not lines:
            return result
        self._apply_lines(order_id, lines, -1, MovementReason.SALE, result)
        return self._finish(result, commit)

    def restore_order_stock(self, order_id: int, commit: bool = True) -> StockOperationResult:
        """Give back item stock, BOM materials and ledger-tracked packaging.

        Must run while the order's lines still exist, i.e. before the order is
        deleted.
        """
        result = StockOperationResult("restore_order_stock", order_id)
        lines = self._order_lines(order_id)
        if not lines:
            logger.info(f"Order {order_id} has no lines to restore")
            return result

        self._apply_lines(order_id, lines, 1, MovementReason.RESTORE, result)
        self._restore_packaging(order_id, result)
        return self._finish(result, commit)
