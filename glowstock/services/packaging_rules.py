"""Packaging rules: which auxiliary materials an order consumes when packed."""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from glowstock.models.packaging import AppliesTo, DeductionType, PackagingRule, PackagingRuleTarget
from glowstock.services.stock_store import MaterialStore

logger = logging.getLogger(__name__)


class PackagingRuleNotFoundError(Exception):
    """Raised when a packaging rule id does not exist."""
    def __init__(self, rule_id: int):
        self.rule_id = rule_id
        super().__init__(f"Packaging rule {rule_id} not found")


class PackagingRuleSet:
    """Evaluates and maintains packaging rules."""

    def __init__(self, db: Session):
        self.db = db

    # ===== EVALUATION =====

    def active_rules(self) -> List[PackagingRule]:
        return self.db.query(PackagingRule).filter(
            PackagingRule.is_active.is_(True)
        ).order_by(PackagingRule.id).all()

    @staticmethod
    def applies_to_order(rule: PackagingRule, line_refs: Iterable[Any]) -> bool:
        """True if the rule fires for an order with these lines.

        ``line_refs`` are anything with ``product_id`` and ``variant_id``
        attributes (order lines or ItemRefs). Target ids are matched against
        both.
        """
        if rule.applies_to == AppliesTo.ALL:
            return True

        targets = rule.target_product_ids
        if not targets:
            return False
        for line in line_refs:
            if line.product_id is not None and line.product_id in targets:
                return True
            if line.variant_id is not None and line.variant_id in targets:
                return True
        return False

    @staticmethod
    def quantity_for(rule: PackagingRule, total_item_count: int) -> Decimal:
        """Amount of the rule's material an order of ``total_item_count`` items uses."""
        base = rule.quantity_single if total_item_count <= 1 else rule.quantity_multiple
        base = Decimal(str(base or 0))
        if rule.deduction_type == DeductionType.PER_ITEM:
            return base * total_item_count
        return base

    # ===== ADMIN =====

    def list_rules(self) -> List[PackagingRule]:
        return self.db.query(PackagingRule).order_by(PackagingRule.id).all()

    def get_rule(self, rule_id: int) -> PackagingRule:
        rule = self.db.query(PackagingRule).filter(PackagingRule.id == rule_id).first()
        if not rule:
            raise PackagingRuleNotFoundError(rule_id)
        return rule

    def save_rule(self, data: Dict[str, Any], rule_id: Optional[int] = None) -> PackagingRule:
        """Create a rule, or update ``rule_id`` in place.

        Missing fields fall back to ``per_order`` / ``all`` / 0 / 0 / active.
        An ``all`` rule has its targets cleared; a ``specific`` rule has them
        replaced by ``product_ids``.
        """
        material_id = data.get("material_id")
        if material_id is None:
            raise ValueError("material_id is required")
        MaterialStore(self.db).get(material_id)

        if rule_id is None:
            rule = PackagingRule()
            self.db.add(rule)
        else:
            rule = self.get_rule(rule_id)

        rule.material_id = material_id
        rule.deduction_type = DeductionType(data.get("deduction_type") or DeductionType.PER_ORDER)
        rule.applies_to = AppliesTo(data.get("applies_to") or AppliesTo.ALL)
        rule.quantity_single = Decimal(str(data.get("quantity_single") or 0))
        rule.quantity_multiple = Decimal(str(data.get("quantity_multiple") or 0))
        is_active = data.get("is_active")
        rule.is_active = True if is_active is None else bool(is_active)

        # Old targets must be gone before new ones hit uq_packaging_rule_target
        rule.targets = []
        self.db.flush()
        if rule.applies_to == AppliesTo.SPECIFIC:
            product_ids = sorted(set(data.get("product_ids") or []))
            rule.targets = [PackagingRuleTarget(target_id=pid) for pid in product_ids]
            self.db.flush()

        logger.info(
            f"Packaging rule {rule.id} saved: material={rule.material_id} "
            f"{rule.deduction_type.value}/{rule.applies_to.value} targets={len(rule.targets)}"
        )
        return rule

    def delete_rule(self, rule_id: int) -> None:
        rule = self.get_rule(rule_id)
        self.db.delete(rule)
        self.db.flush()
        logger.info(f"Packaging rule {rule_id} deleted")
