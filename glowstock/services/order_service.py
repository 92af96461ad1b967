"""Order lifecycle: creation, status changes, packing and deletion.

Stock effects are committed together with the order change they belong to:
a cancelled status is never written without its restoration, and an order is
never deleted before its stock has been given back.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from glowstock.models.order import Order, OrderItem, OrderStatus
from glowstock.services.stock_engine import StockEngine, StockOperationResult
from glowstock.services.stock_store import ItemRef

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class OrderNotFoundError(Exception):
    """Raised when an order id does not exist."""
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class InvalidStatusTransition(Exception):
    """Raised when an order cannot move to the requested status."""
    def __init__(self, current: OrderStatus, requested: OrderStatus):
        self.current = current
        self.requested = requested
        allowed = sorted(s.value for s in ALLOWED_TRANSITIONS.get(current, set()))
        super().__init__(
            f"Cannot change order status from '{current.value}' to '{requested.value}'. "
            f"Allowed: {allowed or 'none'}"
        )


class InsufficientStockError(Exception):
    """Raised when an order asks for more of an item than is in stock."""
    def __init__(self, ref: ItemRef, requested: int, available: int):
        self.ref = ref
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {ref.kind} {ref.target_id}: "
            f"requested {requested}, available {available}"
        )


class OrderService:
    """Service for the storefront order lifecycle."""

    def __init__(self, db: Session, engine: Optional[StockEngine] = None):
        self.db = db
        self.engine = engine or StockEngine(db)

    def get(self, order_id: int) -> Order:
        order = self.db.query(Order).options(selectinload(Order.items)).filter(
            Order.id == order_id
        ).first()
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        total = query.count()
        orders = query.options(selectinload(Order.items)).order_by(
            Order.created_at.desc(), Order.id.desc()
        ).offset(offset).limit(limit).all()
        return orders, total

    def create_order(
        self,
        customer_name: Optional[str],
        items: List[Dict[str, Any]],
    ) -> Tuple[Order, StockOperationResult]:
        """Create a pending order and consume its stock.

        Each item is a dict with ``quantity`` and exactly one of
        ``product_id`` / ``variant_id``. Unknown products or variants, and
        items ordered beyond their stock, raise before anything is written.
        """
        if not items:
            raise ValueError("An order needs at least one item")

        order = Order(customer_name=customer_name, status=OrderStatus.PENDING, packed=False)
        requested: Dict[ItemRef, int] = {}
        for item in items:
            quantity = int(item.get("quantity") or 0)
            if quantity <= 0:
                raise ValueError("Item quantity must be > 0")
            ref = ItemRef(product_id=item.get("product_id"), variant_id=item.get("variant_id"))
            stock_item = self.engine.items.get(ref)

            requested[ref] = requested.get(ref, 0) + quantity
            available = stock_item.stock or 0
            if requested[ref] > available:
                raise InsufficientStockError(ref, requested[ref], available)

            unit_price = item.get("unit_price")
            if unit_price is None:
                unit_price = stock_item.price
            order.items.append(OrderItem(
                product_id=ref.product_id,
                variant_id=ref.variant_id,
                quantity=quantity,
                unit_price=Decimal(str(unit_price)),
            ))

        self.db.add(order)
        self.db.flush()

        stock = self.engine.consume_order_stock(order.id, commit=False)
        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order {order.id} created with {len(order.items)} lines ({order.total_items} items)")
        return order, stock

    def change_status(
        self,
        order_id: int,
        new_status: OrderStatus,
    ) -> Tuple[Order, Optional[StockOperationResult]]:
        """Move an order along its lifecycle, applying the stock effect of the move."""
        order = self.get(order_id)
        new_status = OrderStatus(new_status)
        current = order.status

        if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidStatusTransition(current, new_status)

        stock = None
        if new_status == OrderStatus.PROCESSING:
            stock = self.engine.deduct_packaging(order.id, commit=False)
        elif new_status == OrderStatus.CANCELLED:
            # Restoration first: the status only flips once stock is back
            stock = self.engine.restore_order_stock(order.id, commit=False)

        order.status = new_status
        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order {order.id} status: {current.value} -> {new_status.value}")
        return order, stock

    def delete_order(self, order_id: int) -> Optional[StockOperationResult]:
        """Delete an order, restoring its stock first unless it was cancelled."""
        order = self.get(order_id)

        stock = None
        if order.status != OrderStatus.CANCELLED:
            stock = self.engine.restore_order_stock(order.id, commit=False)

        self.db.delete(order)
        self.db.commit()

        logger.info(f"Order {order_id} deleted (stock restored: {stock is not None})")
        return stock

    def pack_orders(self, order_ids: List[int]) -> List[Dict[str, Any]]:
        """Deduct packaging for each order and mark it packed."""
        results = []
        for order_id in order_ids:
            try:
                order = self.get(order_id)
            except OrderNotFoundError as e:
                results.append({"order_id": order_id, "success": False, "error": str(e)})
                continue

            if order.status == OrderStatus.CANCELLED:
                results.append({
                    "order_id": order_id,
                    "success": False,
                    "error": "Cancelled orders cannot be packed",
                })
                continue

            stock = self.engine.deduct_packaging(order.id, commit=False)
            order.packed = True
            self.db.commit()

            results.append({
                "order_id": order_id,
                "success": stock.success,
                "packaging": stock.to_dict(),
            })

        packed = sum(1 for r in results if r["success"])
        logger.info(f"Packed {packed} of {len(order_ids)} orders")
        return results
