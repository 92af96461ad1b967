"""Shared test helpers."""

from decimal import Decimal

from sqlalchemy.orm import Session

from glowstock.models.material import Material
from glowstock.models.order import Order, OrderItem, OrderStatus
from glowstock.models.product import Product, ProductVariant


def make_order(db_session: Session, *lines, status: OrderStatus = OrderStatus.PENDING) -> int:
    """Insert an order directly, without consuming any stock.

    Each line is ``("product" | "variant", id, quantity)``.
    """
    order = Order(customer_name="Test Customer", status=status)
    for kind, target_id, quantity in lines:
        order.items.append(OrderItem(
            product_id=target_id if kind == "product" else None,
            variant_id=target_id if kind == "variant" else None,
            quantity=quantity,
        ))
    db_session.add(order)
    db_session.commit()
    return order.id


def material_stock(db_session: Session, material_id: int) -> Decimal:
    db_session.expire_all()
    return db_session.get(Material, material_id).stock_quantity


def product_stock(db_session: Session, product_id: int) -> int:
    db_session.expire_all()
    return db_session.get(Product, product_id).stock


def variant_stock(db_session: Session, variant_id: int) -> int:
    db_session.expire_all()
    return db_session.get(ProductVariant, variant_id).stock
