"""Tests for the order lifecycle and its stock effects."""

import pytest
from decimal import Decimal

from glowstock.models.bom import BomEntry
from glowstock.models.material import Material
from glowstock.models.order import Order, OrderStatus
from glowstock.models.packaging import AppliesTo, DeductionType, PackagingRule
from glowstock.models.product import Product
from glowstock.services.deduction_ledger import DeductionLedger
from glowstock.services.order_service import (
    InsufficientStockError,
    InvalidStatusTransition,
    OrderNotFoundError,
    OrderService,
)
from glowstock.services.stock_store import ProductNotFoundError
from tests.helpers import make_order, material_stock, product_stock, variant_stock


@pytest.fixture
def placed_order(db_session, catalog, packaging):
    """A pending order for two serums, stock already consumed."""
    order, _ = OrderService(db_session).create_order(
        "Layla", [{"product_id": catalog["serum"], "quantity": 2}]
    )
    return order.id


class TestCreateOrder:
    def test_create_consumes_stock(self, db_session, catalog, placed_order):
        order = OrderService(db_session).get(placed_order)

        assert order.status == OrderStatus.PENDING
        assert order.packed is False
        assert order.total_items == 2
        assert order.items[0].unit_price == Decimal("25")
        assert product_stock(db_session, catalog["serum"]) == 18
        assert material_stock(db_session, catalog["base"]) == Decimal("940")
        assert material_stock(db_session, catalog["oil"]) == Decimal("190")

    def test_create_does_not_touch_packaging(self, db_session, catalog, placed_order):
        assert material_stock(db_session, catalog["box"]) == Decimal("100")
        assert not DeductionLedger(db_session).has_deductions_for(placed_order)

    def test_create_unknown_product(self, db_session, catalog):
        with pytest.raises(ProductNotFoundError):
            OrderService(db_session).create_order("X", [{"product_id": 99999, "quantity": 1}])
        db_session.rollback()
        assert db_session.query(Order).count() == 0

    def test_create_requires_items(self, db_session, catalog):
        with pytest.raises(ValueError):
            OrderService(db_session).create_order("X", [])

    def test_create_beyond_stock_is_refused(self, db_session, catalog):
        with pytest.raises(InsufficientStockError) as exc_info:
            OrderService(db_session).create_order("X", [{"product_id": catalog["serum"], "quantity": 30}])
        db_session.rollback()

        assert exc_info.value.requested == 30
        assert exc_info.value.available == 20
        assert db_session.query(Order).count() == 0
        assert product_stock(db_session, catalog["serum"]) == 20
        assert material_stock(db_session, catalog["base"]) == Decimal("1000")

    def test_lines_for_the_same_item_are_added_up(self, db_session, catalog):
        with pytest.raises(InsufficientStockError):
            OrderService(db_session).create_order("X", [
                {"variant_id": catalog["serum_50"], "quantity": 5},
                {"variant_id": catalog["serum_50"], "quantity": 4},
            ])
        db_session.rollback()
        assert variant_stock(db_session, catalog["serum_50"]) == 8

    def test_whole_stock_then_cancel(self, db_session, catalog):
        service = OrderService(db_session)
        order, _ = service.create_order("X", [{"product_id": catalog["serum"], "quantity": 20}])
        assert product_stock(db_session, catalog["serum"]) == 0

        service.change_status(order.id, OrderStatus.CANCELLED)

        assert product_stock(db_session, catalog["serum"]) == 20
        assert material_stock(db_session, catalog["base"]) == Decimal("1000")


class TestChangeStatus:
    def test_processing_deducts_packaging(self, db_session, catalog, placed_order):
        order, stock = OrderService(db_session).change_status(placed_order, OrderStatus.PROCESSING)

        assert order.status == OrderStatus.PROCESSING
        assert stock.success
        assert material_stock(db_session, catalog["box"]) == Decimal("99")
        assert material_stock(db_session, catalog["tissue"]) == Decimal("48")

    def test_cancel_restores_everything(self, db_session, catalog, placed_order):
        service = OrderService(db_session)
        service.change_status(placed_order, OrderStatus.PROCESSING)

        order, stock = service.change_status(placed_order, OrderStatus.CANCELLED)

        assert order.status == OrderStatus.CANCELLED
        assert stock.success
        assert product_stock(db_session, catalog["serum"]) == 20
        assert material_stock(db_session, catalog["base"]) == Decimal("1000")
        assert material_stock(db_session, catalog["box"]) == Decimal("100")
        assert material_stock(db_session, catalog["tape"]) == Decimal("500")
        assert not DeductionLedger(db_session).has_deductions_for(placed_order)

    def test_cancel_pending_order(self, db_session, catalog, placed_order):
        OrderService(db_session).change_status(placed_order, OrderStatus.CANCELLED)
        assert product_stock(db_session, catalog["serum"]) == 20
        assert material_stock(db_session, catalog["box"]) == Decimal("100")

    def test_full_lifecycle(self, db_session, catalog, placed_order):
        service = OrderService(db_session)
        for new_status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            order, _ = service.change_status(placed_order, new_status)
            assert order.status == new_status

        assert material_stock(db_session, catalog["box"]) == Decimal("99")

    @pytest.mark.parametrize("start, target", [
        (OrderStatus.PENDING, OrderStatus.SHIPPED),
        (OrderStatus.PENDING, OrderStatus.PENDING),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
    ])
    def test_invalid_transitions(self, db_session, catalog, start, target):
        order_id = make_order(db_session, ("product", catalog["serum"], 1), status=start)

        with pytest.raises(InvalidStatusTransition):
            OrderService(db_session).change_status(order_id, target)

        db_session.expire_all()
        assert db_session.get(Order, order_id).status == start
        assert product_stock(db_session, catalog["serum"]) == 20

    def test_unknown_order(self, db_session, catalog):
        with pytest.raises(OrderNotFoundError):
            OrderService(db_session).change_status(99999, OrderStatus.PROCESSING)


class TestDeleteOrder:
    def test_delete_restores_stock_first(self, db_session, catalog, placed_order):
        service = OrderService(db_session)
        service.change_status(placed_order, OrderStatus.PROCESSING)

        stock = service.delete_order(placed_order)

        assert stock is not None and stock.success
        assert db_session.get(Order, placed_order) is None
        assert product_stock(db_session, catalog["serum"]) == 20
        assert material_stock(db_session, catalog["oil"]) == Decimal("200")
        assert material_stock(db_session, catalog["box"]) == Decimal("100")

    def test_delete_cancelled_order_restores_once(self, db_session, catalog, placed_order):
        service = OrderService(db_session)
        service.change_status(placed_order, OrderStatus.CANCELLED)

        stock = service.delete_order(placed_order)

        assert stock is None
        assert product_stock(db_session, catalog["serum"]) == 20
        assert material_stock(db_session, catalog["base"]) == Decimal("1000")

    def test_delete_unknown_order(self, db_session, catalog):
        with pytest.raises(OrderNotFoundError):
            OrderService(db_session).delete_order(99999)


class TestPackOrders:
    def test_pack_marks_packed_and_deducts(self, db_session, catalog, placed_order):
        results = OrderService(db_session).pack_orders([placed_order])

        assert results[0]["success"] is True
        assert OrderService(db_session).get(placed_order).packed is True
        assert material_stock(db_session, catalog["box"]) == Decimal("99")

    def test_pack_twice_deducts_once(self, db_session, catalog, placed_order):
        service = OrderService(db_session)
        service.pack_orders([placed_order])
        service.pack_orders([placed_order])
        service.change_status(placed_order, OrderStatus.PROCESSING)

        assert material_stock(db_session, catalog["box"]) == Decimal("99")
        assert material_stock(db_session, catalog["tape"]) == Decimal("480")

    def test_pack_reports_each_order(self, db_session, catalog, placed_order):
        cancelled = make_order(db_session, ("product", catalog["cream"], 1), status=OrderStatus.CANCELLED)

        results = OrderService(db_session).pack_orders([placed_order, 99999, cancelled])

        assert [r["success"] for r in results] == [True, False, False]
        assert "not found" in results[1]["error"]
        assert material_stock(db_session, catalog["box"]) == Decimal("99")


class TestEndToEnd:
    def test_process_then_cancel(self, db_session):
        wax = Material(name="Wax", unit="g", stock_quantity=Decimal("500"), unit_price=Decimal("0.2"))
        box = Material(name="Box", unit="pcs", stock_quantity=Decimal("30"), unit_price=Decimal("1"))
        candle = Product(name="Candle", slug="candle", price=Decimal("12"), stock=10)
        db_session.add_all([wax, box, candle])
        db_session.flush()
        db_session.add_all([
            BomEntry(product_id=candle.id, material_id=wax.id, quantity_per_unit=Decimal("10")),
            PackagingRule(
                material_id=box.id,
                deduction_type=DeductionType.PER_ITEM,
                applies_to=AppliesTo.ALL,
                quantity_single=Decimal("0"),
                quantity_multiple=Decimal("1"),
            ),
        ])
        db_session.commit()
        order_id = make_order(db_session, ("product", candle.id, 4))
        service = OrderService(db_session)

        service.change_status(order_id, OrderStatus.PROCESSING)
        assert material_stock(db_session, box.id) == Decimal("26")

        service.change_status(order_id, OrderStatus.CANCELLED)
        assert material_stock(db_session, wax.id) == Decimal("540")
        assert material_stock(db_session, box.id) == Decimal("30")
        assert product_stock(db_session, candle.id) == 14
        assert not DeductionLedger(db_session).has_deductions_for(order_id)
