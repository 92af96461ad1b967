"""Tests for the inventory snapshot and report."""

from decimal import Decimal

from glowstock.models.product import Product
from glowstock.services.inventory_report_service import InventoryReportService
from glowstock.services.order_service import OrderService
from glowstock.services.production_service import ProductionService


class TestInventoryReport:
    def test_snapshot(self, db_session, catalog):
        rows = {r["name"]: r for r in InventoryReportService(db_session).snapshot()}

        assert rows["Shipping box"]["total_value"] == Decimal("200")
        assert rows["Rose oil"]["status"] == "OK"
        assert len(rows) == 5

    def test_report_totals(self, db_session, catalog):
        report = InventoryReportService(db_session).report()

        # 100*2 + 500*0.1 + 50*0.5 + 1000*0.5 + 200*1.5
        assert report["total_materials_value"] == Decimal("1075")
        # 20*25 + 10*30
        assert report["total_products_value"] == Decimal("800")
        assert report["low_materials"] == 0
        assert report["low_products"] == 0

    def test_report_consumption_and_production(self, db_session, catalog):
        ProductionService(db_session).complete(catalog["cream"], 3)
        OrderService(db_session).create_order("A", [{"product_id": catalog["serum"], "quantity": 1}])

        report = InventoryReportService(db_session).report()

        consumed = {m["id"]: m["consumed"] for m in report["material_stocks"]}
        assert consumed[catalog["base"]] == Decimal("180")  # 150 production + 30 sale
        assert consumed[catalog["oil"]] == Decimal("5")
        assert consumed[catalog["box"]] == Decimal("0")

        top = report["top_produced"]
        assert top[0]["id"] == catalog["cream"]
        assert top[0]["total_produced"] == Decimal("3")

    def test_low_products(self, db_session, catalog):
        db_session.query(Product).filter(Product.id == catalog["cream"]).update({Product.stock: 5})
        db_session.commit()

        assert InventoryReportService(db_session).report()["low_products"] == 1

    def test_movements_log(self, db_session, catalog):
        ProductionService(db_session).complete(catalog["cream"], 1)

        rows, total = InventoryReportService(db_session).movements(material_id=catalog["base"])

        assert total == 1
        assert rows[0].qty_delta == Decimal("-50")
