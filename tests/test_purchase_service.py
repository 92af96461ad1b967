"""Tests for suppliers and purchase invoice stock-in."""

import pytest
from datetime import date
from decimal import Decimal

from glowstock.models.material import Material
from glowstock.models.stock import StockMovement
from glowstock.services.purchase_service import (
    DuplicateInvoiceError,
    PurchaseInvoiceNotFoundError,
    PurchaseService,
    SupplierInUseError,
    SupplierNotFoundError,
)
from glowstock.services.stock_store import MaterialNotFoundError
from tests.helpers import material_stock


@pytest.fixture
def supplier_id(db_session):
    supplier = PurchaseService(db_session).save_supplier({"name": "Aroma Traders", "phone": "0100"})
    db_session.commit()
    return supplier.id


def _invoice(db_session, catalog, supplier_id, **kwargs):
    items = kwargs.pop("items", [
        {"material_id": catalog["base"], "quantity": Decimal("500"), "line_total": Decimal("300")},
        {"material_id": catalog["oil"], "quantity": Decimal("100")},
    ])
    return PurchaseService(db_session).create_invoice(
        supplier_id, kwargs.pop("invoice_no", "INV-001"), items, **kwargs
    )


class TestSuppliers:
    def test_create_and_update(self, db_session, supplier_id):
        service = PurchaseService(db_session)
        service.save_supplier({"email": "sales@aroma.test"}, supplier_id=supplier_id)
        db_session.commit()

        supplier = service.get_supplier(supplier_id)
        assert supplier.name == "Aroma Traders"
        assert supplier.phone == "0100"
        assert supplier.email == "sales@aroma.test"

    def test_unknown_supplier(self, db_session):
        with pytest.raises(SupplierNotFoundError):
            PurchaseService(db_session).get_supplier(99999)

    def test_delete_without_invoices(self, db_session, supplier_id):
        service = PurchaseService(db_session)
        service.delete_supplier(supplier_id)
        db_session.commit()
        assert service.list_suppliers() == []

    def test_delete_with_invoices_is_refused(self, db_session, catalog, supplier_id):
        _invoice(db_session, catalog, supplier_id)

        with pytest.raises(SupplierInUseError) as exc_info:
            PurchaseService(db_session).delete_supplier(supplier_id)
        assert exc_info.value.invoice_count == 1


class TestCreateInvoice:
    def test_adds_stock_and_sets_price(self, db_session, catalog, supplier_id):
        invoice = _invoice(db_session, catalog, supplier_id, extra_expenses=Decimal("20"))

        assert material_stock(db_session, catalog["base"]) == Decimal("1500")
        assert material_stock(db_session, catalog["oil"]) == Decimal("300")
        assert db_session.get(Material, catalog["base"]).unit_price == Decimal("0.6")
        # No line total: price is left alone
        assert db_session.get(Material, catalog["oil"]).unit_price == Decimal("1.5")
        assert invoice.total == Decimal("320")
        assert len(invoice.items) == 2

    def test_movements_reference_the_invoice(self, db_session, catalog, supplier_id):
        invoice = _invoice(db_session, catalog, supplier_id)

        movements = db_session.query(StockMovement).filter(
            StockMovement.ref_type == "purchase_invoice", StockMovement.ref_id == invoice.id
        ).order_by(StockMovement.id).all()
        assert [(m.material_id, m.qty_delta, m.reason) for m in movements] == [
            (catalog["base"], Decimal("500"), "purchase"),
            (catalog["oil"], Decimal("100"), "purchase"),
        ]

    def test_explicit_total_and_date(self, db_session, catalog, supplier_id):
        invoice = _invoice(
            db_session, catalog, supplier_id, total=Decimal("999"), invoice_date=date(2026, 3, 1),
        )
        assert invoice.total == Decimal("999")
        assert invoice.invoice_date == date(2026, 3, 1)

    def test_unknown_material_moves_nothing(self, db_session, catalog, supplier_id):
        with pytest.raises(MaterialNotFoundError):
            _invoice(db_session, catalog, supplier_id, items=[
                {"material_id": catalog["base"], "quantity": Decimal("10")},
                {"material_id": 99999, "quantity": Decimal("10")},
            ])
        db_session.rollback()

        assert material_stock(db_session, catalog["base"]) == Decimal("1000")
        assert PurchaseService(db_session).list_invoices()[1] == 0

    def test_unknown_supplier(self, db_session, catalog):
        with pytest.raises(SupplierNotFoundError):
            _invoice(db_session, catalog, 99999)

    @pytest.mark.parametrize("items", [
        [],
        [{"material_id": 1, "quantity": Decimal("0")}],
        [{"material_id": 1, "quantity": Decimal("5"), "line_total": Decimal("-1")}],
    ])
    def test_invalid_items(self, db_session, catalog, supplier_id, items):
        with pytest.raises(ValueError):
            _invoice(db_session, catalog, supplier_id, items=items)

    def test_duplicate_invoice_number(self, db_session, catalog, supplier_id):
        _invoice(db_session, catalog, supplier_id)

        with pytest.raises(DuplicateInvoiceError):
            _invoice(db_session, catalog, supplier_id)

        assert material_stock(db_session, catalog["base"]) == Decimal("1500")


class TestUpdateAndDeleteInvoice:
    def test_update_header_leaves_stock(self, db_session, catalog, supplier_id):
        invoice = _invoice(db_session, catalog, supplier_id)

        PurchaseService(db_session).update_invoice(invoice.id, {"note": "late delivery", "total": Decimal("310")})
        db_session.commit()

        updated = PurchaseService(db_session).get_invoice(invoice.id)
        assert updated.note == "late delivery"
        assert updated.total == Decimal("310")
        assert material_stock(db_session, catalog["base"]) == Decimal("1500")

    def test_delete_reverses_stock(self, db_session, catalog, supplier_id):
        invoice = _invoice(db_session, catalog, supplier_id)

        reversed_lines = PurchaseService(db_session).delete_invoice(invoice.id)

        assert [line["material_id"] for line in reversed_lines] == [catalog["base"], catalog["oil"]]
        assert material_stock(db_session, catalog["base"]) == Decimal("1000")
        assert material_stock(db_session, catalog["oil"]) == Decimal("200")
        with pytest.raises(PurchaseInvoiceNotFoundError):
            PurchaseService(db_session).get_invoice(invoice.id)

    def test_delete_after_consumption_floors_at_zero(self, db_session, catalog, supplier_id):
        invoice = _invoice(db_session, catalog, supplier_id)
        PurchaseService(db_session).materials.adjust_stock(catalog["base"], Decimal("-1200"))
        db_session.commit()

        PurchaseService(db_session).delete_invoice(invoice.id)

        assert material_stock(db_session, catalog["base"]) == Decimal("0")

    def test_list_by_supplier(self, db_session, catalog, supplier_id):
        other = PurchaseService(db_session).save_supplier({"name": "Glass Co"})
        db_session.commit()
        _invoice(db_session, catalog, supplier_id)
        _invoice(db_session, catalog, other.id, invoice_no="G-1")

        invoices, total = PurchaseService(db_session).list_invoices(supplier_id=supplier_id)
        assert total == 1
        assert invoices[0].invoice_no == "INV-001"
