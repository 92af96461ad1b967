"""Tests for the packaging deduction ledger."""

import pytest
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from glowstock.services.deduction_ledger import DeductionLedger
from tests.helpers import make_order


class TestDeductionLedger:
    def test_record_and_lookup(self, db_session, catalog):
        order_id = make_order(db_session, ("product", catalog["serum"], 1))
        ledger = DeductionLedger(db_session)
        assert not ledger.has_deductions_for(order_id)

        ledger.record(order_id, catalog["box"], Decimal("1"))
        db_session.commit()

        assert ledger.has_deductions_for(order_id)
        assert ledger.has_deduction(order_id, catalog["box"])
        assert not ledger.has_deduction(order_id, catalog["tape"])
        entries = ledger.entries_for(order_id)
        assert [(e.material_id, e.quantity_deducted) for e in entries] == [(catalog["box"], Decimal("1"))]

    def test_one_row_per_order_material(self, db_session, catalog):
        order_id = make_order(db_session, ("product", catalog["serum"], 1))
        ledger = DeductionLedger(db_session)
        ledger.record(order_id, catalog["box"], Decimal("1"))
        db_session.commit()

        with pytest.raises(IntegrityError):
            ledger.record(order_id, catalog["box"], Decimal("1"))
        db_session.rollback()

    def test_clear(self, db_session, catalog):
        order_id = make_order(db_session, ("product", catalog["serum"], 1))
        other_id = make_order(db_session, ("product", catalog["cream"], 1))
        ledger = DeductionLedger(db_session)
        ledger.record(order_id, catalog["box"], Decimal("1"))
        ledger.record(order_id, catalog["tape"], Decimal("10"))
        ledger.record(other_id, catalog["box"], Decimal("1"))
        db_session.commit()

        assert ledger.clear(order_id) == 2
        db_session.commit()
        assert not ledger.has_deductions_for(order_id)
        assert ledger.has_deductions_for(other_id)

    def test_remove_single_entry(self, db_session, catalog):
        order_id = make_order(db_session, ("product", catalog["serum"], 1))
        ledger = DeductionLedger(db_session)
        box = ledger.record(order_id, catalog["box"], Decimal("1"))
        ledger.record(order_id, catalog["tape"], Decimal("10"))
        db_session.commit()

        ledger.remove(box)
        db_session.commit()

        assert not ledger.has_deduction(order_id, catalog["box"])
        assert ledger.has_deduction(order_id, catalog["tape"])
