from decimal import Decimal

import pytest

from conftest import D0, PROJECT, cash_line, supplier_line
from siteledger.models.inventory import InventoryReceipt
from siteledger.models.ledger import LineCategory
from siteledger.models.supplier import SupplierPurchase
from siteledger.services.fanout import LineEffect, classify_line
from siteledger.services.ledger_service import LedgerService


class TestClassifyLine:
    """Each line maps to exactly one effect."""

    def test_plain_cash_line(self):
        assert classify_line(cash_line(100)) == LineEffect.CASH_SPEND

    def test_supplier_line_without_quantity(self):
        assert classify_line(supplier_line(100, "SUP-A")) == LineEffect.SUPPLIER_SPEND

    def test_cash_materials_with_quantity_and_unit(self):
        line = cash_line(100, item="Cement", category=LineCategory.MATERIALS, quantity=Decimal("10"), unit="bags")
        assert classify_line(line) == LineEffect.MATERIAL_RECEIPT

    def test_supplier_equipment_with_quantity_and_unit(self):
        line = supplier_line(100, "SUP-A", item="Mixer", category=LineCategory.EQUIPMENT,
                             quantity=Decimal("1"), unit="pcs")
        assert classify_line(line) == LineEffect.BOTH

    @pytest.mark.parametrize("quantity,unit", [(Decimal("10"), None), (None, "bags")])
    def test_materials_need_quantity_and_unit(self, quantity, unit):
        line = cash_line(100, item="Sand", category=LineCategory.MATERIALS, quantity=quantity, unit=unit)
        assert classify_line(line) == LineEffect.CASH_SPEND

    def test_other_categories_never_create_receipts(self):
        line = cash_line(100, item="Diesel", category=LineCategory.TRANSPORT, quantity=Decimal("20"), unit="litres")
        assert classify_line(line) == LineEffect.CASH_SPEND

    def test_effect_flags(self):
        assert LineEffect.BOTH.creates_purchase and LineEffect.BOTH.creates_receipt
        assert LineEffect.SUPPLIER_SPEND.creates_purchase and not LineEffect.SUPPLIER_SPEND.creates_receipt
        assert LineEffect.MATERIAL_RECEIPT.creates_receipt and not LineEffect.MATERIAL_RECEIPT.creates_purchase
        assert not (LineEffect.CASH_SPEND.creates_purchase or LineEffect.CASH_SPEND.creates_receipt)


class TestFanoutThroughLedger:
    def test_materials_line_creates_one_receipt(self, db):
        """Materials, quantity 10, unit bags: one receipt with used=0, remaining=10."""
        ledger = LedgerService(db).create_ledger(
            PROJECT, D0,
            lines=[cash_line(3000, item="Cement", category=LineCategory.MATERIALS, quantity=Decimal("10"), unit="bags")],
        )

        receipt = db.query(InventoryReceipt).one()
        assert receipt.quantity == Decimal("10")
        assert receipt.quantity_used == Decimal("0")
        assert receipt.quantity_remaining == Decimal("10")
        assert receipt.unit == "bags"
        assert receipt.delivery_date == D0
        assert receipt.ledger_id == ledger.id
        assert receipt.ledger_line_id == ledger.lines[0].id
        assert db.query(SupplierPurchase).count() == 0

    def test_supplier_paid_materials_line_creates_purchase_and_receipt(self, db, supplier):
        """One supplier-paid quantified Materials line yields exactly one purchase and one receipt."""
        ledger = LedgerService(db).create_ledger(
            PROJECT, D0,
            lines=[supplier_line(2400, supplier.id, quantity=Decimal("12"), unit="bags")],
        )
        line = ledger.lines[0]

        purchase = db.query(SupplierPurchase).one()
        assert purchase.supplier_id == supplier.id
        assert purchase.amount == Decimal("2400.00")
        assert purchase.item == "Cement"
        assert purchase.date == D0
        assert purchase.ledger_id == ledger.id
        assert purchase.ledger_line_id == line.id

        receipt = db.query(InventoryReceipt).one()
        assert receipt.ledger_line_id == line.id
        assert receipt.quantity_remaining == Decimal("12")

        db.refresh(supplier)
        assert supplier.total_spent == Decimal("2400.00")
        assert supplier.current_balance == Decimal("37600.00")

    def test_cash_lines_create_nothing(self, db):
        LedgerService(db).create_ledger(PROJECT, D0, lines=[cash_line(50), cash_line(75, item="Lunch")])

        assert db.query(SupplierPurchase).count() == 0
        assert db.query(InventoryReceipt).count() == 0

    def test_reversal_leaves_other_ledgers_untouched(self, db, supplier):
        service = LedgerService(db)
        keep = service.create_ledger(PROJECT, D0, lines=[supplier_line(1000, supplier.id)])
        edit = service.create_ledger("PRJ-OTHER", D0, lines=[supplier_line(1000, supplier.id)])

        service.update_ledger(edit.id, None, [])

        purchase = db.query(SupplierPurchase).one()
        assert purchase.ledger_id == keep.id
        db.refresh(supplier)
        assert supplier.current_balance == Decimal("39000.00")

    def test_reversal_removes_partly_used_receipt(self, db):
        """A receipt with stock already drawn is still removed when its line goes away."""
        service = LedgerService(db)
        ledger = service.create_ledger(
            PROJECT, D0,
            lines=[cash_line(500, item="Sand", category=LineCategory.MATERIALS, quantity=Decimal("4"), unit="tons")],
        )
        receipt = db.query(InventoryReceipt).one()
        receipt.quantity_used = Decimal("1")
        receipt.quantity_remaining = Decimal("3")
        db.commit()

        service.update_ledger(ledger.id, None, [cash_line(500)])

        assert db.query(InventoryReceipt).count() == 0
