"""
Tests for LedgerService: create, update and delete as single atomic operations.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import D0, D1, D2, PROJECT, cash_line, supplier_line
from siteledger.common.exceptions import (
    DuplicateLedgerDate,
    InsufficientSupplierBalance,
    LedgerNotFound,
    LedgerValidationError,
    SupplierNotFound,
)
from siteledger.models.inventory import InventoryReceipt
from siteledger.models.ledger import DailyLedger, LedgerLine, LineCategory
from siteledger.models.supplier import Supplier, SupplierPurchase
from siteledger.services import ledger_store
from siteledger.services.cash_deposit_service import record_cash_deposit
from siteledger.services.inventory_service import record_inventory_usage
from siteledger.services.ledger_service import LedgerService


@pytest.fixture
def service(db):
    return LedgerService(db)


@pytest.fixture
def funded(db):
    """Project with 100,000 cash deposited on D0."""
    return record_cash_deposit(db, PROJECT, Decimal("100000"), D0, "Bank Transfer")


def balance_of(db, supplier_id):
    db.expire_all()
    return db.query(Supplier).filter(Supplier.id == supplier_id).one()


class TestCreateLedger:
    def test_closing_is_opening_minus_cash(self, db, service, funded):
        """A cash line reduces closing cash by its amount."""
        ledger = service.create_ledger(PROJECT, D0, lines=[cash_line(30000)])

        assert ledger.opening_cash == Decimal("100000.00")
        assert ledger.total_cash_spent == Decimal("30000.00")
        assert ledger.total_supplier_spent == Decimal("0.00")
        assert ledger.closing_cash == Decimal("70000.00")
        assert ledger.submitted_at is not None

    def test_supplier_spend_does_not_reduce_cash(self, db, service, funded, supplier):
        ledger = service.create_ledger(
            PROJECT, D0, lines=[cash_line(1000), supplier_line(2500, supplier.id)],
        )

        assert ledger.total_cash_spent == Decimal("1000.00")
        assert ledger.total_supplier_spent == Decimal("2500.00")
        assert ledger.closing_cash == Decimal("99000.00")

    def test_lines_keep_submission_order(self, db, service):
        ledger = service.create_ledger(
            PROJECT, D0,
            lines=[cash_line(10, item="Water"), cash_line(20, item="Lunch"), cash_line(30, item="Nails")],
        )

        assert [line.item for line in ledger.lines] == ["Water", "Lunch", "Nails"]
        assert [line.position for line in ledger.lines] == [0, 1, 2]

    def test_empty_ledger_is_allowed(self, db, service, funded):
        ledger = service.create_ledger(PROJECT, D0, notes="Rain day")

        assert ledger.lines == []
        assert ledger.closing_cash == ledger.opening_cash

    def test_chains_opening_from_previous_day(self, db, service, funded):
        service.create_ledger(PROJECT, D0, lines=[cash_line(30000)])
        record_cash_deposit(db, PROJECT, Decimal("5000"), D1, "Mobile Money")

        ledger = service.create_ledger(PROJECT, D1, lines=[cash_line(1000)])

        # 70,000 carried over plus deposits dated D0..D1 (100,000 + 5,000)
        assert ledger.opening_cash == Decimal("175000.00")
        assert ledger.closing_cash == Decimal("174000.00")

    def test_duplicate_date_rejected(self, db, service):
        """A second ledger for the same project and day is refused."""
        first = service.create_ledger(PROJECT, D0)

        with pytest.raises(DuplicateLedgerDate) as exc_info:
            service.create_ledger(PROJECT, D0, lines=[cash_line(10)])

        assert exc_info.value.existing_ledger_id == first.id
        assert exc_info.value.details["date"] == D0.isoformat()
        assert db.query(DailyLedger).count() == 1

    def test_same_date_other_project_allowed(self, db, service):
        service.create_ledger(PROJECT, D0)
        service.create_ledger("PRJ-OTHER", D0)

        assert db.query(DailyLedger).count() == 2

    def test_duplicate_race_caught_by_unique_constraint(self, db, service, monkeypatch):
        """If the pre-check misses a concurrent insert, the constraint still wins."""
        service.create_ledger(PROJECT, D0)
        monkeypatch.setattr(ledger_store, "get_ledger_by_date", lambda *args, **kwargs: None)

        with pytest.raises(DuplicateLedgerDate):
            service.create_ledger(PROJECT, D0)

        assert db.query(DailyLedger).count() == 1

    def test_insufficient_supplier_balance_rolls_back(self, db, service, funded, supplier):
        """50,000 against 40,000 of credit fails with a 10,000 shortfall and writes nothing."""
        with pytest.raises(InsufficientSupplierBalance) as exc_info:
            service.create_ledger(
                PROJECT, D0, lines=[cash_line(500), supplier_line(50000, supplier.id)],
            )

        assert exc_info.value.shortfall == Decimal("10000.00")
        assert exc_info.value.supplier_id == supplier.id
        assert db.query(DailyLedger).count() == 0
        assert db.query(LedgerLine).count() == 0
        assert db.query(SupplierPurchase).count() == 0
        assert balance_of(db, supplier.id).current_balance == Decimal("40000.00")

    def test_second_line_overdraws_rolls_back_first(self, db, service, supplier):
        """Two lines that fit alone but not together leave no purchase behind."""
        with pytest.raises(InsufficientSupplierBalance):
            service.create_ledger(
                PROJECT, D0,
                lines=[
                    supplier_line(30000, supplier.id, quantity=Decimal("10"), unit="bags"),
                    supplier_line(15000, supplier.id, item="Steel"),
                ],
            )

        assert db.query(SupplierPurchase).count() == 0
        assert db.query(InventoryReceipt).count() == 0
        refreshed = balance_of(db, supplier.id)
        assert refreshed.current_balance == Decimal("40000.00")
        assert refreshed.total_spent == Decimal("0.00")

    def test_unknown_supplier_rolls_back(self, db, service):
        with pytest.raises(SupplierNotFound) as exc_info:
            service.create_ledger(PROJECT, D0, lines=[supplier_line(100, "SUP-MISSING")])

        assert exc_info.value.resource_id == "SUP-MISSING"
        assert db.query(DailyLedger).count() == 0
        assert db.query(LedgerLine).count() == 0

    def test_foreign_key_failure_is_not_reported_as_duplicate(self, db, service, monkeypatch):
        """Only the project+date constraint maps to DuplicateLedgerDate."""
        monkeypatch.setattr("siteledger.services.ledger_service.lock_suppliers", lambda *args, **kwargs: {})

        with pytest.raises(IntegrityError):
            service.create_ledger(PROJECT, D0, lines=[supplier_line(100, "SUP-MISSING")])

        assert db.query(DailyLedger).count() == 0

    def test_supplier_line_without_supplier_is_invalid(self, db, service):
        with pytest.raises(LedgerValidationError) as exc_info:
            service.create_ledger(PROJECT, D0, lines=[cash_line(10), supplier_line(100, None)])

        assert exc_info.value.line_index == 1
        assert exc_info.value.field == "supplier_id"
        assert db.query(DailyLedger).count() == 0

    def test_non_positive_quantity_is_invalid(self, db, service):
        with pytest.raises(LedgerValidationError):
            service.create_ledger(
                PROJECT, D0,
                lines=[cash_line(10, item="Cement", category=LineCategory.MATERIALS, quantity=Decimal("0"), unit="bags")],
            )


class TestUpdateLedger:
    def test_replaces_lines_and_recomputes_totals(self, db, service, funded):
        ledger = service.create_ledger(PROJECT, D0, lines=[cash_line(30000), cash_line(500)])

        updated = service.update_ledger(ledger.id, {"notes": "Corrected"}, [cash_line(1200)])

        assert updated.notes == "Corrected"
        assert len(updated.lines) == 1
        assert updated.total_cash_spent == Decimal("1200.00")
        assert updated.closing_cash == Decimal("98800.00")
        assert db.query(LedgerLine).count() == 1

    def test_opening_cash_is_not_recalculated(self, db, service, funded):
        ledger = service.create_ledger(PROJECT, D0, lines=[cash_line(100)])
        # A deposit after creation must not move an existing day's opening cash.
        record_cash_deposit(db, PROJECT, Decimal("999"), D0, "Cash Handover")

        updated = service.update_ledger(ledger.id, None, [cash_line(200)])

        assert updated.opening_cash == Decimal("100000.00")
        assert updated.closing_cash == Decimal("99800.00")

    def test_immutable_fields_rejected(self, db, service):
        ledger = service.create_ledger(PROJECT, D0)

        with pytest.raises(LedgerValidationError):
            service.update_ledger(ledger.id, {"opening_cash": Decimal("5")}, [])

    def test_submitted_at_is_updatable(self, db, service):
        ledger = service.create_ledger(PROJECT, D0)
        stamp = datetime(2026, 3, 2, 18, 30, tzinfo=timezone.utc)

        updated = service.update_ledger(ledger.id, {"submitted_at": stamp}, [])

        assert updated.submitted_at.replace(tzinfo=None) == stamp.replace(tzinfo=None)

    def test_reverses_old_supplier_spend_before_reapplying(self, db, service, supplier):
        """Editing 30,000 to 35,000 against 40,000 of credit succeeds: old spend is restored first."""
        ledger = service.create_ledger(PROJECT, D0, lines=[supplier_line(30000, supplier.id)])
        assert balance_of(db, supplier.id).current_balance == Decimal("10000.00")

        service.update_ledger(ledger.id, None, [supplier_line(35000, supplier.id)])

        refreshed = balance_of(db, supplier.id)
        assert refreshed.current_balance == Decimal("5000.00")
        assert refreshed.total_spent == Decimal("35000.00")
        assert db.query(SupplierPurchase).count() == 1

    def test_moving_spend_between_suppliers(self, db, service, supplier, second_supplier):
        ledger = service.create_ledger(PROJECT, D0, lines=[supplier_line(4000, supplier.id)])

        service.update_ledger(ledger.id, None, [supplier_line(4000, second_supplier.id, item="Sand")])

        assert balance_of(db, supplier.id).current_balance == Decimal("40000.00")
        assert balance_of(db, second_supplier.id).current_balance == Decimal("6000.00")
        purchase = db.query(SupplierPurchase).one()
        assert purchase.supplier_id == second_supplier.id
        assert purchase.item == "Sand"

    def test_resubmitting_same_lines_is_idempotent(self, db, service, supplier):
        lines = [
            supplier_line(1000, supplier.id, quantity=Decimal("10"), unit="bags"),
            cash_line(250),
        ]
        ledger = service.create_ledger(PROJECT, D0, lines=lines)

        receipt = db.query(InventoryReceipt).one()
        record_inventory_usage(db, receipt.id, Decimal("4"))

        service.update_ledger(ledger.id, None, lines)
        service.update_ledger(ledger.id, None, lines)

        assert balance_of(db, supplier.id).current_balance == Decimal("39000.00")
        assert db.query(SupplierPurchase).count() == 1
        assert db.query(LedgerLine).count() == 2
        kept = db.query(InventoryReceipt).one()
        assert kept.id == receipt.id
        assert kept.quantity == Decimal("10")
        assert kept.quantity_used == Decimal("4")
        assert kept.quantity_remaining == Decimal("6")
        assert kept.ledger_line_id == db.query(LedgerLine).filter(LedgerLine.position == 0).one().id

    def test_raising_quantity_keeps_recorded_usage(self, db, service, supplier):
        ledger = service.create_ledger(
            PROJECT, D0, lines=[supplier_line(1000, supplier.id, quantity=Decimal("10"), unit="bags")],
        )
        receipt = db.query(InventoryReceipt).one()
        record_inventory_usage(db, receipt.id, Decimal("4"))

        service.update_ledger(
            ledger.id, None, [supplier_line(1500, supplier.id, quantity=Decimal("15"), unit="bags")],
        )

        db.expire_all()
        kept = db.query(InventoryReceipt).one()
        assert kept.id == receipt.id
        assert kept.quantity == Decimal("15")
        assert kept.quantity_used == Decimal("4")
        assert kept.quantity_remaining == Decimal("11")

    def test_quantity_below_recorded_usage_rolls_back(self, db, service, supplier):
        ledger = service.create_ledger(
            PROJECT, D0, lines=[supplier_line(1000, supplier.id, quantity=Decimal("10"), unit="bags")],
        )
        receipt = db.query(InventoryReceipt).one()
        record_inventory_usage(db, receipt.id, Decimal("4"))

        with pytest.raises(LedgerValidationError) as exc_info:
            service.update_ledger(
                ledger.id, None, [supplier_line(300, supplier.id, quantity=Decimal("3"), unit="bags")],
            )

        assert exc_info.value.line_index == 0
        assert exc_info.value.field == "quantity"
        db.expire_all()
        kept = db.query(InventoryReceipt).one()
        assert kept.id == receipt.id
        assert kept.quantity == Decimal("10")
        assert kept.quantity_remaining == Decimal("6")
        assert kept.ledger_line_id is not None
        assert [line.amount for line in db.query(DailyLedger).one().lines] == [Decimal("1000.00")]
        assert balance_of(db, supplier.id).current_balance == Decimal("39000.00")

    def test_dropping_material_line_removes_its_receipt(self, db, service, supplier):
        ledger = service.create_ledger(
            PROJECT, D0, lines=[supplier_line(1000, supplier.id, quantity=Decimal("10"), unit="bags")],
        )

        service.update_ledger(ledger.id, None, [cash_line(100)])

        assert db.query(InventoryReceipt).count() == 0
        assert balance_of(db, supplier.id).current_balance == Decimal("40000.00")

    def test_unknown_supplier_keeps_previous_lines(self, db, service, supplier):
        ledger = service.create_ledger(PROJECT, D0, lines=[supplier_line(1000, supplier.id)])

        with pytest.raises(SupplierNotFound):
            service.update_ledger(ledger.id, None, [supplier_line(100, "SUP-MISSING")])

        db.expire_all()
        kept = db.query(DailyLedger).one()
        assert [line.supplier_id for line in kept.lines] == [supplier.id]
        assert balance_of(db, supplier.id).current_balance == Decimal("39000.00")
        assert db.query(SupplierPurchase).count() == 1

    def test_failed_update_keeps_previous_state(self, db, service, funded, supplier):
        """An overdrawing edit rolls back: old lines, purchase and balance all survive."""
        ledger = service.create_ledger(
            PROJECT, D0, lines=[supplier_line(10000, supplier.id, quantity=Decimal("5"), unit="bags")],
        )

        with pytest.raises(InsufficientSupplierBalance):
            service.update_ledger(ledger.id, {"notes": "too much"}, [supplier_line(45000, supplier.id)])

        db.expire_all()
        kept = db.query(DailyLedger).filter(DailyLedger.id == ledger.id).one()
        assert kept.notes is None
        assert [line.amount for line in kept.lines] == [Decimal("10000.00")]
        assert kept.total_supplier_spent == Decimal("10000.00")
        assert balance_of(db, supplier.id).current_balance == Decimal("30000.00")
        assert db.query(SupplierPurchase).count() == 1
        assert db.query(InventoryReceipt).count() == 1

    def test_unknown_ledger(self, db, service):
        with pytest.raises(LedgerNotFound):
            service.update_ledger("LDG-MISSING", None, [])


class TestDeleteLedger:
    def test_delete_reverses_fanout(self, db, service, supplier):
        ledger = service.create_ledger(
            PROJECT, D0, lines=[supplier_line(2000, supplier.id, quantity=Decimal("20"), unit="bags")],
        )

        service.delete_ledger(ledger.id)

        assert db.query(DailyLedger).count() == 0
        assert db.query(LedgerLine).count() == 0
        assert db.query(SupplierPurchase).count() == 0
        assert db.query(InventoryReceipt).count() == 0
        assert balance_of(db, supplier.id).current_balance == Decimal("40000.00")

    def test_date_is_free_again_after_delete(self, db, service):
        ledger = service.create_ledger(PROJECT, D0)
        service.delete_ledger(ledger.id)

        assert service.create_ledger(PROJECT, D0).date == D0

    def test_unknown_ledger(self, db, service):
        with pytest.raises(LedgerNotFound):
            service.delete_ledger("LDG-MISSING")


class TestQueries:
    def test_list_newest_first_with_lines(self, db, service):
        service.create_ledger(PROJECT, D0, lines=[cash_line(1)])
        service.create_ledger(PROJECT, D2, lines=[cash_line(2), cash_line(3)])
        service.create_ledger(PROJECT, D1)

        ledgers = ledger_store.list_ledgers(db, PROJECT)

        assert [l.date for l in ledgers] == [D2, D1, D0]
        assert [len(l.lines) for l in ledgers] == [2, 0, 1]

    def test_get_by_date(self, db, service):
        created = service.create_ledger(PROJECT, D1)

        assert ledger_store.get_ledger_by_date(db, PROJECT, D1).id == created.id
        assert ledger_store.get_ledger_by_date(db, PROJECT, D0) is None
