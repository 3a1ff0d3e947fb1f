from datetime import date
from typing import Any, Dict, Optional, Sequence, Union

from sqlalchemy.orm import Session

from siteledger.common.exceptions import DuplicateLedgerDate, LedgerNotFound, LedgerValidationError
from siteledger.core.transaction import transaction_scope
from siteledger.logger_config import logger
from siteledger.models.ledger import DailyLedger
from siteledger.schemas.ledger import LedgerLineCreate, LedgerUpdate
from siteledger.services import ledger_store
from siteledger.services.balance_calculator import get_opening_balance
from siteledger.services.fanout import FanoutEngine
from siteledger.services.supplier_service import lock_suppliers

UPDATABLE_FIELDS = frozenset({"notes", "submitted_at"})


def _supplier_ids(lines) -> list:
    return [line.supplier_id for line in lines if line.supplier_id]


class LedgerService:
    """
    Creates, edits and deletes daily ledgers as single atomic operations.

    Each call is one transaction covering the ledger row, its lines, supplier
    balances, supplier purchases and inventory receipts. Any failure rolls
    all of it back and the typed error is re-raised to the caller.
    """

    def __init__(self, db: Session, timeout_seconds: Optional[int] = None):
        self.db = db
        self.timeout_seconds = timeout_seconds
        self.fanout = FanoutEngine(db)

    # ================= CREATE =================

    def create_ledger(
        self,
        project_id: str,
        ledger_date: date,
        notes: Optional[str] = None,
        lines: Optional[Sequence[LedgerLineCreate]] = None,
    ) -> DailyLedger:
        lines = list(lines or [])
        logger.info(f"Starting ledger creation - Project: {project_id}, Date: {ledger_date}, Lines: {len(lines)}")

        ledger_store.validate_lines(lines)

        with transaction_scope(self.db, "create ledger", self.timeout_seconds):
            existing = ledger_store.get_ledger_by_date(self.db, project_id, ledger_date)
            if existing:
                raise DuplicateLedgerDate(project_id, ledger_date, existing_ledger_id=existing.id)

            balance = get_opening_balance(self.db, project_id, ledger_date)
            # Unknown suppliers fail here as SupplierNotFound, not at the line insert.
            lock_suppliers(self.db, _supplier_ids(lines))

            ledger = ledger_store.insert_ledger(
                self.db,
                project_id=project_id,
                ledger_date=ledger_date,
                opening_cash=balance["opening_balance"],
                notes=notes,
                lines=lines,
            )
            self.fanout.apply(ledger, ledger.lines)

        self.db.refresh(ledger)
        logger.info(
            f"✅ Ledger created: {ledger.id} - Project: {project_id}, Date: {ledger_date}, "
            f"Opening: {ledger.opening_cash}, Closing: {ledger.closing_cash}"
        )
        return ledger

    # ================= UPDATE =================

    def update_ledger(
        self,
        ledger_id: str,
        updates: Union[LedgerUpdate, Dict[str, Any], None],
        lines: Sequence[LedgerLineCreate],
    ) -> DailyLedger:
        """
        Replace the ledger's line set wholesale. All old lines are reversed
        before any new line is applied, so balance checks on the new lines
        see supplier credit already restored. Inventory receipts are kept
        and reattached to matching new lines, so recorded usage survives.
        """
        lines = list(lines)
        field_updates = self._field_updates(updates)
        logger.info(f"Starting ledger update - Ledger: {ledger_id}, Fields: {sorted(field_updates)}, Lines: {len(lines)}")

        ledger_store.validate_lines(lines)

        with transaction_scope(self.db, "update ledger", self.timeout_seconds):
            ledger = ledger_store.get_ledger_by_id(self.db, ledger_id, for_update=True)
            if not ledger:
                raise LedgerNotFound(ledger_id)

            old_lines = list(ledger.lines)
            lock_suppliers(self.db, _supplier_ids(old_lines) + _supplier_ids(lines))

            self.fanout.reverse(ledger, old_lines, keep_receipts=True)

            for field, value in field_updates.items():
                setattr(ledger, field, value)

            ledger_store.replace_lines(self.db, ledger, lines)
            self.fanout.apply(ledger, ledger.lines)

        self.db.refresh(ledger)
        logger.info(
            f"✅ Ledger updated: {ledger.id} - Opening: {ledger.opening_cash}, "
            f"Cash spent: {ledger.total_cash_spent}, Closing: {ledger.closing_cash}"
        )
        return ledger

    @staticmethod
    def _field_updates(updates: Union[LedgerUpdate, Dict[str, Any], None]) -> Dict[str, Any]:
        if updates is None:
            return {}
        if isinstance(updates, LedgerUpdate):
            updates = updates.model_dump(exclude_unset=True)

        rejected = set(updates) - UPDATABLE_FIELDS
        if rejected:
            raise LedgerValidationError(
                f"Cannot update ledger field(s): {', '.join(sorted(rejected))}",
                field=sorted(rejected)[0],
            )
        return dict(updates)

    # ================= DELETE =================

    def delete_ledger(self, ledger_id: str) -> None:
        logger.info(f"Starting ledger deletion: {ledger_id}")

        with transaction_scope(self.db, "delete ledger", self.timeout_seconds):
            ledger = ledger_store.get_ledger_by_id(self.db, ledger_id, for_update=True)
            if not ledger:
                raise LedgerNotFound(ledger_id)

            self.fanout.reverse(ledger, list(ledger.lines))
            self.db.delete(ledger)

        logger.info(f"✅ Ledger deleted: {ledger_id}")
