"""
Persistence of daily ledgers and their lines.

Lines have no identity outside their ledger: an edit deletes the whole set
and inserts the replacement, it never patches individual lines.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from siteledger.common.exceptions import DuplicateLedgerDate, LedgerValidationError
from siteledger.logger_config import logger
from siteledger.models.base import ZERO, to_money
from siteledger.models.ledger import DailyLedger, LedgerLine, LineCategory, PaymentMethod
from siteledger.schemas.ledger import LedgerLineCreate


# ==================== VALIDATION & TOTALS ====================

def validate_lines(lines: Sequence[LedgerLineCreate]) -> None:
    """Reject malformed lines before anything is written."""
    for idx, line in enumerate(lines):
        if not line.item or not line.item.strip():
            raise LedgerValidationError(f"Line {idx + 1}: item is required", line_index=idx, field="item")

        try:
            LineCategory(line.category)
            method = PaymentMethod(line.payment_method)
        except ValueError:
            raise LedgerValidationError(
                f"Line {idx + 1}: unknown category or payment method",
                line_index=idx,
                field="category",
            )

        if line.amount is None or to_money(line.amount) <= 0:
            raise LedgerValidationError(
                f"Line {idx + 1}: amount must be greater than 0", line_index=idx, field="amount",
            )

        if method == PaymentMethod.SUPPLIER and not line.supplier_id:
            raise LedgerValidationError(
                f"Line {idx + 1}: supplier_id is required when payment method is supplier",
                line_index=idx,
                field="supplier_id",
            )

        if line.quantity is not None and Decimal(str(line.quantity)) <= 0:
            raise LedgerValidationError(
                f"Line {idx + 1}: quantity must be greater than 0", line_index=idx, field="quantity",
            )

        logger.debug(
            f"Line {idx + 1} validated: {line.item} - {line.category} - "
            f"{line.amount} ({line.payment_method})"
        )


def compute_totals(lines) -> Tuple[Decimal, Decimal]:
    """(total_cash_spent, total_supplier_spent) for a set of lines."""
    total_cash = ZERO
    total_supplier = ZERO
    for line in lines:
        amount = to_money(line.amount)
        if PaymentMethod(line.payment_method) == PaymentMethod.CASH:
            total_cash += amount
        else:
            total_supplier += amount
    return total_cash, total_supplier


def apply_totals(ledger: DailyLedger, lines) -> None:
    """Recompute spend totals and closing cash; opening cash is never touched."""
    total_cash, total_supplier = compute_totals(lines)
    ledger.total_cash_spent = total_cash
    ledger.total_supplier_spent = total_supplier
    # Supplier-credit spend does not reduce cash on hand.
    ledger.closing_cash = to_money(ledger.opening_cash) - total_cash


def build_lines(lines: Sequence[LedgerLineCreate]) -> List[LedgerLine]:
    return [
        LedgerLine(
            position=idx,
            item=line.item.strip(),
            category=LineCategory(line.category),
            amount=to_money(line.amount),
            payment_method=PaymentMethod(line.payment_method),
            quantity=line.quantity,
            unit=line.unit,
            supplier_id=line.supplier_id,
            note=line.note,
        )
        for idx, line in enumerate(lines)
    ]


# ==================== QUERIES ====================

def get_ledger_by_id(db: Session, ledger_id: str, for_update: bool = False) -> Optional[DailyLedger]:
    query = db.query(DailyLedger).filter(DailyLedger.id == ledger_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    return query.first()


def get_ledger_by_date(db: Session, project_id: str, ledger_date: date) -> Optional[DailyLedger]:
    return (
        db.query(DailyLedger)
        .filter(
            DailyLedger.project_id == project_id,
            DailyLedger.date == ledger_date,
        )
        .first()
    )


def list_ledgers(db: Session, project_id: str) -> List[DailyLedger]:
    """All ledgers for a project, newest day first, lines loaded."""
    return (
        db.query(DailyLedger)
        .options(selectinload(DailyLedger.lines))
        .filter(DailyLedger.project_id == project_id)
        .order_by(DailyLedger.date.desc())
        .all()
    )


# ==================== WRITES ====================

DUPLICATE_DATE_CONSTRAINT = "uq_daily_ledgers_project_date"
# SQLite reports the columns rather than the constraint name
SQLITE_DUPLICATE_DATE = "daily_ledgers.project_id, daily_ledgers.date"


def _is_duplicate_date(error: IntegrityError) -> bool:
    diag = getattr(error.orig, "diag", None)
    if getattr(diag, "constraint_name", None) == DUPLICATE_DATE_CONSTRAINT:
        return True
    message = str(error.orig)
    return DUPLICATE_DATE_CONSTRAINT in message or SQLITE_DUPLICATE_DATE in message


def insert_ledger(
    db: Session,
    project_id: str,
    ledger_date: date,
    opening_cash: Decimal,
    notes: Optional[str],
    lines: Sequence[LedgerLineCreate],
) -> DailyLedger:
    """
    Insert ledger + lines and flush. Must run inside the caller's transaction,
    after its duplicate-date check; the unique constraint catches the race.
    """
    ledger = DailyLedger(
        project_id=project_id,
        date=ledger_date,
        opening_cash=to_money(opening_cash),
        notes=notes,
        submitted_at=datetime.now(timezone.utc),
    )
    ledger.lines = build_lines(lines)
    apply_totals(ledger, ledger.lines)

    db.add(ledger)
    try:
        db.flush()
    except IntegrityError as ie:
        if not _is_duplicate_date(ie):
            raise
        logger.warning(f"Unique constraint hit creating ledger for {project_id} on {ledger_date}: {ie.orig}")
        raise DuplicateLedgerDate(project_id, ledger_date) from ie

    logger.info(
        f"Ledger inserted: {ledger.id} - Project: {project_id}, Date: {ledger_date}, "
        f"Lines: {len(ledger.lines)}, Opening: {ledger.opening_cash}, "
        f"Cash spent: {ledger.total_cash_spent}, Supplier spent: {ledger.total_supplier_spent}, "
        f"Closing: {ledger.closing_cash}"
    )
    return ledger


def replace_lines(db: Session, ledger: DailyLedger, lines: Sequence[LedgerLineCreate]) -> List[LedgerLine]:
    """Delete every existing line, insert the new set, recompute totals."""
    old_count = len(ledger.lines)
    closing_before = ledger.closing_cash

    ledger.lines.clear()
    db.flush()

    ledger.lines = build_lines(lines)
    apply_totals(ledger, ledger.lines)
    db.flush()

    logger.info(
        f"Ledger {ledger.id} lines replaced: {old_count} → {len(ledger.lines)}, "
        f"Closing: {closing_before} → {ledger.closing_cash}"
    )
    return ledger.lines
