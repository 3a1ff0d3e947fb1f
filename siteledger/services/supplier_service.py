from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from siteledger.common.exceptions import LedgerValidationError, SupplierNotFound, InsufficientSupplierBalance
from siteledger.core.transaction import transaction_scope
from siteledger.logger_config import logger
from siteledger.models.base import ZERO, to_money
from siteledger.models.ledger import DailyLedger, LedgerLine, PaymentMethod
from siteledger.models.supplier import Supplier, SupplierDeposit, SupplierPurchase


# ==================== SUPPLIER QUERIES ====================

def get_supplier_by_id(db: Session, supplier_id: str) -> Optional[Supplier]:
    """Get supplier by ID."""
    return db.query(Supplier).filter(Supplier.id == supplier_id).first()


def get_all_suppliers(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None
) -> Tuple[List[Supplier], int]:
    """Get all suppliers with optional name search."""
    query = db.query(Supplier)

    if search:
        query = query.filter(Supplier.name.ilike(f"%{search}%"))

    total = query.count()
    suppliers = query.order_by(Supplier.created_at.desc()).offset(skip).limit(limit).all()
    return suppliers, total


# ==================== LOCKING & VALIDATION ====================

def lock_suppliers(db: Session, supplier_ids: Iterable[str]) -> Dict[str, Supplier]:
    """
    SELECT ... FOR UPDATE every supplier in id order, so two transactions
    touching the same suppliers always lock them in the same sequence.
    """
    ids = sorted(set(supplier_ids))
    if not ids:
        return {}

    # Locked reads reload rows; pending balance changes must reach the database first.
    db.flush()
    rows = (
        db.query(Supplier)
        .filter(Supplier.id.in_(ids))
        .order_by(Supplier.id)
        .with_for_update()
        .populate_existing()
        .all()
    )
    locked = {supplier.id: supplier for supplier in rows}

    for supplier_id in ids:
        if supplier_id not in locked:
            raise SupplierNotFound(supplier_id)

    logger.debug(f"Locked suppliers: {', '.join(ids)}")
    return locked


def validate_supplier_balance(db: Session, supplier_id: str, amount: Decimal) -> Supplier:
    """
    Fail with InsufficientSupplierBalance if amount exceeds the supplier's
    current balance. The row is read FOR UPDATE inside the caller's
    transaction, so the check and the following decrement cannot interleave
    with another purchase against the same supplier.
    """
    amount = to_money(amount)
    db.flush()
    supplier = (
        db.query(Supplier)
        .filter(Supplier.id == supplier_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not supplier:
        logger.error(f"Supplier validation failed: {supplier_id} not found")
        raise SupplierNotFound(supplier_id)

    available = to_money(supplier.current_balance)
    if amount > available:
        logger.warning(
            f"Insufficient balance on supplier {supplier.name} ({supplier.id}): "
            f"requested {amount}, available {available}"
        )
        raise InsufficientSupplierBalance(supplier.id, amount, available, supplier_name=supplier.name)

    return supplier


# ==================== SUPPLIER WRITES ====================

def create_supplier(
    db: Session,
    name: str,
    phone: Optional[str] = None,
    initial_deposit: Optional[Decimal] = None,
) -> Supplier:
    """Create a supplier, optionally with an opening credit deposit."""
    with transaction_scope(db, "create supplier"):
        supplier = Supplier(
            name=name,
            phone=phone,
            total_deposited=ZERO,
            total_spent=ZERO,
            current_balance=ZERO,
        )
        db.add(supplier)
        db.flush()

        if initial_deposit:
            _add_deposit(db, supplier, initial_deposit, date.today(), reference=None, note="Opening credit")

    db.refresh(supplier)
    logger.info(f"Supplier created: {supplier.name} ({supplier.id}) - Balance: {supplier.current_balance}")
    return supplier


def _add_deposit(
    db: Session,
    supplier: Supplier,
    amount: Decimal,
    deposit_date: date,
    reference: Optional[str],
    note: Optional[str],
) -> SupplierDeposit:
    balance_before = supplier.current_balance
    supplier.apply_deposit(amount)

    deposit = SupplierDeposit(
        supplier_id=supplier.id,
        amount=to_money(amount),
        date=deposit_date,
        reference=reference,
        note=note,
    )
    db.add(deposit)

    logger.info(
        f"Supplier deposit - {supplier.name} ({supplier.id}): "
        f"Amount: {deposit.amount}, Balance: {balance_before} → {supplier.current_balance}"
    )
    return deposit


def record_supplier_deposit(
    db: Session,
    supplier_id: str,
    amount: Decimal,
    deposit_date: Optional[date] = None,
    reference: Optional[str] = None,
    note: Optional[str] = None,
) -> SupplierDeposit:
    """Top up a supplier's credit: total_deposited and current_balance both rise."""
    with transaction_scope(db, "record supplier deposit"):
        locked = lock_suppliers(db, [supplier_id])
        deposit = _add_deposit(
            db, locked[supplier_id], amount, deposit_date or date.today(), reference, note,
        )

    db.refresh(deposit)
    return deposit


def create_supplier_purchase(
    db: Session,
    supplier_id: str,
    project_id: str,
    amount: Decimal,
    item: str,
    purchase_date: Optional[date] = None,
) -> SupplierPurchase:
    """Standalone supplier-credit purchase, outside any daily ledger."""
    amount = to_money(amount)
    if amount <= 0:
        raise LedgerValidationError("Purchase amount must be greater than 0", field="amount")

    with transaction_scope(db, "create supplier purchase"):
        supplier = validate_supplier_balance(db, supplier_id, amount)
        balance_before = supplier.current_balance
        supplier.apply_purchase(amount)

        purchase = SupplierPurchase(
            supplier_id=supplier.id,
            project_id=project_id,
            amount=amount,
            item=item,
            date=purchase_date or date.today(),
        )
        db.add(purchase)

    db.refresh(purchase)
    logger.info(
        f"Supplier purchase created: {purchase.id} - {supplier.name}, "
        f"Amount: {amount}, Balance: {balance_before} → {supplier.current_balance}"
    )
    return purchase


# ==================== PURCHASE HISTORY ====================

def get_supplier_purchases(
    db: Session,
    project_id: Optional[str] = None,
    supplier_id: Optional[str] = None,
) -> List[SupplierPurchase]:
    query = db.query(SupplierPurchase)
    if project_id:
        query = query.filter(SupplierPurchase.project_id == project_id)
    if supplier_id:
        query = query.filter(SupplierPurchase.supplier_id == supplier_id)
    return query.order_by(SupplierPurchase.date.desc(), SupplierPurchase.created_at.desc()).all()


def get_supplier_transaction_history(
    db: Session,
    supplier_id: str,
    project_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Standalone purchases plus supplier-paid ledger lines, newest first."""
    supplier = get_supplier_by_id(db, supplier_id)
    if not supplier:
        raise SupplierNotFound(supplier_id)

    purchases = [
        {
            "source": "purchase",
            "id": p.id,
            "project_id": p.project_id,
            "date": p.date,
            "item": p.item,
            "amount": p.amount,
            "ledger_id": p.ledger_id,
        }
        for p in get_supplier_purchases(db, project_id=project_id, supplier_id=supplier_id)
        if p.ledger_id is None
    ]

    query = (
        db.query(LedgerLine, DailyLedger)
        .join(DailyLedger, DailyLedger.id == LedgerLine.ledger_id)
        .filter(
            LedgerLine.supplier_id == supplier_id,
            LedgerLine.payment_method == PaymentMethod.SUPPLIER,
        )
    )
    if project_id:
        query = query.filter(DailyLedger.project_id == project_id)

    ledger_entries = [
        {
            "source": "ledger",
            "id": line.id,
            "project_id": ledger.project_id,
            "date": ledger.date,
            "item": line.item,
            "amount": line.amount,
            "ledger_id": ledger.id,
        }
        for line, ledger in query.order_by(DailyLedger.date.desc(), LedgerLine.position).all()
    ]

    logger.info(
        f"Transaction history for supplier {supplier_id}: "
        f"{len(purchases)} purchases, {len(ledger_entries)} ledger entries"
    )
    return {"supplier": supplier, "purchases": purchases, "ledger_entries": ledger_entries}
