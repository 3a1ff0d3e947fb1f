from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from siteledger.common.exceptions import LedgerValidationError
from siteledger.logger_config import logger
from siteledger.models.base import to_money
from siteledger.models.cash_deposit import CashDeposit


def record_cash_deposit(
    db: Session,
    project_id: str,
    amount: Decimal,
    deposit_date: date,
    method: str,
    reference: Optional[str] = None,
    note: Optional[str] = None,
) -> CashDeposit:
    """Record cash sent to the project. Feeds the next ledger's opening balance."""
    amount = to_money(amount)
    if amount <= 0:
        raise LedgerValidationError("Deposit amount must be greater than 0", field="amount")
    if not method or not method.strip():
        raise LedgerValidationError("Deposit method is required", field="method")

    deposit = CashDeposit(
        project_id=project_id,
        amount=amount,
        date=deposit_date,
        method=method.strip(),
        reference=reference,
        note=note,
    )
    db.add(deposit)
    try:
        db.commit()
        db.refresh(deposit)
    except Exception:
        db.rollback()
        logger.exception(f"Error recording cash deposit for project {project_id}")
        raise

    logger.info(
        f"Cash deposit recorded: {deposit.id} - Project: {project_id}, "
        f"Amount: {amount}, Date: {deposit_date}, Method: {deposit.method}"
    )
    return deposit


def get_cash_deposits(db: Session, project_id: str) -> Tuple[List[CashDeposit], Decimal]:
    """All deposits for a project, newest first, plus their total."""
    query = db.query(CashDeposit).filter(CashDeposit.project_id == project_id)

    total_amount = to_money(
        query.with_entities(func.coalesce(func.sum(CashDeposit.amount), 0)).scalar()
    )
    rows = query.order_by(CashDeposit.date.desc(), CashDeposit.created_at.desc()).all()
    return rows, total_amount
