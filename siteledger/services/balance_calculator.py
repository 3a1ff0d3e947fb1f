"""
Opening balance calculation.

opening_balance(D) = closing cash of the latest ledger before D
                     + cash deposits dated from that ledger's day through D.

With no earlier ledger every deposit up to D counts. Read-only: no locks,
no writes, same answer on repeated calls.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from siteledger.logger_config import logger
from siteledger.models.base import ZERO, to_money
from siteledger.models.cash_deposit import CashDeposit
from siteledger.models.ledger import DailyLedger


def get_last_ledger_before(db: Session, project_id: str, target_date: date) -> Optional[DailyLedger]:
    """Most recent ledger strictly before target_date (unique per day, so unambiguous)."""
    return (
        db.query(DailyLedger)
        .filter(
            DailyLedger.project_id == project_id,
            DailyLedger.date < target_date,
        )
        .order_by(DailyLedger.date.desc())
        .first()
    )


def sum_cash_deposits(
    db: Session,
    project_id: str,
    start_date: Optional[date],
    end_date: date,
) -> Decimal:
    query = db.query(func.coalesce(func.sum(CashDeposit.amount), 0)).filter(
        CashDeposit.project_id == project_id,
        CashDeposit.date <= end_date,
    )
    if start_date is not None:
        query = query.filter(CashDeposit.date >= start_date)

    return to_money(query.scalar())


def get_opening_balance(db: Session, project_id: str, target_date: date) -> Dict[str, Any]:
    """
    Returns {"opening_balance", "last_closing_balance", "cash_deposits_total"}.
    last_closing_balance is None when the project has no earlier ledger.
    """
    last_ledger = get_last_ledger_before(db, project_id, target_date)

    if last_ledger is not None:
        last_closing_balance = to_money(last_ledger.closing_cash)
        window_start = last_ledger.date
    else:
        last_closing_balance = None
        window_start = None

    deposits_total = sum_cash_deposits(db, project_id, window_start, target_date)
    opening_balance = (last_closing_balance if last_closing_balance is not None else ZERO) + deposits_total

    logger.debug(
        f"Opening balance for project {project_id} on {target_date}: "
        f"last closing={last_closing_balance} (window from {window_start}), "
        f"deposits={deposits_total}, opening={opening_balance}"
    )

    return {
        "opening_balance": opening_balance,
        "last_closing_balance": last_closing_balance,
        "cash_deposits_total": deposits_total,
    }
