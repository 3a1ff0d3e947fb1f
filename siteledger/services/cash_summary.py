from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from siteledger.logger_config import logger
from siteledger.models.base import to_money
from siteledger.models.cash_deposit import CashDeposit
from siteledger.models.ledger import DailyLedger, LedgerLine


class ProjectCashAnalytics:
    """Project-wide spend and cash position derived from ledgers and deposits."""

    def __init__(self, db: Session):
        self.db = db

    def get_cash_summary(self, project_id: str) -> Dict[str, Any]:
        """
        Returns:
            Dict with deposit and spend totals, cash balance
            (deposits - cash spent) and spend per line category
        """
        total_deposits = to_money(
            self.db.query(func.coalesce(func.sum(CashDeposit.amount), 0))
            .filter(CashDeposit.project_id == project_id)
            .scalar()
        )

        totals_row = (
            self.db.query(
                func.coalesce(func.sum(DailyLedger.total_cash_spent), 0),
                func.coalesce(func.sum(DailyLedger.total_supplier_spent), 0),
            )
            .filter(DailyLedger.project_id == project_id)
            .first()
        )
        total_cash_spent = to_money(totals_row[0])
        total_supplier_spent = to_money(totals_row[1])

        breakdown_rows = (
            self.db.query(LedgerLine.category, func.sum(LedgerLine.amount))
            .join(DailyLedger, DailyLedger.id == LedgerLine.ledger_id)
            .filter(DailyLedger.project_id == project_id)
            .group_by(LedgerLine.category)
            .all()
        )
        category_breakdown: Dict[str, Decimal] = {
            category.value: to_money(amount) for category, amount in breakdown_rows
        }

        summary = {
            "project_id": project_id,
            "total_deposits": total_deposits,
            "total_cash_spent": total_cash_spent,
            "total_supplier_spent": total_supplier_spent,
            "total_spent": total_cash_spent + total_supplier_spent,
            "cash_balance": total_deposits - total_cash_spent,
            "category_breakdown": category_breakdown,
        }

        logger.info(
            f"Cash summary for project {project_id}: deposits={total_deposits}, "
            f"cash spent={total_cash_spent}, supplier spent={total_supplier_spent}, "
            f"balance={summary['cash_balance']}"
        )
        return summary
