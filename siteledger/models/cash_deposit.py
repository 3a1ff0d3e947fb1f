from sqlalchemy import Column, Date, DateTime, Numeric, String, Text
from sqlalchemy.sql import func

from siteledger.core.database import Base
from siteledger.models.base import generate_custom_id


class CashDeposit(Base):
    """Cash sent to the project (mobile money, bank transfer, handover)."""
    __tablename__ = "cash_deposits"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("DEP"))
    project_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    method = Column(String(50), nullable=False)
    reference = Column(String(100), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
