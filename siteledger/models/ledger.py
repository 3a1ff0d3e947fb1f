import enum
from sqlalchemy import (
    Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from siteledger.core.database import Base
from siteledger.models.base import generate_custom_id


class LineCategory(str, enum.Enum):
    MATERIALS = "Materials"
    LABOR = "Labor"
    EQUIPMENT = "Equipment"
    TRANSPORT = "Transport"
    FOOD = "Food"
    OTHER = "Other"


# Categories whose quantified lines become inventory receipts
INVENTORY_CATEGORIES = frozenset({LineCategory.MATERIALS, LineCategory.EQUIPMENT})


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    SUPPLIER = "supplier"


class DailyLedger(Base):
    """One per project per calendar day."""
    __tablename__ = "daily_ledgers"
    __table_args__ = (
        UniqueConstraint("project_id", "date", name="uq_daily_ledgers_project_date"),
    )

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("LDG"))
    project_id = Column(String(64), nullable=False, index=True)
    date = Column(Date, nullable=False)

    opening_cash = Column(Numeric(15, 2), nullable=False)
    closing_cash = Column(Numeric(15, 2), nullable=False)
    total_cash_spent = Column(Numeric(15, 2), nullable=False, default=0)
    total_supplier_spent = Column(Numeric(15, 2), nullable=False, default=0)

    notes = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    lines = relationship(
        "LedgerLine",
        back_populates="ledger",
        cascade="all, delete-orphan",
        order_by="LedgerLine.position",
    )

    def __repr__(self):
        return f"<DailyLedger(id='{self.id}', project='{self.project_id}', date={self.date})>"


class LedgerLine(Base):
    """Expense entry owned by its ledger; replaced wholesale, never edited in place."""
    __tablename__ = "daily_ledger_lines"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("LLN"))
    ledger_id = Column(String(20), ForeignKey("daily_ledgers.id", ondelete="CASCADE"),
                       nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    item = Column(String(255), nullable=False)
    category = Column(Enum(LineCategory), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=True)
    unit = Column(String(30), nullable=True)
    supplier_id = Column(String(20), ForeignKey("suppliers.id"), nullable=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ledger = relationship("DailyLedger", back_populates="lines")
    supplier = relationship("Supplier")
