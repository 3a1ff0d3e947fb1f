from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.sql import func

from siteledger.core.database import Base
from siteledger.models.base import generate_custom_id


class InventoryReceipt(Base):
    """Material or equipment delivered to site, generated from a ledger line."""
    __tablename__ = "inventory_receipts"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("INV"))
    project_id = Column(String(64), nullable=False, index=True)
    item = Column(String(255), nullable=False)
    unit = Column(String(30), nullable=True)

    quantity = Column(Numeric(12, 2), nullable=False)
    quantity_used = Column(Numeric(12, 2), nullable=False, default=0)
    quantity_remaining = Column(Numeric(12, 2), nullable=False)

    delivery_date = Column(Date, nullable=False)

    ledger_id = Column(String(20), ForeignKey("daily_ledgers.id"), nullable=True, index=True)
    ledger_line_id = Column(String(20), ForeignKey("daily_ledger_lines.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())
