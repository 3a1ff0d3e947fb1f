from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from siteledger.common.exceptions import InsufficientSupplierBalance, LedgerValidationError
from siteledger.core.database import Base
from siteledger.models.base import ZERO, generate_custom_id, to_money


class Supplier(Base):
    """
    Credit account with a vendor.

    current_balance == total_deposited - total_spent and never drops below
    zero. Only apply_deposit, apply_purchase and reverse_purchase touch the
    three money columns.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_suppliers_balance_non_negative"),
    )

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("SUP"))
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    total_deposited = Column(Numeric(15, 2), nullable=False, default=0)
    total_spent = Column(Numeric(15, 2), nullable=False, default=0)
    current_balance = Column(Numeric(15, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    purchases = relationship("SupplierPurchase", back_populates="supplier")
    deposits = relationship("SupplierDeposit", back_populates="supplier",
                            cascade="all, delete-orphan")

    def _balances(self):
        return (
            to_money(self.total_deposited or ZERO),
            to_money(self.total_spent or ZERO),
        )

    def apply_deposit(self, amount: Decimal) -> None:
        amount = to_money(amount)
        if amount <= 0:
            raise LedgerValidationError("Deposit amount must be greater than 0", field="amount")

        deposited, spent = self._balances()
        self.total_deposited = deposited + amount
        self.total_spent = spent
        self.current_balance = self.total_deposited - spent

    def apply_purchase(self, amount: Decimal) -> None:
        amount = to_money(amount)
        if amount <= 0:
            raise LedgerValidationError("Purchase amount must be greater than 0", field="amount")

        deposited, spent = self._balances()
        available = deposited - spent
        if amount > available:
            raise InsufficientSupplierBalance(self.id, amount, available, supplier_name=self.name)

        self.total_deposited = deposited
        self.total_spent = spent + amount
        self.current_balance = deposited - self.total_spent

    def reverse_purchase(self, amount: Decimal) -> None:
        amount = to_money(amount)
        deposited, spent = self._balances()
        if amount > spent:
            # Reversing more than was ever spent would push total_spent negative.
            raise LedgerValidationError(
                f"Cannot reverse {amount} on supplier {self.id}: only {spent} spent",
                field="amount",
            )

        self.total_deposited = deposited
        self.total_spent = spent - amount
        self.current_balance = deposited - self.total_spent

    def __repr__(self):
        return f"<Supplier(id='{self.id}', name='{self.name}', balance={self.current_balance})>"


class SupplierDeposit(Base):
    """Credit extended to a supplier (money paid in advance)."""
    __tablename__ = "supplier_deposits"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("SDEP"))
    supplier_id = Column(String(20), ForeignKey("suppliers.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    date = Column(Date, nullable=False)
    reference = Column(String(100), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    supplier = relationship("Supplier", back_populates="deposits")


class SupplierPurchase(Base):
    """
    One supplier-credit spend. Ledger fan-out fills ledger_id/ledger_line_id;
    standalone purchases leave them empty.
    """
    __tablename__ = "supplier_purchases"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("SPUR"))
    supplier_id = Column(String(20), ForeignKey("suppliers.id"), nullable=False, index=True)
    project_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    item = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)

    ledger_id = Column(String(20), ForeignKey("daily_ledgers.id"), nullable=True, index=True)
    ledger_line_id = Column(String(20), ForeignKey("daily_ledger_lines.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    supplier = relationship("Supplier", back_populates="purchases")
