from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime

from siteledger.models.ledger import LineCategory, PaymentMethod

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class LedgerLineCreate(BaseModel):
    """One expense line. Supplier-paid lines need supplier_id (checked by the engine)."""
    item: str = Field(..., min_length=1, max_length=255)
    category: LineCategory
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod
    quantity: Optional[Decimal] = None
    unit: Optional[str] = Field(None, max_length=30)
    supplier_id: Optional[str] = None
    note: Optional[str] = None


class LedgerCreate(BaseModel):
    project_id: str = Field(..., min_length=1, max_length=64)
    date: DateType
    notes: Optional[str] = None


class LedgerCreateRequest(BaseModel):
    ledger: LedgerCreate
    lines: List[LedgerLineCreate] = Field(default_factory=list)


class LedgerUpdate(BaseModel):
    """Editable ledger fields. Opening cash and date are fixed at creation."""
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = None


class LedgerUpdateRequest(BaseModel):
    """lines is the complete replacement set, not a diff."""
    ledger: LedgerUpdate = Field(default_factory=LedgerUpdate)
    lines: List[LedgerLineCreate]


class LedgerLineResponse(BaseModel):
    id: str
    position: int
    item: str
    category: LineCategory
    amount: Decimal
    payment_method: PaymentMethod
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    supplier_id: Optional[str] = None
    note: Optional[str] = None

    class Config:
        from_attributes = True


class LedgerResponse(BaseModel):
    id: str
    project_id: str
    date: DateType
    opening_cash: Decimal
    closing_cash: Decimal
    total_cash_spent: Decimal
    total_supplier_spent: Decimal
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    lines: List[LedgerLineResponse] = []

    class Config:
        from_attributes = True


class LedgerListResponse(BaseModel):
    total: int
    ledgers: List[LedgerResponse]


class OpeningBalanceResponse(BaseModel):
    project_id: str
    date: DateType
    opening_balance: Decimal
    last_closing_balance: Optional[Decimal] = None
    cash_deposits_total: Decimal


class CashSummaryResponse(BaseModel):
    project_id: str
    total_deposits: Decimal
    total_cash_spent: Decimal
    total_supplier_spent: Decimal
    total_spent: Decimal
    cash_balance: Decimal
    category_breakdown: Dict[str, Decimal]
