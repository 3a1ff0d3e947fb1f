from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import date, datetime

DateType = date


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    initial_deposit: Optional[Decimal] = Field(None, gt=0)


class SupplierResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    total_deposited: Decimal
    total_spent: Decimal
    current_balance: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupplierListResponse(BaseModel):
    total: int
    suppliers: List[SupplierResponse]


class SupplierDepositCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    date: Optional[DateType] = None  # default to today in service
    reference: Optional[str] = Field(None, max_length=100)
    note: Optional[str] = None


class SupplierDepositResponse(BaseModel):
    id: str
    supplier_id: str
    amount: Decimal
    date: DateType
    reference: Optional[str] = None
    note: Optional[str] = None

    class Config:
        from_attributes = True


class SupplierPurchaseCreate(BaseModel):
    supplier_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0)
    item: str = Field(..., min_length=1, max_length=255)
    date: Optional[DateType] = None


class SupplierPurchaseResponse(BaseModel):
    id: str
    supplier_id: str
    project_id: str
    amount: Decimal
    item: str
    date: DateType
    ledger_id: Optional[str] = None
    ledger_line_id: Optional[str] = None

    class Config:
        from_attributes = True


class SupplierPurchaseListResponse(BaseModel):
    total: int
    purchases: List[SupplierPurchaseResponse]


class SupplierTransaction(BaseModel):
    source: Literal["purchase", "ledger"]
    id: str
    project_id: str
    date: DateType
    item: str
    amount: Decimal
    ledger_id: Optional[str] = None


class SupplierTransactionHistoryResponse(BaseModel):
    supplier: SupplierResponse
    purchases: List[SupplierTransaction]
    ledger_entries: List[SupplierTransaction]
