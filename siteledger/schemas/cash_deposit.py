from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

DateType = date


class CashDepositCreate(BaseModel):
    project_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0)
    date: DateType
    method: str = Field(..., min_length=1, max_length=50)  # Mobile Money, Bank Transfer, Cash Handover
    reference: Optional[str] = Field(None, max_length=100)
    note: Optional[str] = None


class CashDepositResponse(BaseModel):
    id: str
    project_id: str
    amount: Decimal
    date: DateType
    method: str
    reference: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CashDepositListResponse(BaseModel):
    total: int
    total_amount: Decimal
    deposits: List[CashDepositResponse]
