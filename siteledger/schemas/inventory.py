from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime


class InventoryReceiptResponse(BaseModel):
    id: str
    project_id: str
    item: str
    unit: Optional[str] = None
    quantity: Decimal
    quantity_used: Decimal
    quantity_remaining: Decimal
    delivery_date: date
    ledger_id: Optional[str] = None
    ledger_line_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InventoryListResponse(BaseModel):
    total: int
    receipts: List[InventoryReceiptResponse]


class InventoryUsageCreate(BaseModel):
    quantity: Decimal = Field(..., gt=0)
