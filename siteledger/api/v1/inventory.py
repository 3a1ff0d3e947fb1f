from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from siteledger.core.dependencies import get_db
from siteledger.schemas.inventory import (
    InventoryListResponse,
    InventoryReceiptResponse,
    InventoryUsageCreate,
)
from siteledger.services.inventory_service import get_inventory, record_inventory_usage

router = APIRouter()


@router.get("/projects/{project_id}/inventory", response_model=InventoryListResponse)
def list_inventory(
    project_id: str,
    item: Optional[str] = Query(None, description="Filter by item name"),
    db: Session = Depends(get_db),
):
    receipts = get_inventory(db, project_id, item=item)
    return InventoryListResponse(
        total=len(receipts),
        receipts=[InventoryReceiptResponse.model_validate(r) for r in receipts],
    )


@router.post("/inventory/{receipt_id}/usage", response_model=InventoryReceiptResponse)
def record_usage(
    receipt_id: str,
    data: InventoryUsageCreate,
    db: Session = Depends(get_db),
):
    receipt = record_inventory_usage(db, receipt_id, data.quantity)
    return InventoryReceiptResponse.model_validate(receipt)
