from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from siteledger.common.exceptions import InventoryReceiptNotFound, LedgerValidationError
from siteledger.core.transaction import transaction_scope
from siteledger.logger_config import logger
from siteledger.models.inventory import InventoryReceipt


def get_inventory(db: Session, project_id: str, item: Optional[str] = None) -> List[InventoryReceipt]:
    """Receipts for a project, newest delivery first."""
    query = db.query(InventoryReceipt).filter(InventoryReceipt.project_id == project_id)
    if item:
        query = query.filter(InventoryReceipt.item.ilike(f"%{item}%"))
    return query.order_by(InventoryReceipt.delivery_date.desc(), InventoryReceipt.created_at.desc()).all()


def record_inventory_usage(db: Session, receipt_id: str, quantity: Decimal) -> InventoryReceipt:
    """Consume stock from a receipt: used += quantity, remaining -= quantity."""
    quantity = Decimal(str(quantity))
    if quantity <= 0:
        raise LedgerValidationError("Usage quantity must be greater than 0", field="quantity")

    with transaction_scope(db, "record inventory usage"):
        receipt = (
            db.query(InventoryReceipt)
            .filter(InventoryReceipt.id == receipt_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not receipt:
            raise InventoryReceiptNotFound(receipt_id)

        remaining_before = receipt.quantity_remaining
        if quantity > remaining_before:
            raise LedgerValidationError(
                f"Cannot use {quantity} of {receipt.item}: only {remaining_before} remaining",
                field="quantity",
            )

        receipt.quantity_used = receipt.quantity_used + quantity
        receipt.quantity_remaining = remaining_before - quantity

    db.refresh(receipt)
    logger.info(
        f"Inventory usage recorded: {receipt.id} ({receipt.item}) - "
        f"Used: {quantity}, Remaining: {remaining_before} → {receipt.quantity_remaining}"
    )
    return receipt
