"""
Fan-out of ledger lines into supplier purchases and inventory receipts.

Every line is classified once into a LineEffect; apply and reverse both work
from that classification, so a reversal undoes exactly what apply produced.

    CASH_SPEND        cash line, nothing to fan out
    SUPPLIER_SPEND    supplier-paid line    -> SupplierPurchase
    MATERIAL_RECEIPT  quantified Materials/Equipment line -> InventoryReceipt
    BOTH              supplier-paid quantified Materials/Equipment line -> both
"""

import enum
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from siteledger.common.exceptions import LedgerValidationError
from siteledger.logger_config import logger
from siteledger.models.base import ZERO, to_money
from siteledger.models.inventory import InventoryReceipt
from siteledger.models.ledger import INVENTORY_CATEGORIES, DailyLedger, LedgerLine, LineCategory, PaymentMethod
from siteledger.models.supplier import Supplier, SupplierPurchase
from siteledger.services.supplier_service import lock_suppliers, validate_supplier_balance


class LineEffect(str, enum.Enum):
    CASH_SPEND = "cash_spend"
    SUPPLIER_SPEND = "supplier_spend"
    MATERIAL_RECEIPT = "material_receipt"
    BOTH = "both"

    @property
    def creates_purchase(self) -> bool:
        return self in (LineEffect.SUPPLIER_SPEND, LineEffect.BOTH)

    @property
    def creates_receipt(self) -> bool:
        return self in (LineEffect.MATERIAL_RECEIPT, LineEffect.BOTH)


def classify_line(line) -> LineEffect:
    """Works on request lines and persisted LedgerLine rows alike."""
    supplier_spend = (
        PaymentMethod(line.payment_method) == PaymentMethod.SUPPLIER
        and bool(line.supplier_id)
    )
    receipt = (
        LineCategory(line.category) in INVENTORY_CATEGORIES
        and line.quantity is not None
        and bool(line.unit)
    )

    if supplier_spend and receipt:
        return LineEffect.BOTH
    if supplier_spend:
        return LineEffect.SUPPLIER_SPEND
    if receipt:
        return LineEffect.MATERIAL_RECEIPT
    return LineEffect.CASH_SPEND


class FanoutEngine:
    """Creates and removes the records a ledger's lines imply. Never commits."""

    def __init__(self, db: Session):
        self.db = db
        self._released: List[InventoryReceipt] = []

    # ================= APPLY =================

    def apply(self, ledger: DailyLedger, lines: Sequence[LedgerLine]) -> Dict[str, int]:
        effects = [(line, classify_line(line)) for line in lines]

        suppliers = lock_suppliers(
            self.db,
            [line.supplier_id for line, effect in effects if effect.creates_purchase],
        )

        counts = {"purchases": 0, "receipts": 0}
        for line, effect in effects:
            logger.debug(f"Applying line {line.id} ({line.item}) as {effect.value}")
            if effect.creates_purchase:
                self._apply_purchase(ledger, line, suppliers[line.supplier_id])
                counts["purchases"] += 1
            if effect.creates_receipt:
                self._apply_receipt(ledger, line)
                counts["receipts"] += 1

        self._discard_released(ledger)
        self.db.flush()
        logger.info(
            f"Fan-out applied for ledger {ledger.id}: "
            f"{counts['purchases']} supplier purchases, {counts['receipts']} inventory receipts"
        )
        return counts

    def _apply_purchase(self, ledger: DailyLedger, line: LedgerLine, supplier: Supplier) -> SupplierPurchase:
        amount = to_money(line.amount)
        validate_supplier_balance(self.db, supplier.id, amount)

        balance_before = supplier.current_balance
        supplier.apply_purchase(amount)

        purchase = SupplierPurchase(
            supplier_id=supplier.id,
            project_id=ledger.project_id,
            amount=amount,
            item=line.item,
            date=ledger.date,
            ledger_id=ledger.id,
            ledger_line_id=line.id,
        )
        self.db.add(purchase)

        logger.info(
            f"Supplier purchase from ledger {ledger.id}: {supplier.name} ({supplier.id}), "
            f"Amount: {amount}, Balance: {balance_before} → {supplier.current_balance}"
        )
        return purchase

    def _apply_receipt(self, ledger: DailyLedger, line: LedgerLine) -> InventoryReceipt:
        receipt = self._reattach_receipt(ledger, line)
        if receipt is not None:
            return receipt

        receipt = InventoryReceipt(
            project_id=ledger.project_id,
            item=line.item,
            unit=line.unit,
            quantity=line.quantity,
            quantity_used=ZERO,
            quantity_remaining=line.quantity,
            delivery_date=ledger.date,
            ledger_id=ledger.id,
            ledger_line_id=line.id,
        )
        self.db.add(receipt)

        logger.debug(f"Inventory receipt from ledger {ledger.id}: {line.item} x {line.quantity} {line.unit}")
        return receipt

    def _reattach_receipt(self, ledger: DailyLedger, line: LedgerLine) -> Optional[InventoryReceipt]:
        """Move a receipt detached by reverse(keep_receipts=True) onto the new line with the same item and unit."""
        for idx, receipt in enumerate(self._released):
            if receipt.item == line.item and receipt.unit == line.unit:
                break
        else:
            return None

        quantity = Decimal(str(line.quantity))
        used = Decimal(str(receipt.quantity_used or ZERO))
        if used > quantity:
            raise LedgerValidationError(
                f"Line {line.position + 1}: {used} {line.unit} of {line.item} already used, "
                f"quantity cannot drop to {quantity}",
                line_index=line.position,
                field="quantity",
            )

        self._released.pop(idx)
        quantity_before = receipt.quantity
        receipt.ledger_line_id = line.id
        receipt.quantity = quantity
        receipt.quantity_remaining = quantity - used
        receipt.delivery_date = ledger.date

        logger.debug(
            f"Inventory receipt {receipt.id} kept for ledger {ledger.id} line {line.id}: "
            f"{line.item} {quantity_before} → {quantity} {line.unit}, used {used}"
        )
        return receipt

    def _discard_released(self, ledger: DailyLedger) -> int:
        """Delete detached receipts no new line claimed."""
        released, self._released = self._released, []
        for receipt in released:
            self._delete_receipt(receipt)
        if released:
            logger.info(f"Removed {len(released)} unmatched inventory receipts from ledger {ledger.id}")
        return len(released)

    # ================= REVERSE =================

    def reverse(self, ledger: DailyLedger, lines: Sequence[LedgerLine], keep_receipts: bool = False) -> Dict[str, int]:
        """
        Undo apply() for previously persisted lines: delete their purchases
        (crediting the supplier back) and receipts. Flushes before returning,
        so a following apply() sees the restored balances.

        With keep_receipts the receipts are detached instead of deleted; the
        next apply() reattaches those matching a new line and deletes the rest.
        """
        self._released = []
        effects = [(line, classify_line(line)) for line in lines]

        purchases_by_line: Dict[str, List[SupplierPurchase]] = {}
        for line, effect in effects:
            if effect.creates_purchase:
                purchases_by_line[line.id] = (
                    self.db.query(SupplierPurchase)
                    .filter(SupplierPurchase.ledger_line_id == line.id)
                    .all()
                )

        suppliers = lock_suppliers(
            self.db,
            [p.supplier_id for purchases in purchases_by_line.values() for p in purchases],
        )

        counts = {"purchases": 0, "receipts": 0}
        for line, effect in effects:
            if effect.creates_purchase:
                counts["purchases"] += self._reverse_purchases(ledger, line, purchases_by_line[line.id], suppliers)
            if effect.creates_receipt:
                counts["receipts"] += self._reverse_receipts(ledger, line, keep_receipts)

        self.db.flush()
        logger.info(
            f"Fan-out reversed for ledger {ledger.id}: "
            f"{counts['purchases']} supplier purchases, {counts['receipts']} inventory receipts"
        )
        return counts

    def _reverse_purchases(
        self,
        ledger: DailyLedger,
        line: LedgerLine,
        purchases: List[SupplierPurchase],
        suppliers: Dict[str, Supplier],
    ) -> int:
        if not purchases:
            logger.warning(f"No supplier purchase found for ledger {ledger.id} line {line.id} ({line.item})")
            return 0

        for purchase in purchases:
            supplier = suppliers[purchase.supplier_id]
            balance_before = supplier.current_balance
            supplier.reverse_purchase(purchase.amount)
            self.db.delete(purchase)

            logger.info(
                f"Supplier purchase {purchase.id} reversed: {supplier.name} ({supplier.id}), "
                f"Amount: {purchase.amount}, Balance: {balance_before} → {supplier.current_balance}"
            )
        return len(purchases)

    def _reverse_receipts(self, ledger: DailyLedger, line: LedgerLine, keep: bool) -> int:
        receipts = (
            self.db.query(InventoryReceipt)
            .filter(InventoryReceipt.ledger_line_id == line.id)
            .order_by(InventoryReceipt.created_at)
            .all()
        )
        if not receipts:
            logger.warning(f"No inventory receipt found for ledger {ledger.id} line {line.id} ({line.item})")
            return 0

        for receipt in receipts:
            if keep:
                # Release the line reference so the old line can be deleted.
                receipt.ledger_line_id = None
                self._released.append(receipt)
            else:
                self._delete_receipt(receipt)
        return len(receipts)

    def _delete_receipt(self, receipt: InventoryReceipt) -> None:
        if receipt.quantity_used and receipt.quantity_used > 0:
            logger.warning(
                f"Removing inventory receipt {receipt.id} ({receipt.item}) "
                f"with {receipt.quantity_used} already used"
            )
        self.db.delete(receipt)
