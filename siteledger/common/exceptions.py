"""
Typed errors raised by the ledger engine.

Every error aborts the whole create/update/delete it was raised in: the
transaction scope rolls back before the error reaches the caller.

    LedgerError (base, a ValueError)
    ├── DuplicateLedgerDate          - ledger already exists for project+date
    ├── InsufficientSupplierBalance  - supplier credit would go negative
    ├── NotFound
    │   ├── LedgerNotFound
    │   │   └── LedgerDateNotFound
    │   ├── SupplierNotFound
    │   └── InventoryReceiptNotFound
    ├── LedgerValidationError        - malformed line or amount
    └── LedgerTransactionTimeout     - statement/lock timeout, safe to retry
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(ValueError):
    """Base class; carries a machine-readable code and structured details."""

    default_error_code: str = "LEDGER_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
            "retryable": self.retryable,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class DuplicateLedgerDate(LedgerError):
    """A ledger already exists for this project and day; route to update instead."""

    default_error_code = "DUPLICATE_LEDGER_DATE"

    def __init__(self, project_id: str, ledger_date: date, existing_ledger_id: Optional[str] = None):
        self.project_id = project_id
        self.ledger_date = ledger_date
        self.existing_ledger_id = existing_ledger_id

        details: Dict[str, Any] = {
            "project_id": project_id,
            "date": ledger_date.isoformat(),
        }
        if existing_ledger_id:
            details["ledger_id"] = existing_ledger_id

        super().__init__(
            message=(
                f"A daily ledger already exists for {ledger_date.isoformat()}. "
                f"Edit the existing ledger instead of creating a new one."
            ),
            details=details,
        )


class InsufficientSupplierBalance(LedgerError):
    """
    Raised when a supplier-credit spend exceeds the supplier's available balance.

    Attributes:
        supplier_id: supplier whose credit is short
        requested: amount the purchase needs
        available: supplier's current balance at validation time
        shortfall: requested - available
    """

    default_error_code = "INSUFFICIENT_SUPPLIER_BALANCE"

    def __init__(
        self,
        supplier_id: str,
        requested: Decimal,
        available: Decimal,
        supplier_name: Optional[str] = None,
    ):
        self.supplier_id = supplier_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available

        label = supplier_name or supplier_id
        super().__init__(
            message=(
                f"Insufficient supplier balance for {label}. "
                f"Purchase amount ({requested}) exceeds available balance ({available}) "
                f"by {self.shortfall}. Add more credit to this supplier first."
            ),
            details={
                "supplier_id": supplier_id,
                "requested": str(requested),
                "available": str(available),
                "shortfall": str(self.shortfall),
            },
        )


class NotFound(LedgerError):
    default_error_code = "NOT_FOUND"
    resource = "Resource"

    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        super().__init__(
            message=f"{self.resource} {resource_id} not found",
            details={"id": resource_id},
        )


class LedgerNotFound(NotFound):
    default_error_code = "LEDGER_NOT_FOUND"
    resource = "Ledger"


class LedgerDateNotFound(LedgerNotFound):
    """No ledger recorded for this project and day."""

    def __init__(self, project_id: str, ledger_date: date):
        self.project_id = project_id
        self.ledger_date = ledger_date
        self.resource_id = f"{project_id}/{ledger_date.isoformat()}"
        LedgerError.__init__(
            self,
            message=f"No daily ledger found for {ledger_date.isoformat()} on project {project_id}",
            details={"project_id": project_id, "date": ledger_date.isoformat()},
        )


class SupplierNotFound(NotFound):
    default_error_code = "SUPPLIER_NOT_FOUND"
    resource = "Supplier"


class InventoryReceiptNotFound(NotFound):
    default_error_code = "INVENTORY_RECEIPT_NOT_FOUND"
    resource = "Inventory receipt"


class LedgerValidationError(LedgerError):
    """Malformed input that the engine refuses before touching the database."""

    default_error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, line_index: Optional[int] = None, field: Optional[str] = None):
        self.line_index = line_index
        self.field = field

        details: Dict[str, Any] = {}
        if line_index is not None:
            details["line"] = line_index
        if field:
            details["field"] = field

        super().__init__(message=message, details=details)


class LedgerTransactionTimeout(LedgerError):
    """The transaction hit its statement or lock timeout and was rolled back."""

    default_error_code = "TRANSACTION_TIMEOUT"
    retryable = True

    def __init__(self, operation: str, timeout_seconds: int):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            message=f"{operation} did not finish within {timeout_seconds}s and was rolled back. Retry the request.",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )
