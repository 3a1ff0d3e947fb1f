# siteledger/models/__init__.py
from .supplier import Supplier, SupplierDeposit, SupplierPurchase
from .ledger import DailyLedger, LedgerLine, LineCategory, PaymentMethod
from .inventory import InventoryReceipt
from .cash_deposit import CashDeposit
