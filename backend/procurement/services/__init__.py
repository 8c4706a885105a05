"""Procurement Services

Business operations behind the HTTP routers.
"""

from procurement.services.suppliers import SupplierService
from procurement.services.purchase_orders import (
    PurchaseOrderService,
    ALLOWED_TRANSITIONS,
    check_transition,
    compute_totals,
)
from procurement.services.receipts import ReceiptService

__all__ = [
    "SupplierService",
    "PurchaseOrderService",
    "ALLOWED_TRANSITIONS",
    "check_transition",
    "compute_totals",
    "ReceiptService",
]
