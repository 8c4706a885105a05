"""Procurement Models

SQLAlchemy models for suppliers, purchase orders and receipts.
"""

from procurement.models.supplier import Supplier
from procurement.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from procurement.models.receipt import Receipt, ReceiptItem

__all__ = [
    "Supplier",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "Receipt",
    "ReceiptItem",
]
