"""Procurement Schemas

Pydantic schemas for request/response validation.
"""

from procurement.schemas.common import CamelModel, ORMModel
from procurement.schemas.supplier import (
    SupplierBase,
    SupplierCreate,
    SupplierUpdate,
    SupplierResponse,
)
from procurement.schemas.purchase_order import (
    PurchaseOrderItemCreate,
    PurchaseOrderItemResponse,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    PurchaseOrderStatusChange,
    PurchaseOrderResponse,
    PurchaseOrderListItem,
    PurchaseOrderWithItemsResponse,
)
from procurement.schemas.receipt import (
    ReceiptItemCreate,
    ApInvoiceRequest,
    ReceiptCreate,
    ReceiptItemResponse,
    ReceiptResponse,
    ReceiptWithItemsResponse,
)

__all__ = [
    # Common
    "CamelModel",
    "ORMModel",
    # Supplier
    "SupplierBase",
    "SupplierCreate",
    "SupplierUpdate",
    "SupplierResponse",
    # Purchase Order
    "PurchaseOrderItemCreate",
    "PurchaseOrderItemResponse",
    "PurchaseOrderCreate",
    "PurchaseOrderUpdate",
    "PurchaseOrderStatusChange",
    "PurchaseOrderResponse",
    "PurchaseOrderListItem",
    "PurchaseOrderWithItemsResponse",
    # Receipt
    "ReceiptItemCreate",
    "ApInvoiceRequest",
    "ReceiptCreate",
    "ReceiptItemResponse",
    "ReceiptResponse",
    "ReceiptWithItemsResponse",
]
