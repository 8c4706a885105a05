"""Receipt Schemas

Request/response schemas for goods receipts.
"""

from pydantic import Field
from typing import Optional, List
from decimal import Decimal
from datetime import date, datetime

from procurement.schemas.common import CamelModel, ORMModel


class ReceiptItemCreate(CamelModel):
    """One received product"""

    external_product_id: int = Field(..., gt=0)
    sku_snapshot: Optional[str] = Field(None, max_length=100)
    name_snapshot: Optional[str] = Field(None, max_length=255)
    quantity_received: int = Field(..., gt=0)


class ApInvoiceRequest(CamelModel):
    """Explicit accounts-payable invoice to raise with the receipt"""

    invoice_number: Optional[str] = Field(None, max_length=100)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    due_date: Optional[date] = None
    notes: Optional[str] = None


class ReceiptCreate(CamelModel):
    """Schema for creating a receipt"""

    supplier_id: int = Field(..., gt=0)
    purchase_order_id: Optional[int] = Field(None, gt=0)
    warehouse_id: int = Field(..., gt=0)
    reference: Optional[str] = None
    ap_invoice: Optional[ApInvoiceRequest] = None
    items: List[ReceiptItemCreate] = Field(..., min_length=1)


class ReceiptItemResponse(ORMModel):
    """Receipt line response"""

    id: int
    receipt_id: int
    external_product_id: int
    sku_snapshot: Optional[str] = None
    name_snapshot: Optional[str] = None
    quantity_received: int
    created_at: datetime


class ReceiptResponse(ORMModel):
    """Receipt header response"""

    id: int
    supplier_id: int
    purchase_order_id: Optional[int] = None
    warehouse_id: int
    reference: Optional[str] = None
    received_at: datetime
    created_at: datetime


class ReceiptWithItemsResponse(ReceiptResponse):
    """Receipt response with items"""

    items: List[ReceiptItemResponse]
