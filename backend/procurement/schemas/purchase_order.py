"""Purchase Order Schemas

Request/response schemas for purchase order operations.
"""

from pydantic import Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from procurement.models.purchase_order import PurchaseOrderStatus
from procurement.schemas.common import CamelModel, ORMModel


class PurchaseOrderItemCreate(CamelModel):
    """Schema for creating an order line"""

    external_product_id: int = Field(..., gt=0)
    sku_snapshot: Optional[str] = Field(None, max_length=100)
    name_snapshot: Optional[str] = Field(None, max_length=255)
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class PurchaseOrderItemResponse(ORMModel):
    """Order line response"""

    id: int
    purchase_order_id: int
    external_product_id: int
    sku_snapshot: Optional[str] = None
    name_snapshot: Optional[str] = None
    quantity: int
    unit_cost: Decimal
    line_total: Decimal
    created_at: datetime


class PurchaseOrderCreate(CamelModel):
    """Schema for creating a purchase order; status always starts as draft"""

    supplier_id: int = Field(..., gt=0)
    warehouse_id: int = Field(..., gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate] = Field(..., min_length=1)


class PurchaseOrderUpdate(CamelModel):
    """Schema for updating a purchase order header"""

    supplier_id: Optional[int] = Field(None, gt=0)
    status: Optional[PurchaseOrderStatus] = None
    warehouse_id: Optional[int] = Field(None, gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    notes: Optional[str] = None


class PurchaseOrderStatusChange(CamelModel):
    """Body of PUT /v1/purchase-orders/{id}/status"""

    to_status: PurchaseOrderStatus
    reason: Optional[str] = None


class PurchaseOrderResponse(ORMModel):
    """Purchase order response without items"""

    id: int
    supplier_id: int
    status: PurchaseOrderStatus
    warehouse_id: int
    currency: str
    total: Decimal
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PurchaseOrderListItem(PurchaseOrderResponse):
    """Purchase order row in list views"""

    supplier_name: Optional[str] = None


class PurchaseOrderWithItemsResponse(PurchaseOrderResponse):
    """Purchase order response with items"""

    items: List[PurchaseOrderItemResponse]
