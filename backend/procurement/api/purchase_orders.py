"""Purchase Order API Endpoints

CRUD operations for purchase orders plus the status setter.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from procurement.api.deps import get_purchase_order_service
from procurement.exceptions import (
    InvalidStatusTransition,
    PurchaseOrderNotFound,
    SupplierNotFound,
)
from procurement.models.purchase_order import PurchaseOrderStatus
from procurement.services import PurchaseOrderService
from procurement.schemas.purchase_order import (
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    PurchaseOrderStatusChange,
    PurchaseOrderResponse,
    PurchaseOrderListItem,
    PurchaseOrderWithItemsResponse,
)

router = APIRouter(prefix="/v1/purchase-orders", tags=["purchase-orders"])


@router.get("", response_model=List[PurchaseOrderListItem])
async def list_orders(
    supplier_id: Optional[int] = Query(None, alias="supplierId"),
    status: Optional[PurchaseOrderStatus] = None,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """List purchase orders with their supplier name"""
    rows = await service.list_all(supplier_id=supplier_id, status=status)
    return [
        PurchaseOrderListItem(
            **PurchaseOrderResponse.model_validate(order).model_dump(),
            supplier_name=supplier_name,
        )
        for order, supplier_name in rows
    ]


@router.get("/{order_id}", response_model=PurchaseOrderWithItemsResponse)
async def get_order(
    order_id: int,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """Get order by ID with items"""
    try:
        order = await service.get(order_id)
    except PurchaseOrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PurchaseOrderWithItemsResponse.model_validate(order)


@router.post("", response_model=PurchaseOrderWithItemsResponse, status_code=201)
async def create_order(
    order_data: PurchaseOrderCreate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """Create a draft purchase order with items"""
    try:
        order = await service.create(order_data)
    except SupplierNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PurchaseOrderWithItemsResponse.model_validate(order)


@router.put("/{order_id}", response_model=PurchaseOrderWithItemsResponse)
async def update_order(
    order_id: int,
    order_data: PurchaseOrderUpdate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """Update a purchase order header"""
    try:
        order = await service.update(order_id, order_data)
    except (PurchaseOrderNotFound, SupplierNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    return PurchaseOrderWithItemsResponse.model_validate(order)


@router.put("/{order_id}/status", response_model=PurchaseOrderWithItemsResponse)
async def change_order_status(
    order_id: int,
    change: PurchaseOrderStatusChange,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """Move a purchase order to another status"""
    try:
        order = await service.set_status(order_id, change.to_status, change.reason)
    except PurchaseOrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    return PurchaseOrderWithItemsResponse.model_validate(order)


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: int,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """Delete a purchase order and its items"""
    try:
        await service.delete(order_id)
    except PurchaseOrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return None
