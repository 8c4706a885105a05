"""Receipt API Endpoints

Receipts are append-only: list, read and create.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from procurement.api.deps import get_receipt_service
from procurement.exceptions import (
    PurchaseOrderNotFound,
    ReceiptNotFound,
    SupplierNotFound,
)
from procurement.services import ReceiptService
from procurement.schemas.receipt import (
    ReceiptCreate,
    ReceiptResponse,
    ReceiptWithItemsResponse,
)

router = APIRouter(prefix="/v1/receipts", tags=["receipts"])


@router.get("", response_model=List[ReceiptResponse])
async def list_receipts(
    supplier_id: Optional[int] = Query(None, alias="supplierId"),
    purchase_order_id: Optional[int] = Query(None, alias="purchaseOrderId"),
    service: ReceiptService = Depends(get_receipt_service),
):
    """List receipts, optionally by supplier or purchase order"""
    receipts = await service.list_all(
        supplier_id=supplier_id, purchase_order_id=purchase_order_id
    )
    return [ReceiptResponse.model_validate(r) for r in receipts]


@router.get("/{receipt_id}", response_model=ReceiptWithItemsResponse)
async def get_receipt(
    receipt_id: int,
    service: ReceiptService = Depends(get_receipt_service),
):
    """Get receipt by ID with items"""
    try:
        receipt = await service.get(receipt_id)
    except ReceiptNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return ReceiptWithItemsResponse.model_validate(receipt)


@router.post("", response_model=ReceiptWithItemsResponse, status_code=201)
async def create_receipt(
    receipt_data: ReceiptCreate,
    service: ReceiptService = Depends(get_receipt_service),
):
    """Record received goods; stock and AP invoice updates are best-effort"""
    try:
        receipt = await service.create(receipt_data)
    except (SupplierNotFound, PurchaseOrderNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))

    return ReceiptWithItemsResponse.model_validate(receipt)
