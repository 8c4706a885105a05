"""Supplier API Endpoints

CRUD operations for suppliers.
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from procurement.api.deps import get_supplier_service
from procurement.exceptions import SupplierNotFound, ReferentialIntegrityError
from procurement.services import SupplierService
from procurement.schemas.supplier import (
    SupplierCreate,
    SupplierUpdate,
    SupplierResponse,
)

router = APIRouter(prefix="/v1/suppliers", tags=["suppliers"])


@router.get("", response_model=List[SupplierResponse])
async def list_suppliers(service: SupplierService = Depends(get_supplier_service)):
    """List all suppliers"""
    suppliers = await service.list_all()
    return [SupplierResponse.model_validate(s) for s in suppliers]


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: int,
    service: SupplierService = Depends(get_supplier_service),
):
    """Get supplier by ID"""
    try:
        supplier = await service.get(supplier_id)
    except SupplierNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return SupplierResponse.model_validate(supplier)


@router.post("", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    supplier_data: SupplierCreate,
    service: SupplierService = Depends(get_supplier_service),
):
    """Create a new supplier"""
    supplier = await service.create(supplier_data)
    return SupplierResponse.model_validate(supplier)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    service: SupplierService = Depends(get_supplier_service),
):
    """Update a supplier"""
    try:
        supplier = await service.update(supplier_id, supplier_data)
    except SupplierNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return SupplierResponse.model_validate(supplier)


@router.delete("/{supplier_id}", status_code=204)
async def delete_supplier(
    supplier_id: int,
    service: SupplierService = Depends(get_supplier_service),
):
    """Delete a supplier that nothing references"""
    try:
        await service.delete(supplier_id)
    except SupplierNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialIntegrityError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return None
