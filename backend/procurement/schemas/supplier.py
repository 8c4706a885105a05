"""Supplier Schemas

Request/response schemas for supplier operations.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from procurement.schemas.common import CamelModel, ORMModel


class SupplierBase(CamelModel):
    """Base supplier fields"""

    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class SupplierCreate(SupplierBase):
    """Schema for creating a supplier"""

    pass


class SupplierUpdate(CamelModel):
    """Schema for updating a supplier"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class SupplierResponse(ORMModel):
    """Supplier response with ID and timestamps"""

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
