"""FastAPI dependencies wiring sessions and integration clients into services."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from procurement.database import get_db
from procurement.integrations import Integrations
from procurement.services import PurchaseOrderService, ReceiptService, SupplierService


def get_integrations(request: Request) -> Integrations:
    return request.app.state.integrations


def get_supplier_service(
    db: AsyncSession = Depends(get_db),
    integrations: Integrations = Depends(get_integrations),
) -> SupplierService:
    return SupplierService(db, integrations.audit)


def get_purchase_order_service(
    db: AsyncSession = Depends(get_db),
    integrations: Integrations = Depends(get_integrations),
) -> PurchaseOrderService:
    return PurchaseOrderService(db, integrations.audit)


def get_receipt_service(
    db: AsyncSession = Depends(get_db),
    integrations: Integrations = Depends(get_integrations),
) -> ReceiptService:
    return ReceiptService(
        db, integrations.audit, integrations.inventory, integrations.finance
    )
