"""Supplier CRUD with audit trail."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from procurement.exceptions import SupplierNotFound, ReferentialIntegrityError
from procurement.integrations.audit import AuditEmitter, AuditLogEntry
from procurement.models.supplier import Supplier
from procurement.schemas.supplier import SupplierCreate, SupplierUpdate, SupplierResponse

logger = logging.getLogger(__name__)

ENTITY_TYPE = "suppliers"


def snapshot(supplier: Supplier) -> dict:
    return SupplierResponse.model_validate(supplier).model_dump(mode="json", by_alias=True)


class SupplierService:
    """Supplier operations"""

    def __init__(self, db: AsyncSession, audit: AuditEmitter):
        self.db = db
        self.audit = audit

    async def list_all(self) -> list[Supplier]:
        result = await self.db.execute(select(Supplier).order_by(Supplier.id))
        return list(result.scalars().all())

    async def get(self, supplier_id: int) -> Supplier:
        result = await self.db.execute(
            select(Supplier)
            .where(Supplier.id == supplier_id)
            .execution_options(populate_existing=True)
        )
        supplier = result.scalar_one_or_none()
        if not supplier:
            raise SupplierNotFound(supplier_id)
        return supplier

    async def create(self, data: SupplierCreate) -> Supplier:
        supplier = Supplier(**data.model_dump())
        self.db.add(supplier)
        await self.db.commit()

        supplier = await self.get(supplier.id)
        await self.audit.emit(
            AuditLogEntry(
                action="create",
                entity_type=ENTITY_TYPE,
                entity_id=supplier.id,
                after=snapshot(supplier),
            )
        )
        return supplier

    async def update(self, supplier_id: int, data: SupplierUpdate) -> Supplier:
        supplier = await self.get(supplier_id)
        before = snapshot(supplier)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(supplier, field, value)
        await self.db.commit()

        supplier = await self.get(supplier_id)
        await self.audit.emit(
            AuditLogEntry(
                action="update",
                entity_type=ENTITY_TYPE,
                entity_id=supplier_id,
                before=before,
                after=snapshot(supplier),
            )
        )
        return supplier

    async def delete(self, supplier_id: int) -> dict:
        """Delete a supplier that no order or receipt references.

        Returns the snapshot of the deleted row.
        """
        supplier = await self.get(supplier_id)
        before = snapshot(supplier)

        await self.db.delete(supplier)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Refusing to delete supplier {supplier_id}: still referenced")
            raise ReferentialIntegrityError(
                f"Supplier with ID {supplier_id} is referenced by purchase orders or receipts"
            ) from e

        await self.audit.emit(
            AuditLogEntry(
                action="delete",
                entity_type=ENTITY_TYPE,
                entity_id=supplier_id,
                before=before,
            )
        )
        return before
