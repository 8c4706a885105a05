"""Purchase order operations.

Items are written once at creation together with their line totals and the
order total; there is no item update path.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from procurement.config import settings
from procurement.exceptions import (
    InvalidStatusTransition,
    PurchaseOrderNotFound,
    SupplierNotFound,
)
from procurement.integrations.audit import AuditEmitter, AuditLogEntry, SOURCE
from procurement.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from procurement.models.supplier import Supplier
from procurement.schemas.purchase_order import (
    PurchaseOrderCreate,
    PurchaseOrderItemCreate,
    PurchaseOrderUpdate,
    PurchaseOrderWithItemsResponse,
)

logger = logging.getLogger(__name__)

ENTITY_TYPE = "purchase_orders"

S = PurchaseOrderStatus
ALLOWED_TRANSITIONS: dict[PurchaseOrderStatus, frozenset[PurchaseOrderStatus]] = {
    S.DRAFT: frozenset({S.APPROVED, S.CANCELLED}),
    S.APPROVED: frozenset({S.SENT, S.CANCELLED}),
    S.SENT: frozenset({S.RECEIVED, S.CANCELLED}),
    S.RECEIVED: frozenset({S.CLOSED, S.CANCELLED}),
    S.CLOSED: frozenset(),
    S.CANCELLED: frozenset(),
}


def check_transition(current: PurchaseOrderStatus, target: PurchaseOrderStatus) -> None:
    """Raise InvalidStatusTransition unless current -> target is allowed.

    Re-applying the current status is accepted.
    """
    if current == target:
        return
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)


def compute_totals(
    items: Iterable[PurchaseOrderItemCreate],
) -> tuple[list[PurchaseOrderItem], Decimal]:
    """Build order lines with ``line_total = quantity * unit_cost`` and their sum"""
    lines = []
    total = Decimal("0")
    for item in items:
        line_total = item.quantity * item.unit_cost
        total += line_total
        lines.append(
            PurchaseOrderItem(
                external_product_id=item.external_product_id,
                sku_snapshot=item.sku_snapshot,
                name_snapshot=item.name_snapshot,
                quantity=item.quantity,
                unit_cost=item.unit_cost,
                line_total=line_total,
            )
        )
    return lines, total


def snapshot(order: PurchaseOrder) -> dict:
    return PurchaseOrderWithItemsResponse.model_validate(order).model_dump(
        mode="json", by_alias=True
    )


class PurchaseOrderService:
    """Purchase order operations"""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditEmitter,
        enforce_transitions: Optional[bool] = None,
    ):
        self.db = db
        self.audit = audit
        if enforce_transitions is None:
            enforce_transitions = settings.ENFORCE_PO_TRANSITIONS
        self.enforce_transitions = enforce_transitions

    async def list_all(
        self,
        supplier_id: Optional[int] = None,
        status: Optional[PurchaseOrderStatus] = None,
    ) -> list[tuple[PurchaseOrder, Optional[str]]]:
        """Orders with their supplier name"""
        query = select(PurchaseOrder, Supplier.name).outerjoin(
            Supplier, PurchaseOrder.supplier_id == Supplier.id
        )
        if supplier_id:
            query = query.where(PurchaseOrder.supplier_id == supplier_id)
        if status:
            query = query.where(PurchaseOrder.status == status)

        result = await self.db.execute(query.order_by(PurchaseOrder.id))
        return [(order, name) for order, name in result.all()]

    async def get(self, order_id: int) -> PurchaseOrder:
        result = await self.db.execute(
            select(PurchaseOrder)
            .options(selectinload(PurchaseOrder.items))
            .where(PurchaseOrder.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise PurchaseOrderNotFound(order_id)
        return order

    async def _require_supplier(self, supplier_id: int) -> None:
        if await self.db.get(Supplier, supplier_id) is None:
            raise SupplierNotFound(supplier_id)

    async def create(self, data: PurchaseOrderCreate) -> PurchaseOrder:
        await self._require_supplier(data.supplier_id)

        lines, total = compute_totals(data.items)
        order = PurchaseOrder(
            supplier_id=data.supplier_id,
            status=PurchaseOrderStatus.DRAFT,
            warehouse_id=data.warehouse_id,
            currency=data.currency or settings.DEFAULT_CURRENCY,
            total=total,
            notes=data.notes,
            items=lines,
        )
        self.db.add(order)
        await self.db.commit()

        order = await self.get(order.id)
        await self.audit.emit(
            AuditLogEntry(
                action="create",
                entity_type=ENTITY_TYPE,
                entity_id=order.id,
                after=snapshot(order),
            )
        )
        return order

    async def update(self, order_id: int, data: PurchaseOrderUpdate) -> PurchaseOrder:
        order = await self.get(order_id)
        before = snapshot(order)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("supplier_id") is not None:
            await self._require_supplier(update_data["supplier_id"])
        if update_data.get("status") is not None and self.enforce_transitions:
            check_transition(order.status, update_data["status"])

        for field, value in update_data.items():
            setattr(order, field, value)
        await self.db.commit()

        order = await self.get(order_id)
        await self.audit.emit(
            AuditLogEntry(
                action="update",
                entity_type=ENTITY_TYPE,
                entity_id=order_id,
                before=before,
                after=snapshot(order),
            )
        )
        return order

    async def delete(self, order_id: int) -> dict:
        """Delete an order; its items go with it and receipts keep a null reference"""
        order = await self.get(order_id)
        before = snapshot(order)

        await self.db.delete(order)
        await self.db.commit()

        await self.audit.emit(
            AuditLogEntry(
                action="delete",
                entity_type=ENTITY_TYPE,
                entity_id=order_id,
                before=before,
            )
        )
        return before

    async def set_status(
        self,
        order_id: int,
        to_status: PurchaseOrderStatus,
        reason: Optional[str] = None,
    ) -> PurchaseOrder:
        order = await self.get(order_id)
        from_status = order.status
        if self.enforce_transitions:
            check_transition(from_status, to_status)

        order.status = to_status
        await self.db.commit()
        logger.info(f"Purchase order {order_id}: {from_status.value} -> {to_status.value}")

        await self.audit.emit(
            AuditLogEntry(
                action="status_change",
                entity_type=ENTITY_TYPE,
                entity_id=order_id,
                before={"status": from_status.value},
                after={"status": to_status.value},
                metadata={"source": SOURCE, "reason": reason},
            )
        )
        return await self.get(order_id)
