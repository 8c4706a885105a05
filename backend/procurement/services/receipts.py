"""Receipt creation workflow.

Creating a receipt is one local transaction (header plus items) followed by
best-effort side effects in other services:

1. validate the supplier and optional purchase order exist;
2. insert the receipt and its items atomically;
3. add each received quantity to stock in the inventory service;
4. raise at most one AP invoice in finance, plus a payment schedule when
   an explicit invoice carries a due date;
5. record a ``create`` audit entry.

Only steps 1 and 2 can fail the call. The integration clients and the audit
emitter never raise; their failures end up as ``integration_failed`` audit
entries and process logs. Effects are at-least-once; the stable
``reason`` / ``externalRef`` values let the other services deduplicate.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from procurement.config import settings
from procurement.exceptions import (
    PurchaseOrderNotFound,
    ReceiptNotFound,
    SupplierNotFound,
)
from procurement.integrations.audit import AuditEmitter, AuditLogEntry
from procurement.integrations.finance import ApInvoice, FinanceClient, PaymentSchedule
from procurement.integrations.inventory import InventoryClient, StockAdjustment
from procurement.models.purchase_order import PurchaseOrder
from procurement.models.receipt import Receipt, ReceiptItem
from procurement.models.supplier import Supplier
from procurement.schemas.receipt import ReceiptCreate, ReceiptWithItemsResponse

logger = logging.getLogger(__name__)

ENTITY_TYPE = "receipts"


def external_ref(receipt_id: int) -> str:
    """Idempotency key for the AP invoice raised from a receipt"""
    return f"procurement:receipts:{receipt_id}"


def stock_reason(receipt_id: int) -> str:
    return f"receipt:{receipt_id}"


class ReceiptService:
    """Goods receipt operations"""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditEmitter,
        inventory: InventoryClient,
        finance: FinanceClient,
    ):
        self.db = db
        self.audit = audit
        self.inventory = inventory
        self.finance = finance

    async def list_all(
        self,
        supplier_id: Optional[int] = None,
        purchase_order_id: Optional[int] = None,
    ) -> list[Receipt]:
        query = select(Receipt)
        if supplier_id:
            query = query.where(Receipt.supplier_id == supplier_id)
        if purchase_order_id:
            query = query.where(Receipt.purchase_order_id == purchase_order_id)

        result = await self.db.execute(query.order_by(Receipt.id))
        return list(result.scalars().all())

    async def get(self, receipt_id: int) -> Receipt:
        result = await self.db.execute(
            select(Receipt)
            .options(selectinload(Receipt.items))
            .where(Receipt.id == receipt_id)
            .execution_options(populate_existing=True)
        )
        receipt = result.scalar_one_or_none()
        if not receipt:
            raise ReceiptNotFound(receipt_id)
        return receipt

    async def create(self, data: ReceiptCreate) -> Receipt:
        # 1. references, before any write
        if await self.db.get(Supplier, data.supplier_id) is None:
            raise SupplierNotFound(data.supplier_id)
        order = None
        if data.purchase_order_id is not None:
            order = await self.db.get(PurchaseOrder, data.purchase_order_id)
            if order is None:
                raise PurchaseOrderNotFound(data.purchase_order_id)

        # 2. header and items in a single commit
        receipt = Receipt(
            supplier_id=data.supplier_id,
            purchase_order_id=data.purchase_order_id,
            warehouse_id=data.warehouse_id,
            reference=data.reference,
            items=[
                ReceiptItem(
                    external_product_id=item.external_product_id,
                    sku_snapshot=item.sku_snapshot,
                    name_snapshot=item.name_snapshot,
                    quantity_received=item.quantity_received,
                )
                for item in data.items
            ],
        )
        self.db.add(receipt)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        receipt_id = receipt.id
        logger.info(f"Receipt {receipt_id} created with {len(data.items)} items")

        # 3-4. best-effort side effects outside the transaction
        try:
            await self._adjust_stock(receipt_id, data)
            if data.ap_invoice is not None:
                await self._raise_explicit_invoice(receipt_id, data)
            elif order is not None:
                await self._raise_order_invoice(
                    receipt_id, data, order.currency, order.total
                )
        except Exception:
            logger.exception(f"Side effects for receipt {receipt_id} failed")

        # 5-6. audit and hydrated response; reflects only the local write
        receipt = await self.get(receipt_id)
        await self.audit.emit(
            AuditLogEntry(
                action="create",
                entity_type=ENTITY_TYPE,
                entity_id=receipt_id,
                after=ReceiptWithItemsResponse.model_validate(receipt).model_dump(
                    mode="json", by_alias=True
                ),
            )
        )
        return receipt

    async def _adjust_stock(self, receipt_id: int, data: ReceiptCreate) -> None:
        """One independent stock adjustment per received item"""
        await asyncio.gather(
            *(
                self.inventory.adjust_stock(
                    StockAdjustment(
                        warehouse_id=data.warehouse_id,
                        external_product_id=item.external_product_id,
                        delta_on_hand=item.quantity_received,
                        reason=stock_reason(receipt_id),
                    )
                )
                for item in data.items
            )
        )

    async def _raise_order_invoice(
        self,
        receipt_id: int,
        data: ReceiptCreate,
        currency: str,
        total: Decimal,
    ) -> None:
        """Invoice the linked purchase order for its full total.

        Only used when no explicit ``ap_invoice`` was given, so a receipt
        requests at most one AP invoice.
        """
        await self.finance.create_ap_invoice(
            ApInvoice(
                external_ref=external_ref(receipt_id),
                supplier_id=data.supplier_id,
                procurement_receipt_id=receipt_id,
                currency=currency,
                amount=total,
                notes=f"Auto from receipt {receipt_id} (PO {data.purchase_order_id})",
            )
        )

    async def _raise_explicit_invoice(self, receipt_id: int, data: ReceiptCreate) -> None:
        requested = data.ap_invoice
        invoice = await self.finance.create_ap_invoice(
            ApInvoice(
                external_ref=external_ref(receipt_id),
                supplier_id=data.supplier_id,
                procurement_receipt_id=receipt_id,
                invoice_number=requested.invoice_number,
                currency=requested.currency or settings.DEFAULT_CURRENCY,
                amount=requested.amount,
                due_date=requested.due_date,
                notes=requested.notes,
            )
        )
        if invoice is None or requested.due_date is None:
            return

        invoice_id = invoice.get("id")
        if invoice_id is None:
            logger.warning(
                f"Finance returned no invoice id for receipt {receipt_id}; "
                f"skipping payment schedule"
            )
            return

        await self.finance.create_payment_schedule(
            PaymentSchedule(
                invoice_id=invoice_id,
                due_date=requested.due_date,
                amount=requested.amount,
            )
        )
