"""Finance integration: accounts-payable invoices and payment schedules."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from procurement.integrations.base import BestEffortClient, compact

logger = logging.getLogger(__name__)

INVOICES_ENDPOINT = "/v1/ap/invoices"
PAYMENT_SCHEDULES_ENDPOINT = "/v1/ap/payment-schedules"


@dataclass
class ApInvoice:
    """Accounts-payable invoice request.

    ``external_ref`` is stable per receipt so the finance service can
    deduplicate retries and repeated submissions.
    """

    external_ref: str
    supplier_id: int
    amount: Decimal
    currency: str
    procurement_receipt_id: Optional[int] = None
    invoice_number: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None

    def to_payload(self) -> dict:
        return compact(
            {
                "externalRef": self.external_ref,
                "supplierId": self.supplier_id,
                "procurementReceiptId": self.procurement_receipt_id,
                "invoiceNumber": self.invoice_number,
                "currency": self.currency,
                "amount": float(self.amount),
                "dueDate": self.due_date,
                "notes": self.notes,
            }
        )


@dataclass
class PaymentSchedule:
    """Scheduled payment for an existing AP invoice"""

    invoice_id: Any
    due_date: date
    amount: Decimal

    def to_payload(self) -> dict:
        return compact(
            {
                "invoiceId": self.invoice_id,
                "dueDate": self.due_date,
                "amount": float(self.amount),
            }
        )


class FinanceClient(BestEffortClient):
    """Best-effort client for the finance service"""

    target = "finance-backend"

    async def create_ap_invoice(self, invoice: ApInvoice) -> Optional[dict]:
        """Create an AP invoice.

        Returns the created invoice as reported by finance, or None when the
        integration is disabled or every attempt failed.
        """
        if not self.enabled:
            logger.warning("FINANCE_API_KEY not configured: skipping AP invoice")
            return None

        try:
            response = await self._post(
                INVOICES_ENDPOINT,
                invoice.to_payload(),
                identifying={
                    "externalRef": invoice.external_ref,
                    "procurementReceiptId": invoice.procurement_receipt_id,
                    "supplierId": invoice.supplier_id,
                },
            )
            if response is None:
                return None
            return self._unwrap(response)
        except Exception:
            logger.exception("Unexpected error creating AP invoice in finance")
            return None

    async def create_payment_schedule(self, schedule: PaymentSchedule) -> bool:
        """Schedule a payment for an invoice. Returns True on success."""
        if not self.enabled:
            logger.warning("FINANCE_API_KEY not configured: skipping payment schedule")
            return False

        try:
            response = await self._post(
                PAYMENT_SCHEDULES_ENDPOINT,
                schedule.to_payload(),
                identifying={
                    "invoiceId": schedule.invoice_id,
                    "dueDate": schedule.due_date.isoformat(),
                },
            )
        except Exception:
            logger.exception("Unexpected error creating payment schedule in finance")
            return False

        return response is not None

    @staticmethod
    def _unwrap(response) -> dict:
        """Invoice body, with or without a ``{"data": ...}`` envelope"""
        try:
            body = response.json()
        except ValueError:
            return {}
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            return body["data"]
        return body if isinstance(body, dict) else {}
