"""Outbound integrations.

``Integrations`` owns one HTTP client per external service. It is built
once at startup, kept on ``app.state`` and closed at shutdown.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from procurement.config import Settings
from procurement.integrations.audit import AuditEmitter, AuditLogEntry
from procurement.integrations.base import BestEffortClient, RetryPolicy
from procurement.integrations.finance import ApInvoice, FinanceClient, PaymentSchedule
from procurement.integrations.inventory import InventoryClient, StockAdjustment

logger = logging.getLogger(__name__)

__all__ = [
    "Integrations",
    "AuditEmitter",
    "AuditLogEntry",
    "BestEffortClient",
    "RetryPolicy",
    "InventoryClient",
    "StockAdjustment",
    "FinanceClient",
    "ApInvoice",
    "PaymentSchedule",
]


def _http_client(
    base_url: str,
    api_key: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport],
) -> httpx.AsyncClient:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["X-API-Key"] = api_key
    return httpx.AsyncClient(
        base_url=base_url, headers=headers, timeout=timeout, transport=transport
    )


@dataclass
class Integrations:
    """Process-scoped container for the audit, inventory and finance clients"""

    audit: AuditEmitter
    inventory: InventoryClient
    finance: FinanceClient
    _clients: list[httpx.AsyncClient] = field(default_factory=list)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "Integrations":
        timeout = settings.INTEGRATION_TIMEOUT_SECONDS
        policy = RetryPolicy(
            timeout=timeout,
            max_attempts=settings.INTEGRATION_MAX_ATTEMPTS,
            backoff=settings.INTEGRATION_RETRY_BACKOFF_SECONDS,
        )
        clients: list[httpx.AsyncClient] = []

        audit_http = None
        if settings.AUDIT_API_URL:
            audit_http = _http_client(
                settings.AUDIT_API_URL, settings.AUDIT_API_KEY, timeout, transport
            )
            clients.append(audit_http)
        else:
            logger.warning("AUDIT_API_URL not configured: audit logs will be dropped")
        audit = AuditEmitter(audit_http, timeout=timeout)

        inventory_http = None
        if settings.INVENTORY_API_KEY:
            inventory_http = _http_client(
                settings.INVENTORY_API_URL, settings.INVENTORY_API_KEY, timeout, transport
            )
            clients.append(inventory_http)

        finance_http = None
        if settings.FINANCE_API_KEY:
            finance_http = _http_client(
                settings.FINANCE_API_URL, settings.FINANCE_API_KEY, timeout, transport
            )
            clients.append(finance_http)

        return cls(
            audit=audit,
            inventory=InventoryClient(inventory_http, audit, policy),
            finance=FinanceClient(finance_http, audit, policy),
            _clients=clients,
        )

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()
        self._clients.clear()
