"""Audit log emitter.

Posts change records to the central audit service. Emission is
fire-and-forget: a failure is logged and dropped, never raised, so this is
the terminal sink for every best-effort failure report in the service.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

AUDIT_ENDPOINT = "/v1/audit-logs"
SOURCE = "procurement-backend"


@dataclass
class AuditLogEntry:
    """One audit record as accepted by the audit service"""

    action: str
    entity_type: str
    entity_id: Optional[int] = None
    before: Any = None
    after: Any = None
    metadata: dict[str, Any] = field(default_factory=lambda: {"source": SOURCE})
    user_id: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if self.before is not None:
            changes["before"] = self.before
        if self.after is not None:
            changes["after"] = self.after
        return jsonable_encoder(
            {
                "userId": self.user_id,
                "action": self.action,
                "entityType": self.entity_type,
                "entityId": self.entity_id,
                "changes": changes,
                "metadata": self.metadata,
            }
        )


class AuditEmitter:
    """Single-attempt, never-raising client for the audit service"""

    def __init__(self, http: Optional[httpx.AsyncClient], timeout: float = 3.0):
        self._http = http
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._http is not None

    async def emit(self, entry: AuditLogEntry) -> None:
        if self._http is None:
            logger.debug(f"Audit disabled, dropping {entry.action} {entry.entity_type}")
            return

        try:
            response = await asyncio.wait_for(
                self._http.post(AUDIT_ENDPOINT, json=entry.to_payload()),
                timeout=self._timeout,
            )
            if not response.is_success:
                logger.warning(
                    f"Audit service rejected {entry.action} {entry.entity_type}"
                    f"#{entry.entity_id}: HTTP {response.status_code}"
                )
        except Exception as e:
            logger.warning(
                f"Failed to emit audit log {entry.action} {entry.entity_type}"
                f"#{entry.entity_id}: {e!r}"
            )
