"""Best-effort HTTP client shared by the inventory and finance integrations.

Each call is one POST with a per-attempt timeout and a bounded, fixed-delay
retry. When every attempt fails the client records one ``integration_failed``
audit entry and returns; it never raises to its caller. Deduplication of
retried calls is left to the receiving service, keyed on the stable
reference each payload carries.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from fastapi.encoders import jsonable_encoder

from procurement.integrations.audit import AuditEmitter, AuditLogEntry, SOURCE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Timeout and retry settings for one integration"""

    timeout: float = 3.0
    max_attempts: int = 2
    backoff: float = 0.25


def describe_response_error(response: httpx.Response) -> dict[str, Any]:
    """HTTP-level failure as stored in audit metadata"""
    try:
        body = response.json()
    except ValueError:
        body = response.text
    return {"status": response.status_code, "body": body}


def describe_transport_error(error: BaseException) -> dict[str, Any]:
    """Timeout / DNS / connection failure as stored in audit metadata"""
    if isinstance(error, asyncio.TimeoutError):
        return {"type": "TimeoutError", "message": "request timed out"}
    return {"type": type(error).__name__, "message": str(error)}


def compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional fields and make the payload JSON-safe"""
    return jsonable_encoder({k: v for k, v in payload.items() if v is not None})


class BestEffortClient:
    """Base for a single external service reached over HTTP."""

    target = "external-service"

    def __init__(
        self,
        http: Optional[httpx.AsyncClient],
        audit: AuditEmitter,
        policy: RetryPolicy = RetryPolicy(),
    ):
        # http is None when the service API key is not configured
        self._http = http
        self._audit = audit
        self._policy = policy

    @property
    def enabled(self) -> bool:
        return self._http is not None

    async def _post(
        self,
        endpoint: str,
        payload: dict[str, Any],
        identifying: dict[str, Any],
    ) -> Optional[httpx.Response]:
        """POST with retry. Returns the successful response or None."""
        last_error: Optional[dict[str, Any]] = None

        for attempt in range(1, self._policy.max_attempts + 1):
            try:
                response = await asyncio.wait_for(
                    self._http.post(endpoint, json=payload),
                    timeout=self._policy.timeout,
                )
                if response.is_success:
                    return response

                last_error = describe_response_error(response)
                logger.warning(
                    f"{self.target} {endpoint} attempt {attempt} failed: "
                    f"HTTP {response.status_code}"
                )
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                last_error = describe_transport_error(e)
                logger.warning(
                    f"{self.target} {endpoint} attempt {attempt} failed: {e!r}"
                )

            if attempt < self._policy.max_attempts:
                await asyncio.sleep(self._policy.backoff)

        await self._report_failure(endpoint, identifying, last_error)
        return None

    async def _report_failure(
        self,
        endpoint: str,
        identifying: dict[str, Any],
        error: Optional[dict[str, Any]],
    ) -> None:
        logger.error(
            f"{self.target} {endpoint} gave up after "
            f"{self._policy.max_attempts} attempts: {error}"
        )
        await self._audit.emit(
            AuditLogEntry(
                action="integration_failed",
                entity_type="integrations",
                entity_id=None,
                after={
                    "source": SOURCE,
                    "target": self.target,
                    "endpoint": endpoint,
                    "method": "POST",
                    **identifying,
                },
                metadata={"error": error},
            )
        )
