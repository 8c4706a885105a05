"""Inventory integration: stock adjustments for received goods."""

import logging
from dataclasses import dataclass
from typing import Optional

from procurement.integrations.base import BestEffortClient, compact

logger = logging.getLogger(__name__)

ADJUST_ENDPOINT = "/v1/stock-levels/adjust"


@dataclass
class StockAdjustment:
    """Delta applied to one product's stock level in one warehouse"""

    warehouse_id: int
    external_product_id: int
    delta_on_hand: int
    delta_reserved: Optional[int] = None
    # Embeds the receipt id; the inventory service dedups on it
    reason: Optional[str] = None

    def to_payload(self) -> dict:
        return compact(
            {
                "warehouseId": self.warehouse_id,
                "externalProductId": self.external_product_id,
                "deltaOnHand": self.delta_on_hand,
                "deltaReserved": self.delta_reserved,
                "reason": self.reason,
            }
        )


class InventoryClient(BestEffortClient):
    """Best-effort client for the inventory service"""

    target = "inventory-backend"

    async def adjust_stock(self, adjustment: StockAdjustment) -> bool:
        """Apply a stock delta. Returns True when the service accepted it."""
        if not self.enabled:
            logger.warning("INVENTORY_API_KEY not configured: skipping stock adjustment")
            return False

        try:
            response = await self._post(
                ADJUST_ENDPOINT,
                adjustment.to_payload(),
                identifying={
                    "reason": adjustment.reason,
                    "warehouseId": adjustment.warehouse_id,
                    "externalProductId": adjustment.external_product_id,
                },
            )
        except Exception:
            logger.exception("Unexpected error adjusting stock in inventory")
            return False

        return response is not None
