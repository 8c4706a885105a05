"""Procurement API Routes

All API router modules.
"""

from procurement.api import suppliers, purchase_orders, receipts

__all__ = ["suppliers", "purchase_orders", "receipts"]
