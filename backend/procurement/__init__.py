"""Procurement Service

Suppliers, purchase orders and goods receipts, with best-effort
integrations to the inventory, finance and audit services.
"""

__version__ = "0.1.0"
