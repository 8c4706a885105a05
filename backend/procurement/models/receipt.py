"""Receipt Models

Append-only record of a physical receiving event. Receipts are never
updated or deleted once written.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from procurement.database import Base


class Receipt(Base):
    """Goods receipt header"""

    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    supplier_id = Column(
        Integer,
        ForeignKey("suppliers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    purchase_order_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    warehouse_id = Column(Integer, nullable=False)
    reference = Column(Text)
    received_at = Column(DateTime, server_default=func.now(), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Relationships
    items = relationship(
        "ReceiptItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReceiptItem.id",
    )


class ReceiptItem(Base):
    """Received quantity of one external product"""

    __tablename__ = "receipt_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    receipt_id = Column(
        Integer,
        ForeignKey("receipts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_product_id = Column(Integer, nullable=False)
    sku_snapshot = Column(String(100))
    name_snapshot = Column(String(255))
    quantity_received = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Relationships
    receipt = relationship("Receipt", back_populates="items")
