"""Purchase Order Models

Purchase order header and its immutable line items. ``warehouse_id`` and
``external_product_id`` are identifiers owned by the inventory service and
carry no local foreign key.
"""

import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Numeric,
    DateTime,
    ForeignKey,
    Enum as SQLEnum,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from procurement.database import Base


class PurchaseOrderStatus(str, enum.Enum):
    """Purchase order lifecycle states, in lifecycle order"""

    DRAFT = "draft"
    APPROVED = "approved"
    SENT = "sent"
    RECEIVED = "received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class PurchaseOrder(Base):
    """Purchase order header"""

    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    supplier_id = Column(
        Integer,
        ForeignKey("suppliers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status = Column(
        SQLEnum(
            PurchaseOrderStatus,
            name="purchase_order_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=PurchaseOrderStatus.DRAFT,
    )
    warehouse_id = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, default="MXN")
    # Denormalized sum of line totals, computed once at creation
    total = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PurchaseOrderItem.id",
    )

    __table_args__ = (Index("idx_purchase_orders_status", "status"),)


class PurchaseOrderItem(Base):
    """Purchase order line"""

    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    purchase_order_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_product_id = Column(Integer, nullable=False)
    sku_snapshot = Column(String(100))
    name_snapshot = Column(String(255))
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
