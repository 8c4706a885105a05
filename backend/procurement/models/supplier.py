"""Supplier Model

Represents a vendor that purchase orders and receipts are raised against.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from procurement.database import Base


class Supplier(Base):
    """Supplier entity.

    Purchase orders and receipts reference suppliers with ON DELETE RESTRICT,
    so no relationship cascade is declared on this side.
    """

    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )
