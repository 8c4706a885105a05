"""Procurement domain errors.

Raised by the service layer and translated to HTTP responses by the
routers. Integration and audit failures never surface as exceptions.
"""


class ProcurementError(Exception):
    """Base class for procurement errors"""


class NotFoundError(ProcurementError):
    """An entity referenced by id does not exist"""

    entity = "Entity"

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} with ID {entity_id} not found")


class SupplierNotFound(NotFoundError):
    entity = "Supplier"


class PurchaseOrderNotFound(NotFoundError):
    entity = "Purchase order"


class ReceiptNotFound(NotFoundError):
    entity = "Receipt"


class ReferentialIntegrityError(ProcurementError):
    """A delete would break a reference held by another row"""


class InvalidStatusTransition(ProcurementError):
    """A purchase order status change outside the transition table"""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change purchase order status from {current} to {target}")
