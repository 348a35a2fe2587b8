from __future__ import annotations

from enum import Enum


class OperationType(str, Enum):
    STORE = "STORE"
    CONSTRUCTION = "CONSTRUCTION"
    FACTORY = "FACTORY"


class TransferStatus(str, Enum):
    CREATED = "CREATED"
    SEPARATED = "SEPARATED"
    IN_TRANSIT = "IN_TRANSIT"
    RECEIVED = "RECEIVED"
    DIVERGENCE = "DIVERGENCE"
    DONE = "DONE"
    CANCELED = "CANCELED"


class RequisitionStatus(str, Enum):
    DRAFT = "DRAFT"
    WAITING_L1 = "WAITING_L1"
    WAITING_L2 = "WAITING_L2"
    APPROVED = "APPROVED"
    IN_FULFILLMENT = "IN_FULFILLMENT"
    IN_TRANSIT = "IN_TRANSIT"
    PARTIAL_RECEIVED = "PARTIAL_RECEIVED"
    DONE = "DONE"
    CANCELED = "CANCELED"


class RequisitionPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class PurchaseOrderStatus(str, Enum):
    OPEN = "OPEN"
    PARTIAL = "PARTIAL"
    CLOSED = "CLOSED"
    CANCELED = "CANCELED"


class MovementType(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"
    ADJUST = "ADJUST"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    SALE = "SALE"

    @property
    def is_inbound(self) -> bool:
        return self in (MovementType.ENTRY, MovementType.TRANSFER_IN)
