from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from stockscope.models.enums import PurchaseOrderStatus, RequisitionPriority, RequisitionStatus, TransferStatus


class TransferItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    material_id: str
    quantity_requested: float
    quantity_sent: float
    quantity_received: float


class TransferOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    origin_warehouse_id: str
    destination_warehouse_id: str
    requisition_id: str | None
    status: TransferStatus
    justification: str | None
    created_at: datetime
    dispatched_at: datetime | None
    received_at: datetime | None
    items: list[TransferItemOut]


class ReceiveTransferIn(BaseModel):
    quantities: dict[str, float] = Field(description="Received quantity per transfer item id")
    justification: str | None = None


class CreateTransferIn(BaseModel):
    tenant_id: str
    origin_warehouse_id: str
    destination_warehouse_id: str
    quantities: dict[str, float] = Field(description="Requested quantity per material id")


class FulfillRequisitionIn(BaseModel):
    origin_warehouse_id: str
    quantities: dict[str, float] = Field(description="Quantity served from stock per material id")


class RequisitionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    unit_id: str | None
    work_id: str | None
    warehouse_id: str | None
    requester_id: str
    priority: RequisitionPriority
    status: RequisitionStatus
    observations: str | None
    created_at: datetime


class PurchaseOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    unit_id: str | None
    work_id: str | None
    supplier_id: str | None
    status: PurchaseOrderStatus
    total_amount: float
    created_at: datetime


class ClosePurchaseOrderIn(BaseModel):
    status: PurchaseOrderStatus = PurchaseOrderStatus.CLOSED
