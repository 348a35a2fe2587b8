from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockscope.db.base import Base, TenantOwnedMixin
from stockscope.models.enums import (
    MovementType,
    PurchaseOrderStatus,
    RequisitionPriority,
    RequisitionStatus,
    TransferStatus,
)


class Requisition(TenantOwnedMixin, Base):
    """Material requisition (RM) raised by a unit for one of its warehouses."""

    __tablename__ = "requisitions"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    unit_id: Mapped[str | None] = mapped_column(String(40), nullable=True, index=True)
    work_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    warehouse_id: Mapped[str | None] = mapped_column(ForeignKey("warehouses.id"), nullable=True)
    requester_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)

    priority: Mapped[RequisitionPriority] = mapped_column(
        SAEnum(RequisitionPriority, native_enum=False, length=10),
        default=RequisitionPriority.MEDIUM,
        nullable=False,
    )
    status: Mapped[RequisitionStatus] = mapped_column(
        SAEnum(RequisitionStatus, native_enum=False, length=20),
        default=RequisitionStatus.WAITING_L1,
        nullable=False,
    )
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}


class PurchaseOrder(TenantOwnedMixin, Base):
    __tablename__ = "purchase_orders"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    unit_id: Mapped[str | None] = mapped_column(String(40), nullable=True, index=True)
    work_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    supplier_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    status: Mapped[PurchaseOrderStatus] = mapped_column(
        SAEnum(PurchaseOrderStatus, native_enum=False, length=20),
        default=PurchaseOrderStatus.OPEN,
        nullable=False,
    )
    total_amount: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}


class Transfer(TenantOwnedMixin, Base):
    """Movement of material between two warehouses, possibly of different units."""

    __tablename__ = "transfers"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    origin_warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), nullable=False, index=True)
    destination_warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), nullable=False, index=True)
    requisition_id: Mapped[str | None] = mapped_column(ForeignKey("requisitions.id"), nullable=True)

    status: Mapped[TransferStatus] = mapped_column(
        SAEnum(TransferStatus, native_enum=False, length=20),
        default=TransferStatus.CREATED,
        nullable=False,
    )
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    dispatched_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    items: Mapped[list["TransferItem"]] = relationship(
        back_populates="transfer",
        cascade="all, delete-orphan",
        order_by="TransferItem.id",
        lazy="selectin",
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}


class TransferItem(Base):
    __tablename__ = "transfer_items"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    transfer_id: Mapped[str] = mapped_column(ForeignKey("transfers.id"), nullable=False, index=True)
    material_id: Mapped[str] = mapped_column(ForeignKey("materials.id"), nullable=False)

    quantity_requested: Mapped[float] = mapped_column(Float, nullable=False)
    quantity_sent: Mapped[float] = mapped_column(Float, nullable=False)
    quantity_received: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    transfer: Mapped[Transfer] = relationship(back_populates="items")


class Stock(Base):
    __tablename__ = "stock"

    warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), primary_key=True)
    material_id: Mapped[str] = mapped_column(ForeignKey("materials.id"), primary_key=True)
    quantity: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    reserved: Mapped[float] = mapped_column(Float, default=0, nullable=False)


class Movement(Base):
    """Stock ledger entry."""

    __tablename__ = "movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), nullable=False, index=True)
    material_id: Mapped[str] = mapped_column(ForeignKey("materials.id"), nullable=False)
    type: Mapped[MovementType] = mapped_column(SAEnum(MovementType, native_enum=False, length=20), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(40), nullable=True, index=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class AuditLog(TenantOwnedMixin, Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(40), nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
