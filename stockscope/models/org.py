from __future__ import annotations

from sqlalchemy import Boolean, Enum as SAEnum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockscope.db.base import Base
from stockscope.models.enums import OperationType


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    operation_type: Mapped[OperationType] = mapped_column(
        SAEnum(OperationType, native_enum=False, length=20),
        default=OperationType.CONSTRUCTION,
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    units: Mapped[list["Unit"]] = relationship(back_populates="tenant")


class Unit(Base):
    """Store, construction site ("work") or factory plant."""

    __tablename__ = "units"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    tenant: Mapped[Tenant] = relationship(back_populates="units")
    warehouses: Mapped[list["Warehouse"]] = relationship(back_populates="unit")


class Sector(Base):
    __tablename__ = "sectors"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    unit_id: Mapped[str] = mapped_column(ForeignKey("units.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Warehouse(Base):
    __tablename__ = "warehouses"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    unit_id: Mapped[str] = mapped_column(ForeignKey("units.id"), nullable=False, index=True)
    # Legacy alias of unit_id, kept in sync on write.
    work_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    sector_id: Mapped[str | None] = mapped_column(ForeignKey("sectors.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_central: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    unit: Mapped[Unit] = relationship(back_populates="warehouses")


class Material(Base):
    __tablename__ = "materials"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    sku: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit: Mapped[str] = mapped_column(String(10), nullable=False)
    category: Mapped[str | None] = mapped_column(String(60), nullable=True)
    min_stock: Mapped[float] = mapped_column(Float, default=0, nullable=False)
