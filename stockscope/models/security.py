from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockscope.authz.permissions import Role
from stockscope.db.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email"),)

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(120), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    role_assignments: Mapped[list["RoleAssignmentRecord"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="RoleAssignmentRecord.id",
    )


class RoleAssignmentRecord(Base):
    """
    Stored role assignment.

    Scope columns mirror ``stockscope.authz.Scope``. Older rows may only carry
    ``work_id``; ``load_role_assignments`` normalizes them on the way out.
    """

    __tablename__ = "role_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    role: Mapped[Role] = mapped_column(SAEnum(Role, native_enum=False, length=30), nullable=False)

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id"), nullable=False, index=True)
    unit_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    work_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    sector_id: Mapped[str | None] = mapped_column(String(40), nullable=True)
    warehouse_id: Mapped[str | None] = mapped_column(String(40), nullable=True)

    # Extra permission names granted on top of the role's base set.
    custom_permissions: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    user: Mapped[User] = relationship(back_populates="role_assignments")
