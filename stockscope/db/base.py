from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class TenantOwnedMixin:
    """
    Rows that belong to exactly one tenant.

    ``stockscope.db.filters`` restricts SELECTs on every class using this mixin
    to the tenants of the current request's role assignments.
    """

    tenant_id: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
