from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria

from stockscope.db.base import TenantOwnedMixin


@event.listens_for(Session, "do_orm_execute")
def _apply_tenant_isolation(execute_state) -> None:
    """
    Transparent tenant isolation.

    Any SELECT touching a TenantOwnedMixin model only sees rows of tenants the
    caller holds at least one role assignment in. Finer (unit/warehouse)
    decisions stay with the permission resolver.
    """

    if not execute_state.is_select:
        return

    authz = execute_state.session.info.get("authz")
    if authz is None:
        return

    tenant_ids = tuple(sorted(authz.tenant_ids))
    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            TenantOwnedMixin,
            lambda cls: cls.tenant_id.in_(tenant_ids),
            include_aliases=True,
        )
    )
