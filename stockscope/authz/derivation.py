"""
Scope derivation: which scope an entity is checked against.

Entities are read by attribute, so ORM rows and plain objects both work.
"""

from __future__ import annotations

from typing import Any

from stockscope.authz.scope import Scope, normalize


def _attr(entity: Any, name: str) -> str | None:
    value = getattr(entity, name, None)
    return None if value is None else str(value)


def scope_from_rm(rm: Any) -> Scope:
    """A requisition is bounded by its unit and its target warehouse."""
    return normalize(
        Scope(
            tenant_id=_attr(rm, "tenant_id"),
            unit_id=_attr(rm, "unit_id"),
            work_id=_attr(rm, "work_id"),
            warehouse_id=_attr(rm, "warehouse_id"),
        )
    )


def scope_from_po(po: Any) -> Scope:
    """A purchase order is a unit-level concern: no warehouse dimension."""
    return normalize(
        Scope(
            tenant_id=_attr(po, "tenant_id"),
            unit_id=_attr(po, "unit_id"),
            work_id=_attr(po, "work_id"),
        )
    )


def scope_from_transfer(transfer: Any) -> Scope:
    """
    Tenant-wide scope for a transfer.

    Origin and destination may belong to different units, so no single unit or
    warehouse bounds a transfer. Restricting transfer actions to a specific
    warehouse would require widening this function's contract.
    """

    return normalize(Scope(tenant_id=_attr(transfer, "tenant_id")))
