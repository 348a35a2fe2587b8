"""
Scope value object and its normalization.

A Scope addresses a position in the organizational hierarchy:

    tenant -> unit (store, construction site, factory) -> sector / warehouse

``unit_id`` used to be called ``work_id`` when the product only handled
construction sites. Both names are still read and written by older code paths,
so every scope that goes through ``normalize`` carries the same value in both.

``None`` means "absent". An empty string is a set value and is never coerced
to absent.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from stockscope.errors import InvalidScope

# Legacy camelCase keys accepted by Scope.from_mapping.
_CAMEL_KEYS = {
    "tenantId": "tenant_id",
    "unitId": "unit_id",
    "workId": "work_id",
    "sectorId": "sector_id",
    "warehouseId": "warehouse_id",
}
_FIELDS = frozenset(_CAMEL_KEYS.values())


@dataclass(frozen=True)
class Scope:
    """Hierarchical address bounding where a permission applies."""

    tenant_id: str | None = None
    unit_id: str | None = None
    sector_id: str | None = None
    warehouse_id: str | None = None
    work_id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Scope:
        """Build a scope from snake_case or legacy camelCase keys. Unknown keys are ignored."""
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in _FIELDS and value is not None:
                values[name] = str(value)
        return cls(**values)

    @property
    def is_well_formed(self) -> bool:
        return bool(self.tenant_id)


def _coerce(scope: Scope | Mapping[str, Any]) -> Scope:
    if isinstance(scope, Scope):
        return scope
    return Scope.from_mapping(scope)


def get_scope_unit_id(scope: Scope | Mapping[str, Any] | None) -> str | None:
    """Canonical unit id of ``scope``: ``unit_id``, falling back to legacy ``work_id``."""
    if scope is None:
        return None
    scope = _coerce(scope)
    return scope.unit_id if scope.unit_id is not None else scope.work_id


def normalize(scope: Scope | Mapping[str, Any]) -> Scope:
    """
    Return a copy of ``scope`` with ``unit_id`` and ``work_id`` in sync.

    Total over its inputs: ``tenant_id`` is passed through unvalidated.
    Idempotent: ``normalize(normalize(s)) == normalize(s)``.
    """

    scope = _coerce(scope)
    effective_unit = get_scope_unit_id(scope)
    return replace(scope, unit_id=effective_unit, work_id=effective_unit)


def require_scope(scope: Scope | Mapping[str, Any] | None) -> Scope:
    """
    Gate that every permission decision goes through.

    Raises InvalidScope when the scope is missing or has no tenant; returns the
    normalized scope otherwise.
    """

    if scope is None:
        raise InvalidScope("Scope is required")
    scope = _coerce(scope)
    if not scope.is_well_formed:
        raise InvalidScope("Scope must have a tenant_id")
    return normalize(scope)
