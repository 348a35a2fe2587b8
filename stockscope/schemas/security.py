from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ScopeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: str | None
    unit_id: str | None
    work_id: str | None
    sector_id: str | None
    warehouse_id: str | None


class RoleAssignmentOut(BaseModel):
    role: str
    scope: ScopeOut
    custom_permissions: list[str]
    permissions: list[str]


class MeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    is_active: bool
    assignments: list[RoleAssignmentOut] = []
