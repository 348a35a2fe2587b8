from __future__ import annotations

from dataclasses import dataclass

from stockscope.authz.resolver import RoleAssignment


@dataclass(frozen=True)
class AuthzContext:
    """
    Per-request authorization context.

    Carries who is calling and what they were granted, never a "current
    scope": every permission check gets its target scope explicitly.

    Attached to:
    - request.state (FastAPI request lifetime)
    - Session.info (SQLAlchemy session lifetime, read by the tenant filter)
    """

    user_id: str
    assignments: tuple[RoleAssignment, ...]

    @property
    def tenant_ids(self) -> frozenset[str]:
        return frozenset(a.scope.tenant_id for a in self.assignments if a.scope.tenant_id)
