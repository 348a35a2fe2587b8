"""
Scope-based permission resolver.

Answers one question: does any of the user's role assignments grant
``permission`` somewhere that contains ``target_scope``?

Containment is decided field by field. For each of unit, warehouse and sector
an assignment field that is unset acts as a wildcard, and a set field must
equal the target's field exactly. Fields are never related to each other
(a sector id does not imply a unit id). The tenant always has to match.

This module has no FastAPI or SQLAlchemy dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Iterable, Mapping

from stockscope.authz.permissions import ROLE_PERMISSIONS, Permission, Role, check_role_table
from stockscope.authz.scope import Scope, normalize, require_scope
from stockscope.errors import PermissionDenied

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleAssignment:
    """A role granted to a user, restricted to the subtree rooted at ``scope``."""

    role: Role
    scope: Scope
    custom_permissions: frozenset[Permission] = field(default_factory=frozenset)


class FieldMatch(Enum):
    WILDCARD = "wildcard"
    EXACT = "exact"
    MISMATCH = "mismatch"


def match_field(granted: str | None, requested: str | None) -> FieldMatch:
    """Compare one scope field of an assignment against the target. ``None`` is unset; ``""`` is a value."""
    if granted is None:
        return FieldMatch.WILDCARD
    if granted == requested:
        return FieldMatch.EXACT
    return FieldMatch.MISMATCH


def scope_contains(granted: Scope, target: Scope) -> bool:
    """True if ``target`` lies inside the subtree addressed by ``granted``. Both must be normalized."""
    if granted.tenant_id != target.tenant_id:
        return False
    return all(
        match_field(g, t) is not FieldMatch.MISMATCH
        for g, t in (
            (granted.unit_id, target.unit_id),
            (granted.warehouse_id, target.warehouse_id),
            (granted.sector_id, target.sector_id),
        )
    )


class PermissionResolver:
    """
    Resolver bound to a role -> permission table.

    Usage:
        resolver = PermissionResolver()
        resolver.can(Permission.TRANSFER_DISPATCH, scope_from_transfer(t), assignments)
    """

    def __init__(self, table: Mapping[Role, frozenset[Permission]] | None = None) -> None:
        table = ROLE_PERMISSIONS if table is None else table
        check_role_table(table)
        self._table = dict(table)

    @property
    def table(self) -> Mapping[Role, frozenset[Permission]]:
        return dict(self._table)

    def granted_permissions(self, assignment: RoleAssignment) -> frozenset[Permission]:
        """Role base permissions plus the assignment's custom permissions."""
        return self._table[Role(assignment.role)] | frozenset(assignment.custom_permissions)

    def resolve(
        self,
        permission: Permission | str,
        target_scope: Scope | Mapping[str, Any] | None,
        assignments: Iterable[RoleAssignment],
    ) -> RoleAssignment | None:
        """
        Return the first assignment granting ``permission`` at ``target_scope``, or None.

        Algorithm:
        1. No target scope -> deny.
        2. Validate + normalize the target (InvalidScope propagates).
        3. For each assignment: skip unless its scope contains the target;
           grant if the permission is in its granted set.
        """

        if target_scope is None:
            logger.debug("authz: denied %s (no target scope)", permission)
            return None

        effective = require_scope(target_scope)
        permission = Permission(permission)

        for assignment in assignments:
            if not scope_contains(normalize(assignment.scope), effective):
                continue
            if permission in self.granted_permissions(assignment):
                logger.debug(
                    "authz: allowed %s scope=%s via role=%s assignment_scope=%s",
                    permission.value,
                    effective,
                    Role(assignment.role).value,
                    assignment.scope,
                )
                return assignment

        logger.debug("authz: denied %s scope=%s", permission.value, effective)
        return None

    def can(
        self,
        permission: Permission | str,
        target_scope: Scope | Mapping[str, Any] | None,
        assignments: Iterable[RoleAssignment],
    ) -> bool:
        return self.resolve(permission, target_scope, assignments) is not None

    def require_permission(
        self,
        permission: Permission | str,
        target_scope: Scope | Mapping[str, Any] | None,
        assignments: Iterable[RoleAssignment],
    ) -> RoleAssignment:
        """Like ``resolve`` but raises PermissionDenied instead of returning None."""
        assignment = self.resolve(permission, target_scope, assignments)
        if assignment is None:
            raise PermissionDenied(Permission(permission).value, target_scope)
        return assignment


_default_resolver = PermissionResolver()


def get_resolver(table: Mapping[Role, frozenset[Permission]] | None = None) -> PermissionResolver:
    """Resolver for ``table``; the shared built-in one when ``table`` is None."""
    if table is None:
        return _default_resolver
    return PermissionResolver(table)


def can(
    permission: Permission | str,
    target_scope: Scope | Mapping[str, Any] | None,
    assignments: Iterable[RoleAssignment],
    *,
    table: Mapping[Role, frozenset[Permission]] | None = None,
) -> bool:
    """Module-level convenience around ``PermissionResolver.can`` with the built-in role table."""
    return get_resolver(table).can(permission, target_scope, assignments)
