"""
Scope-based authorization engine.

Pure Python: no dependency on the web or database layers. The web layer loads
role assignments and entities, derives scopes from entities and asks
``can``/``PermissionResolver`` for a decision.
"""

from .derivation import scope_from_po, scope_from_rm, scope_from_transfer
from .permissions import ROLE_PERMISSIONS, Permission, Role, RoleConfigError, permissions_for_role
from .resolver import FieldMatch, PermissionResolver, RoleAssignment, can, get_resolver, match_field
from .scope import Scope, get_scope_unit_id, normalize, require_scope

__all__ = [
    "FieldMatch",
    "Permission",
    "PermissionResolver",
    "ROLE_PERMISSIONS",
    "Role",
    "RoleAssignment",
    "RoleConfigError",
    "Scope",
    "can",
    "get_resolver",
    "get_scope_unit_id",
    "match_field",
    "normalize",
    "permissions_for_role",
    "require_scope",
    "scope_from_po",
    "scope_from_rm",
    "scope_from_transfer",
]
