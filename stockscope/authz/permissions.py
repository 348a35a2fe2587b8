"""
Roles, permissions and the role -> permission table.

Both enumerations are closed. ``ROLE_PERMISSIONS`` must cover every ``Role``;
the check runs when this module is imported, and again for any table parsed
from configuration (see ``parse_role_table``), so a role added to the enum
without an entry fails at startup instead of silently granting nothing.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    RM_VIEW = "RM_VIEW"
    RM_CREATE = "RM_CREATE"
    RM_EDIT_OWN = "RM_EDIT_OWN"
    RM_APPROVE_L1 = "RM_APPROVE_L1"
    RM_APPROVE_L2 = "RM_APPROVE_L2"
    RM_CANCEL = "RM_CANCEL"
    RM_FORWARD_TO_PURCHASE = "RM_FORWARD_TO_PURCHASE"
    RM_FULFILL_FROM_STOCK = "RM_FULFILL_FROM_STOCK"
    PO_VIEW = "PO_VIEW"
    PO_CREATE = "PO_CREATE"
    PO_EDIT = "PO_EDIT"
    PO_CLOSE = "PO_CLOSE"
    STOCK_VIEW = "STOCK_VIEW"
    STOCK_ENTRY = "STOCK_ENTRY"
    STOCK_EXIT = "STOCK_EXIT"
    STOCK_ADJUST = "STOCK_ADJUST"
    LEDGER_VIEW = "LEDGER_VIEW"
    TRANSFER_CREATE = "TRANSFER_CREATE"
    TRANSFER_DISPATCH = "TRANSFER_DISPATCH"
    TRANSFER_RECEIVE = "TRANSFER_RECEIVE"
    TRANSFER_REPORT_DIVERGENCE = "TRANSFER_REPORT_DIVERGENCE"
    DOC_VIEW = "DOC_VIEW"
    DOC_UPLOAD = "DOC_UPLOAD"
    DOC_DOWNLOAD = "DOC_DOWNLOAD"
    DOC_DELETE = "DOC_DELETE"
    REPORT_VIEW = "REPORT_VIEW"
    REPORT_EXPORT = "REPORT_EXPORT"
    USER_MANAGE = "USER_MANAGE"
    ORG_MANAGE = "ORG_MANAGE"
    MATERIAL_CATALOG_MANAGE = "MATERIAL_CATALOG_MANAGE"
    SUPPLIER_MANAGE = "SUPPLIER_MANAGE"
    IMPORT_CSV = "IMPORT_CSV"
    SALE_VIEW = "SALE_VIEW"
    SALE_CREATE = "SALE_CREATE"
    SALE_CANCEL = "SALE_CANCEL"
    SALE_REPORT = "SALE_REPORT"
    SETTINGS_MANAGE = "SETTINGS_MANAGE"


class Role(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    COORDINATOR = "COORDINATOR"
    REQUESTER = "REQUESTER"
    WH_CENTRAL = "WH_CENTRAL"
    WH_SITE = "WH_SITE"
    PURCHASING = "PURCHASING"
    VIEWER = "VIEWER"
    # Store
    CAIXA_VENDEDOR = "CAIXA_VENDEDOR"
    GERENTE_LOJA = "GERENTE_LOJA"
    # Factory
    GERENTE_PLANTA = "GERENTE_PLANTA"
    LIDER_SETOR = "LIDER_SETOR"
    ALMOX_SETOR = "ALMOX_SETOR"


class RoleConfigError(ValueError):
    """Raised when a role -> permission table is incomplete or references unknown names."""


def _perms(*names: str) -> frozenset[Permission]:
    return frozenset(Permission(n) for n in names)


ROLE_PERMISSIONS: Mapping[Role, frozenset[Permission]] = {
    Role.OWNER: _perms(
        "RM_VIEW", "RM_CREATE", "RM_EDIT_OWN", "RM_APPROVE_L2", "RM_CANCEL",
        "PO_VIEW", "PO_CREATE", "PO_EDIT", "PO_CLOSE",
        "STOCK_VIEW", "STOCK_ENTRY", "STOCK_EXIT", "STOCK_ADJUST", "LEDGER_VIEW",
        "TRANSFER_CREATE", "TRANSFER_DISPATCH", "TRANSFER_RECEIVE", "TRANSFER_REPORT_DIVERGENCE",
        "DOC_VIEW", "DOC_UPLOAD", "DOC_DOWNLOAD", "DOC_DELETE",
        "REPORT_VIEW", "REPORT_EXPORT",
        "USER_MANAGE", "ORG_MANAGE", "MATERIAL_CATALOG_MANAGE", "SUPPLIER_MANAGE",
        "IMPORT_CSV", "SALE_VIEW", "SALE_CREATE", "SALE_CANCEL", "SALE_REPORT",
        "SETTINGS_MANAGE",
    ),
    Role.ADMIN: _perms(
        "RM_VIEW", "PO_VIEW", "STOCK_VIEW", "LEDGER_VIEW", "DOC_VIEW", "DOC_DOWNLOAD",
        "REPORT_VIEW", "REPORT_EXPORT", "USER_MANAGE", "ORG_MANAGE", "MATERIAL_CATALOG_MANAGE",
        "SUPPLIER_MANAGE", "IMPORT_CSV", "SALE_VIEW",
    ),
    Role.COORDINATOR: _perms(
        "RM_VIEW", "RM_CREATE", "RM_EDIT_OWN", "RM_APPROVE_L1", "RM_CANCEL",
        "STOCK_VIEW", "LEDGER_VIEW", "DOC_VIEW", "DOC_DOWNLOAD", "REPORT_VIEW", "REPORT_EXPORT",
        "SALE_VIEW",
    ),
    Role.REQUESTER: _perms(
        "RM_VIEW", "RM_CREATE", "RM_EDIT_OWN", "STOCK_VIEW", "DOC_VIEW", "DOC_DOWNLOAD", "REPORT_VIEW",
    ),
    Role.WH_CENTRAL: _perms(
        "RM_VIEW", "RM_FORWARD_TO_PURCHASE", "RM_FULFILL_FROM_STOCK", "PO_VIEW",
        "STOCK_VIEW", "STOCK_ENTRY", "STOCK_EXIT", "STOCK_ADJUST", "LEDGER_VIEW",
        "TRANSFER_CREATE", "TRANSFER_DISPATCH", "TRANSFER_RECEIVE", "TRANSFER_REPORT_DIVERGENCE",
        "DOC_VIEW", "DOC_UPLOAD", "DOC_DOWNLOAD",
        "REPORT_VIEW", "REPORT_EXPORT",
        "IMPORT_CSV",
    ),
    Role.WH_SITE: _perms(
        "RM_VIEW",
        "STOCK_VIEW", "STOCK_ENTRY", "STOCK_EXIT", "LEDGER_VIEW",
        "TRANSFER_RECEIVE", "TRANSFER_REPORT_DIVERGENCE",
        "DOC_VIEW", "DOC_UPLOAD", "DOC_DOWNLOAD",
        "REPORT_VIEW",
    ),
    Role.PURCHASING: _perms(
        "RM_VIEW", "PO_VIEW", "PO_CREATE", "PO_EDIT", "PO_CLOSE", "DOC_VIEW", "DOC_UPLOAD",
        "DOC_DOWNLOAD", "REPORT_VIEW", "REPORT_EXPORT", "SUPPLIER_MANAGE", "IMPORT_CSV",
    ),
    Role.VIEWER: _perms(
        "RM_VIEW", "PO_VIEW", "STOCK_VIEW", "LEDGER_VIEW", "DOC_VIEW", "DOC_DOWNLOAD",
        "REPORT_VIEW", "REPORT_EXPORT", "SALE_VIEW",
    ),
    Role.CAIXA_VENDEDOR: _perms("SALE_VIEW", "SALE_CREATE", "STOCK_VIEW", "DOC_VIEW"),
    Role.GERENTE_LOJA: _perms(
        "SALE_VIEW", "SALE_CREATE", "SALE_CANCEL", "SALE_REPORT", "STOCK_VIEW", "STOCK_ADJUST",
        "REPORT_VIEW", "USER_MANAGE",
    ),
    Role.GERENTE_PLANTA: _perms(
        "RM_VIEW", "RM_APPROVE_L2", "STOCK_VIEW", "STOCK_ADJUST", "REPORT_VIEW", "ORG_MANAGE",
        "USER_MANAGE",
    ),
    Role.LIDER_SETOR: _perms("RM_VIEW", "RM_CREATE", "RM_EDIT_OWN", "STOCK_VIEW", "DOC_VIEW"),
    Role.ALMOX_SETOR: _perms("STOCK_VIEW", "STOCK_ENTRY", "STOCK_EXIT", "TRANSFER_RECEIVE", "DOC_UPLOAD"),
}


def check_role_table(table: Mapping[Role, frozenset[Permission]]) -> None:
    """Raise RoleConfigError unless ``table`` has an entry for every Role."""
    missing = [role.value for role in Role if role not in table]
    if missing:
        raise RoleConfigError(f"role table is missing roles: {missing}")


check_role_table(ROLE_PERMISSIONS)


def permissions_for_role(
    role: Role | str,
    table: Mapping[Role, frozenset[Permission]] | None = None,
) -> frozenset[Permission]:
    """Base permission set of ``role``. Raises ValueError for a name outside the Role enum."""
    table = ROLE_PERMISSIONS if table is None else table
    return table[Role(role)]


def parse_permissions(values: Any, where: str) -> frozenset[Permission]:
    """Parse a list of permission names, rejecting unknown ones."""
    if values is None:
        return frozenset()
    if isinstance(values, str) or not isinstance(values, (list, tuple, set, frozenset)):
        raise RoleConfigError(f"{where} must be a list of permission names")
    known = {p.value for p in Permission}
    names = [str(v).strip() for v in values]
    unknown = sorted(set(names) - known)
    if unknown:
        raise RoleConfigError(f"{where} references unknown permissions: {unknown}")
    return frozenset(Permission(n) for n in names)


def parse_role_table(raw: Mapping[str, Any]) -> dict[Role, frozenset[Permission]]:
    """
    Validate a role table loaded from configuration.

    Expected shape:

        OWNER: [RM_VIEW, TRANSFER_DISPATCH, ...]
        VIEWER: [RM_VIEW, ...]

    Every Role must be present and every permission must be a known Permission.
    """

    if not isinstance(raw, Mapping):
        raise RoleConfigError("roles must be a mapping")

    known_roles = {r.value for r in Role}
    unknown_roles = sorted(str(name) for name in raw.keys() if str(name) not in known_roles)
    if unknown_roles:
        raise RoleConfigError(f"unknown roles: {unknown_roles}")

    table = {Role(str(name)): parse_permissions(perms, f"role {name!r}") for name, perms in raw.items()}
    check_role_table(table)
    logger.debug("Parsed role table with %d roles", len(table))
    return table
