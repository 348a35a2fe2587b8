"""Tests for the role -> permission table."""

import pytest

from stockscope.authz.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    Role,
    RoleConfigError,
    check_role_table,
    parse_role_table,
    permissions_for_role,
)


def test_table_covers_every_role():
    assert set(ROLE_PERMISSIONS) == set(Role)


def test_owner_can_dispatch_and_report_divergence():
    perms = permissions_for_role(Role.OWNER)
    assert Permission.TRANSFER_DISPATCH in perms
    assert Permission.TRANSFER_REPORT_DIVERGENCE in perms


def test_permissions_are_atomic():
    # Receiving does not imply dispatching.
    perms = permissions_for_role(Role.WH_SITE)
    assert Permission.TRANSFER_RECEIVE in perms
    assert Permission.TRANSFER_DISPATCH not in perms


def test_almox_setor_receives_without_divergence():
    perms = permissions_for_role("ALMOX_SETOR")
    assert Permission.TRANSFER_RECEIVE in perms
    assert Permission.TRANSFER_REPORT_DIVERGENCE not in perms


def test_unknown_role_raises():
    with pytest.raises(ValueError):
        permissions_for_role("JANITOR")


def test_check_role_table_reports_missing_roles():
    table = {role: perms for role, perms in ROLE_PERMISSIONS.items() if role is not Role.VIEWER}
    with pytest.raises(RoleConfigError, match="VIEWER"):
        check_role_table(table)


def test_parse_role_table():
    raw = {role.value: ["RM_VIEW"] for role in Role}
    raw["OWNER"] = ["RM_VIEW", "TRANSFER_DISPATCH"]
    table = parse_role_table(raw)
    assert table[Role.OWNER] == frozenset({Permission.RM_VIEW, Permission.TRANSFER_DISPATCH})
    assert table[Role.VIEWER] == frozenset({Permission.RM_VIEW})


def test_parse_role_table_rejects_unknown_permission():
    raw = {role.value: [] for role in Role}
    raw["OWNER"] = ["FLY"]
    with pytest.raises(RoleConfigError, match="FLY"):
        parse_role_table(raw)


def test_parse_role_table_rejects_unknown_role():
    raw = {role.value: [] for role in Role}
    raw["JANITOR"] = []
    with pytest.raises(RoleConfigError, match="JANITOR"):
        parse_role_table(raw)


def test_parse_role_table_requires_every_role():
    with pytest.raises(RoleConfigError, match="missing"):
        parse_role_table({"OWNER": ["RM_VIEW"]})
