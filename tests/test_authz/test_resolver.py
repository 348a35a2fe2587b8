"""Tests for the containment-matching permission resolver."""

import pytest

from stockscope.authz.derivation import scope_from_transfer
from stockscope.authz.permissions import ROLE_PERMISSIONS, Permission, Role
from stockscope.authz.resolver import FieldMatch, PermissionResolver, RoleAssignment, can, match_field
from stockscope.authz.scope import Scope
from stockscope.errors import InvalidScope, PermissionDenied

TARGETS = [
    Scope(tenant_id="t1"),
    Scope(tenant_id="t1", unit_id="u1"),
    Scope(tenant_id="t1", unit_id="u2", warehouse_id="w1"),
    Scope(tenant_id="t1", unit_id="u1", sector_id="s1", warehouse_id="w2"),
    Scope(tenant_id="t1", work_id="u3"),
]


def test_match_field():
    assert match_field(None, "x") is FieldMatch.WILDCARD
    assert match_field(None, None) is FieldMatch.WILDCARD
    assert match_field("x", "x") is FieldMatch.EXACT
    assert match_field("x", "y") is FieldMatch.MISMATCH
    assert match_field("x", None) is FieldMatch.MISMATCH
    assert match_field("", None) is FieldMatch.MISMATCH


def test_owner_at_tenant_may_dispatch_transfer():
    owner = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))
    target = scope_from_transfer(type("T", (), {"tenant_id": "t1", "origin_warehouse_id": "w1"})())
    assert can(Permission.TRANSFER_DISPATCH, target, [owner]) is True


def test_warehouse_assignment_denied_on_other_warehouse():
    operator = RoleAssignment(role=Role.WH_CENTRAL, scope=Scope(tenant_id="t1", warehouse_id="w1"))
    assert Permission.STOCK_ADJUST in ROLE_PERMISSIONS[Role.WH_CENTRAL]
    assert can(Permission.STOCK_ADJUST, Scope(tenant_id="t1", warehouse_id="w2"), [operator]) is False
    assert can(Permission.STOCK_ADJUST, Scope(tenant_id="t1", warehouse_id="w1"), [operator]) is True


@pytest.mark.parametrize("target", TARGETS)
def test_tenant_wide_assignment_is_wildcard(target):
    owner = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))
    assert can(Permission.STOCK_VIEW, target, [owner]) is True


@pytest.mark.parametrize("target", TARGETS)
def test_warehouse_assignment_requires_exact_warehouse(target):
    assignment = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1", warehouse_id="w1"))
    assert can(Permission.STOCK_VIEW, target, [assignment]) is (target.warehouse_id == "w1")


@pytest.mark.parametrize("target", TARGETS)
def test_containment_is_monotonic(target):
    broad = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1", unit_id="u1"))
    narrow = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1", unit_id="u1", sector_id="s1"))
    if can(Permission.STOCK_VIEW, target, [narrow]):
        assert can(Permission.STOCK_VIEW, target, [broad])


def test_tenant_must_match():
    owner = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))
    assert can(Permission.STOCK_VIEW, Scope(tenant_id="t2"), [owner]) is False


def test_unit_assignment_matches_legacy_work_id():
    coordinator = RoleAssignment(role=Role.COORDINATOR, scope=Scope(tenant_id="t1", work_id="u1"))
    assert can(Permission.RM_APPROVE_L1, Scope(tenant_id="t1", unit_id="u1"), [coordinator]) is True
    assert can(Permission.RM_APPROVE_L1, Scope(tenant_id="t1", unit_id="u2"), [coordinator]) is False


def test_unit_assignment_does_not_match_tenant_wide_target():
    coordinator = RoleAssignment(role=Role.COORDINATOR, scope=Scope(tenant_id="t1", unit_id="u1"))
    assert can(Permission.RM_VIEW, Scope(tenant_id="t1"), [coordinator]) is False


def test_sector_is_compared_independently():
    leader = RoleAssignment(role=Role.LIDER_SETOR, scope=Scope(tenant_id="t1", sector_id="s1"))
    assert can(Permission.RM_CREATE, Scope(tenant_id="t1", unit_id="any", sector_id="s1"), [leader]) is True
    assert can(Permission.RM_CREATE, Scope(tenant_id="t1", unit_id="any", sector_id="s2"), [leader]) is False


def test_custom_permissions_extend_role():
    viewer = RoleAssignment(
        role=Role.VIEWER,
        scope=Scope(tenant_id="t1"),
        custom_permissions=frozenset({Permission.TRANSFER_RECEIVE}),
    )
    assert can(Permission.TRANSFER_RECEIVE, Scope(tenant_id="t1"), [viewer]) is True
    assert can(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1"), [viewer]) is False


def test_any_matching_assignment_grants():
    assignments = [
        RoleAssignment(role=Role.VIEWER, scope=Scope(tenant_id="t1")),
        RoleAssignment(role=Role.WH_CENTRAL, scope=Scope(tenant_id="t1", warehouse_id="w1")),
    ]
    assert can(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1", warehouse_id="w1"), assignments) is True
    assert can(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1", warehouse_id="w2"), assignments) is False


def test_no_target_scope_is_denied():
    owner = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))
    assert can(Permission.STOCK_VIEW, None, [owner]) is False


def test_tenantless_target_raises_invalid_scope():
    owner = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))
    with pytest.raises(InvalidScope):
        can(Permission.STOCK_VIEW, Scope(unit_id="u1"), [owner])


def test_no_assignments_is_denied():
    assert can(Permission.STOCK_VIEW, Scope(tenant_id="t1"), []) is False


def test_resolve_returns_granting_assignment():
    viewer = RoleAssignment(role=Role.VIEWER, scope=Scope(tenant_id="t1"))
    central = RoleAssignment(role=Role.WH_CENTRAL, scope=Scope(tenant_id="t1"))
    resolver = PermissionResolver()
    assert resolver.resolve(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1"), [viewer, central]) is central


def test_require_permission_raises_permission_denied():
    viewer = RoleAssignment(role=Role.VIEWER, scope=Scope(tenant_id="t1"))
    with pytest.raises(PermissionDenied) as exc_info:
        PermissionResolver().require_permission(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1"), [viewer])
    assert exc_info.value.permission == "TRANSFER_DISPATCH"
    assert exc_info.value.status_code == 403


def test_resolver_with_custom_table():
    table = {role: frozenset() for role in Role}
    table[Role.VIEWER] = frozenset({Permission.TRANSFER_DISPATCH})
    viewer = RoleAssignment(role=Role.VIEWER, scope=Scope(tenant_id="t1"))
    owner = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))

    assert can(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1"), [viewer], table=table) is True
    assert can(Permission.TRANSFER_DISPATCH, Scope(tenant_id="t1"), [owner], table=table) is False


def test_resolver_rejects_incomplete_table():
    with pytest.raises(ValueError):
        PermissionResolver({Role.OWNER: frozenset()})


def test_mapping_targets_are_normalized_before_matching():
    coordinator = RoleAssignment(role=Role.COORDINATOR, scope=Scope(tenant_id="t1", unit_id="w2"))
    assert can(Permission.RM_APPROVE_L1, {"tenantId": "t1", "workId": "w2", "warehouseId": "wh2"}, [coordinator])
    assert can(Permission.RM_APPROVE_L1, {"tenant_id": "t1", "unit_id": "w2"}, [coordinator])
    assert not can(Permission.RM_APPROVE_L1, {"tenantId": "t1", "workId": "w1"}, [coordinator])
    with pytest.raises(InvalidScope):
        can(Permission.RM_APPROVE_L1, {"workId": "w2"}, [coordinator])
