"""Tests for the transfer create / dispatch / receive / cancel workflow (no database)."""

import pytest

from stockscope.authz.permissions import Role
from stockscope.authz.resolver import RoleAssignment
from stockscope.authz.scope import Scope
from stockscope.errors import InvalidScope, PermissionDenied, TransitionConflict, ValidationFailed
from stockscope.models.enums import MovementType, TransferStatus
from stockscope.models.inventory import Transfer, TransferItem
from stockscope.models.org import Unit, Warehouse
from stockscope.workflow.transfers import (
    cancel_transfer,
    create_transfer,
    dispatch_transfer,
    find_divergent_items,
    receive_transfer,
)

OWNER = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t1"))
# Can receive but cannot report divergence.
ALMOX = RoleAssignment(role=Role.ALMOX_SETOR, scope=Scope(tenant_id="t1"))
VIEWER = RoleAssignment(role=Role.VIEWER, scope=Scope(tenant_id="t1"))


def make_transfer(status=TransferStatus.IN_TRANSIT, sent=(10, 5)):
    return Transfer(
        id="TR-1",
        tenant_id="t1",
        origin_warehouse_id="wh1",
        destination_warehouse_id="wh2",
        status=status,
        items=[
            TransferItem(
                id=f"I{n}",
                material_id=f"m{n}",
                quantity_requested=qty,
                quantity_sent=qty,
                quantity_received=0,
            )
            for n, qty in enumerate(sent, start=1)
        ],
    )


def test_receipt_as_sent_needs_no_divergence_permission():
    transfer = make_transfer()
    transition = receive_transfer(transfer, {"I1": 10, "I2": 5}, None, [ALMOX])

    assert transfer.status is TransferStatus.RECEIVED
    assert transfer.received_at is not None
    assert transfer.justification is None
    assert transition.to_state == "RECEIVED"
    assert [m.quantity for m in transition.movements] == [10, 5]
    assert all(m.type is MovementType.TRANSFER_IN and m.warehouse_id == "wh2" for m in transition.movements)


def test_divergent_receipt_with_empty_justification_is_rejected():
    transfer = make_transfer()
    with pytest.raises(ValidationFailed):
        receive_transfer(transfer, {"I1": 10, "I2": 7}, "", [OWNER])
    assert transfer.status is TransferStatus.IN_TRANSIT


def test_divergent_receipt_without_permission_is_denied_before_justification():
    transfer = make_transfer()
    with pytest.raises(PermissionDenied) as exc_info:
        receive_transfer(transfer, {"I1": 10, "I2": 7}, "", [ALMOX])
    assert exc_info.value.permission == "TRANSFER_REPORT_DIVERGENCE"


@pytest.mark.parametrize("justification", [None, "short", "   padded   ", "123456789"])
def test_divergent_receipt_requires_ten_characters(justification):
    transfer = make_transfer()
    with pytest.raises(ValidationFailed):
        receive_transfer(transfer, {"I1": 10, "I2": 7}, justification, [OWNER])


def test_divergent_receipt_records_justification():
    transfer = make_transfer()
    transition = receive_transfer(transfer, {"I1": 10, "I2": 7}, "  two extra boxes arrived  ", [OWNER])

    assert transfer.status is TransferStatus.DIVERGENCE
    assert transfer.justification == "two extra boxes arrived"
    assert transfer.items[1].quantity_received == 7
    assert transition.to_state == "DIVERGENCE"
    assert "two extra boxes arrived" in transition.details


def test_find_divergent_items():
    transfer = make_transfer()
    assert find_divergent_items(transfer, {"I1": 10, "I2": 5}) == []
    assert find_divergent_items(transfer, {"I1": 9, "I2": 5}) == ["I1"]


def test_receive_requires_receive_permission():
    transfer = make_transfer()
    with pytest.raises(PermissionDenied) as exc_info:
        receive_transfer(transfer, {"I1": 10, "I2": 5}, None, [VIEWER])
    assert exc_info.value.permission == "TRANSFER_RECEIVE"


@pytest.mark.parametrize(
    "quantities",
    [
        {"I1": 10},
        {"I1": 10, "I2": 5, "I3": 1},
        {"I1": 10, "I2": -1},
        {"I1": float("nan"), "I2": 5},
        {"I1": 10, "I2": float("inf")},
        {"I1": float("-inf"), "I2": 5},
    ],
)
def test_receive_validates_quantities(quantities):
    transfer = make_transfer()
    with pytest.raises(ValidationFailed):
        receive_transfer(transfer, quantities, "justified well enough", [OWNER])
    assert transfer.status is TransferStatus.IN_TRANSIT
    assert [i.quantity_received for i in transfer.items] == [0, 0]


def test_receive_only_in_transit():
    transfer = make_transfer(status=TransferStatus.CREATED)
    with pytest.raises(TransitionConflict):
        receive_transfer(transfer, {"I1": 10, "I2": 5}, None, [OWNER])


def test_dispatch_moves_to_in_transit():
    transfer = make_transfer(status=TransferStatus.CREATED)
    transition = dispatch_transfer(transfer, [OWNER])

    assert transfer.status is TransferStatus.IN_TRANSIT
    assert transfer.dispatched_at is not None
    assert transition.from_state == "CREATED"
    assert [(m.warehouse_id, m.type, m.quantity) for m in transition.movements] == [
        ("wh1", MovementType.TRANSFER_OUT, 10),
        ("wh1", MovementType.TRANSFER_OUT, 5),
    ]


def test_dispatch_denied_leaves_transfer_untouched():
    transfer = make_transfer(status=TransferStatus.CREATED)
    site = RoleAssignment(role=Role.WH_SITE, scope=Scope(tenant_id="t1"))
    with pytest.raises(PermissionDenied):
        dispatch_transfer(transfer, [site])
    assert transfer.status is TransferStatus.CREATED
    assert transfer.dispatched_at is None


def test_dispatch_denied_for_other_tenant():
    transfer = make_transfer(status=TransferStatus.CREATED)
    other = RoleAssignment(role=Role.OWNER, scope=Scope(tenant_id="t2"))
    with pytest.raises(PermissionDenied):
        dispatch_transfer(transfer, [other])


def test_dispatch_twice_conflicts():
    transfer = make_transfer(status=TransferStatus.CREATED)
    dispatch_transfer(transfer, [OWNER])
    with pytest.raises(TransitionConflict):
        dispatch_transfer(transfer, [OWNER])


def test_cancel_created_transfer():
    transfer = make_transfer(status=TransferStatus.CREATED)
    transition = cancel_transfer(transfer, [OWNER])
    assert transfer.status is TransferStatus.CANCELED
    assert transition.action == "CANCEL"
    assert transition.movements == ()


def test_cancel_in_transit_conflicts():
    transfer = make_transfer()
    with pytest.raises(TransitionConflict):
        cancel_transfer(transfer, [OWNER])


def test_cancel_requires_create_permission():
    transfer = make_transfer(status=TransferStatus.CREATED)
    with pytest.raises(PermissionDenied):
        cancel_transfer(transfer, [ALMOX])


def make_warehouse(warehouse_id, tenant_id="t1"):
    return Warehouse(id=warehouse_id, unit=Unit(id=f"unit-{warehouse_id}", tenant_id=tenant_id, name="Unit"))


def test_create_transfer():
    transfer, transition = create_transfer(
        "t1", make_warehouse("wh1"), make_warehouse("wh2"), {"m2": 5, "m1": 10}, [OWNER], transfer_id="TR-NEW"
    )

    assert transfer.status is TransferStatus.CREATED
    assert (transfer.origin_warehouse_id, transfer.destination_warehouse_id) == ("wh1", "wh2")
    assert transfer.requisition_id is None
    assert [(i.id, i.material_id, i.quantity_requested, i.quantity_sent) for i in transfer.items] == [
        ("TR-NEW-1", "m1", 10, 10),
        ("TR-NEW-2", "m2", 5, 5),
    ]
    assert (transition.action, transition.to_state, transition.movements) == ("CREATE", "CREATED", ())


def test_create_transfer_generates_id():
    transfer, transition = create_transfer("t1", make_warehouse("wh1"), make_warehouse("wh2"), {"m1": 1}, [OWNER])
    assert transfer.id.startswith("TR-")
    assert transition.entity_id == transfer.id


def test_create_transfer_requires_create_permission():
    with pytest.raises(PermissionDenied) as exc_info:
        create_transfer("t1", make_warehouse("wh1"), make_warehouse("wh2"), {"m1": 1}, [ALMOX])
    assert exc_info.value.permission == "TRANSFER_CREATE"


def test_create_transfer_requires_tenant():
    with pytest.raises(InvalidScope):
        create_transfer("", make_warehouse("wh1"), make_warehouse("wh2"), {"m1": 1}, [OWNER])


@pytest.mark.parametrize(
    "origin, destination, quantities",
    [
        ("wh1", "wh1", {"m1": 1}),
        ("wh1", "wh2", {}),
        ("wh1", "wh2", {"m1": 0}),
        ("wh1", "wh2", {"m1": -3}),
        ("wh1", "wh2", {"m1": float("nan")}),
        ("wh1", "wh2", {"m1": float("inf")}),
    ],
)
def test_create_transfer_validates_request(origin, destination, quantities):
    with pytest.raises(ValidationFailed):
        create_transfer("t1", make_warehouse(origin), make_warehouse(destination), quantities, [OWNER])


@pytest.mark.parametrize("foreign", ["origin", "destination"])
def test_create_transfer_rejects_other_tenant_warehouse(foreign):
    origin = make_warehouse("wh1", tenant_id="t2" if foreign == "origin" else "t1")
    destination = make_warehouse("wh2", tenant_id="t2" if foreign == "destination" else "t1")
    with pytest.raises(ValidationFailed):
        create_transfer("t1", origin, destination, {"m1": 1}, [OWNER])
