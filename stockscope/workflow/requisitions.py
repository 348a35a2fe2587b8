"""
Requisition (RM) approval workflow.

    WAITING_L1 --RM_APPROVE_L1--> WAITING_L2 --RM_APPROVE_L2--> APPROVED
    WAITING_L1 | WAITING_L2 | APPROVED --RM_CANCEL--> CANCELED
    APPROVED --RM_FULFILL_FROM_STOCK--> IN_FULFILLMENT (opens a transfer)

Permissions are checked against ``scope_from_rm``, which includes the target
warehouse.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from stockscope.authz.derivation import scope_from_rm
from stockscope.authz.permissions import Permission
from stockscope.authz.resolver import PermissionResolver, RoleAssignment, get_resolver
from stockscope.errors import TransitionConflict, ValidationFailed
from stockscope.models.enums import RequisitionStatus
from stockscope.models.inventory import Requisition, Transfer
from stockscope.models.org import Warehouse
from stockscope.workflow.transfers import build_transfer, new_transfer_id
from stockscope.workflow.transitions import Transition

logger = logging.getLogger(__name__)

# source state -> (permission, target state)
APPROVAL_STEPS: dict[RequisitionStatus, tuple[Permission, RequisitionStatus]] = {
    RequisitionStatus.WAITING_L1: (Permission.RM_APPROVE_L1, RequisitionStatus.WAITING_L2),
    RequisitionStatus.WAITING_L2: (Permission.RM_APPROVE_L2, RequisitionStatus.APPROVED),
}

CANCELABLE_STATES = frozenset(
    {RequisitionStatus.WAITING_L1, RequisitionStatus.WAITING_L2, RequisitionStatus.APPROVED}
)


def approve_requisition(
    rm: Requisition,
    assignments: Iterable[RoleAssignment],
    *,
    resolver: PermissionResolver | None = None,
) -> Transition:
    resolver = resolver or get_resolver()
    current = RequisitionStatus(rm.status)
    step = APPROVAL_STEPS.get(current)
    if step is None:
        raise TransitionConflict(f"Requisition {rm.id} is {current.value}; nothing to approve")

    permission, target = step
    resolver.require_permission(permission, scope_from_rm(rm), assignments)

    rm.status = target
    logger.info("Requisition %s approved: %s -> %s", rm.id, current.value, target.value)
    return Transition(
        entity_type="RM",
        entity_id=rm.id,
        tenant_id=rm.tenant_id,
        action="STATUS_CHANGE",
        from_state=current.value,
        to_state=target.value,
        details=f"From {current.value} to {target.value}",
    )


def cancel_requisition(
    rm: Requisition,
    assignments: Iterable[RoleAssignment],
    *,
    resolver: PermissionResolver | None = None,
) -> Transition:
    resolver = resolver or get_resolver()
    current = RequisitionStatus(rm.status)
    if current not in CANCELABLE_STATES:
        raise TransitionConflict(f"Requisition {rm.id} is {current.value} and cannot be canceled")

    resolver.require_permission(Permission.RM_CANCEL, scope_from_rm(rm), assignments)

    rm.status = RequisitionStatus.CANCELED
    logger.info("Requisition %s canceled", rm.id)
    return Transition(
        entity_type="RM",
        entity_id=rm.id,
        tenant_id=rm.tenant_id,
        action="STATUS_CHANGE",
        from_state=current.value,
        to_state=RequisitionStatus.CANCELED.value,
        details=f"From {current.value} to {RequisitionStatus.CANCELED.value}",
    )


def fulfill_requisition(
    rm: Requisition,
    origin: Warehouse,
    quantities: Mapping[str, float],
    assignments: Iterable[RoleAssignment],
    *,
    transfer_id: str | None = None,
    resolver: PermissionResolver | None = None,
) -> tuple[Transfer, Transition]:
    """
    Serve an APPROVED requisition from stock held at ``origin``.

    Opens a CREATED transfer from ``origin`` to the requisition's warehouse,
    linked back through ``requisition_id``, and moves the requisition to
    IN_FULFILLMENT. Stock only moves once the transfer is dispatched.
    """

    resolver = resolver or get_resolver()
    current = RequisitionStatus(rm.status)
    if current is not RequisitionStatus.APPROVED:
        raise TransitionConflict(f"Requisition {rm.id} is {current.value}; only APPROVED requisitions are fulfilled")

    resolver.require_permission(Permission.RM_FULFILL_FROM_STOCK, scope_from_rm(rm), assignments)
    if not rm.warehouse_id:
        raise ValidationFailed(f"Requisition {rm.id} has no destination warehouse")

    transfer = build_transfer(
        transfer_id or new_transfer_id(),
        rm.tenant_id,
        origin,
        rm.warehouse_id,
        quantities,
        requisition_id=rm.id,
    )
    rm.status = RequisitionStatus.IN_FULFILLMENT
    logger.info("Requisition %s fulfilled from %s via transfer %s", rm.id, origin.id, transfer.id)
    return transfer, Transition(
        entity_type="RM",
        entity_id=rm.id,
        tenant_id=rm.tenant_id,
        action="FULFILL_FROM_STOCK",
        from_state=current.value,
        to_state=RequisitionStatus.IN_FULFILLMENT.value,
        details=f"Transfer {transfer.id} created from warehouse {origin.id}",
    )
