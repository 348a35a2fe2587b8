"""
Transfer workflow: create, dispatch, receive and cancel.

    (new) -> CREATED -> SEPARATED -> IN_TRANSIT -> RECEIVED | DIVERGENCE -> DONE
    CREATED | SEPARATED -> CANCELED

Each entry point runs every state, permission and validation check before it
touches the transfer. A rejected action leaves the transfer exactly as it was.
"""

from __future__ import annotations

from datetime import datetime
import logging
import math
import uuid
from typing import Iterable, Mapping

from stockscope.authz.derivation import scope_from_transfer
from stockscope.authz.permissions import Permission
from stockscope.authz.resolver import PermissionResolver, RoleAssignment, get_resolver
from stockscope.authz.scope import Scope, require_scope
from stockscope.errors import TransitionConflict, ValidationFailed
from stockscope.models.enums import MovementType, TransferStatus
from stockscope.models.inventory import Transfer, TransferItem
from stockscope.models.org import Warehouse
from stockscope.workflow.transitions import StockMovement, Transition

logger = logging.getLogger(__name__)

MIN_JUSTIFICATION_LENGTH = 10


def _require_state(transfer: Transfer, *allowed: TransferStatus) -> TransferStatus:
    current = TransferStatus(transfer.status)
    if current not in allowed:
        expected = " or ".join(s.value for s in allowed)
        raise TransitionConflict(f"Transfer {transfer.id} is {current.value}; expected {expected}")
    return current


def new_transfer_id() -> str:
    return f"TR-{uuid.uuid4().hex[:8].upper()}"


def validate_requested_quantities(quantities: Mapping[str, float]) -> None:
    """Requested quantities are keyed by material id and must be finite and positive."""

    if not quantities:
        raise ValidationFailed("A transfer needs at least one item")
    not_finite = sorted(m for m, qty in quantities.items() if not math.isfinite(qty))
    if not_finite:
        raise ValidationFailed(f"Requested quantity must be a finite number for materials: {not_finite}")
    not_positive = sorted(m for m, qty in quantities.items() if qty <= 0)
    if not_positive:
        raise ValidationFailed(f"Requested quantity must be positive for materials: {not_positive}")


def _require_tenant_warehouse(warehouse: Warehouse, tenant_id: str) -> None:
    if warehouse.unit is None or warehouse.unit.tenant_id != tenant_id:
        raise ValidationFailed(f"Warehouse {warehouse.id} does not belong to tenant {tenant_id}")


def build_transfer(
    transfer_id: str,
    tenant_id: str,
    origin: Warehouse,
    destination_warehouse_id: str,
    quantities: Mapping[str, float],
    *,
    requisition_id: str | None = None,
) -> Transfer:
    """
    Validate and assemble a CREATED transfer. No permission check here; callers
    gate it with TRANSFER_CREATE or RM_FULFILL_FROM_STOCK.
    """

    _require_tenant_warehouse(origin, tenant_id)
    if origin.id == destination_warehouse_id:
        raise ValidationFailed("Origin and destination warehouses must differ")
    validate_requested_quantities(quantities)

    return Transfer(
        id=transfer_id,
        tenant_id=tenant_id,
        origin_warehouse_id=origin.id,
        destination_warehouse_id=destination_warehouse_id,
        requisition_id=requisition_id,
        status=TransferStatus.CREATED,
        items=[
            TransferItem(
                id=f"{transfer_id}-{n}",
                material_id=material_id,
                quantity_requested=qty,
                quantity_sent=qty,
                quantity_received=0,
            )
            for n, (material_id, qty) in enumerate(sorted(quantities.items()), start=1)
        ],
    )


def create_transfer(
    tenant_id: str,
    origin: Warehouse,
    destination: Warehouse,
    quantities: Mapping[str, float],
    assignments: Iterable[RoleAssignment],
    *,
    transfer_id: str | None = None,
    resolver: PermissionResolver | None = None,
) -> tuple[Transfer, Transition]:
    """
    Open a transfer between two warehouses of the same tenant.

    Requires TRANSFER_CREATE tenant-wide, the same scope every later transfer
    action is checked against.
    """

    resolver = resolver or get_resolver()
    scope = require_scope(Scope(tenant_id=tenant_id))
    resolver.require_permission(Permission.TRANSFER_CREATE, scope, assignments)
    _require_tenant_warehouse(destination, tenant_id)

    transfer = build_transfer(transfer_id or new_transfer_id(), tenant_id, origin, destination.id, quantities)
    logger.info("Transfer %s created: %s -> %s", transfer.id, origin.id, destination.id)
    return transfer, Transition(
        entity_type="TRANSFER",
        entity_id=transfer.id,
        tenant_id=tenant_id,
        action="CREATE",
        from_state="NEW",
        to_state=TransferStatus.CREATED.value,
        details=f"Created from warehouse {origin.id} to {destination.id} ({len(transfer.items)} items)",
    )


def dispatch_transfer(
    transfer: Transfer,
    assignments: Iterable[RoleAssignment],
    *,
    resolver: PermissionResolver | None = None,
) -> Transition:
    """Send a CREATED transfer on its way. Requires TRANSFER_DISPATCH."""

    resolver = resolver or get_resolver()
    current = _require_state(transfer, TransferStatus.CREATED)
    resolver.require_permission(Permission.TRANSFER_DISPATCH, scope_from_transfer(transfer), assignments)

    transfer.status = TransferStatus.IN_TRANSIT
    transfer.dispatched_at = datetime.utcnow()

    movements = tuple(
        StockMovement(
            warehouse_id=transfer.origin_warehouse_id,
            material_id=item.material_id,
            type=MovementType.TRANSFER_OUT,
            quantity=item.quantity_sent,
            description=f"Dispatch of transfer {transfer.id}",
        )
        for item in transfer.items
    )
    logger.info("Transfer %s dispatched (%d items)", transfer.id, len(movements))
    return Transition(
        entity_type="TRANSFER",
        entity_id=transfer.id,
        tenant_id=transfer.tenant_id,
        action="DISPATCH",
        from_state=current.value,
        to_state=TransferStatus.IN_TRANSIT.value,
        details=f"Dispatched from warehouse {transfer.origin_warehouse_id}",
        movements=movements,
    )


def find_divergent_items(transfer: Transfer, received_quantities: Mapping[str, float]) -> list[str]:
    """Ids of items whose received quantity differs from the quantity sent."""
    return [item.id for item in transfer.items if received_quantities.get(item.id) != item.quantity_sent]


def _validate_quantities(transfer: Transfer, received_quantities: Mapping[str, float]) -> None:
    item_ids = {item.id for item in transfer.items}
    unknown = sorted(set(received_quantities) - item_ids)
    if unknown:
        raise ValidationFailed(f"Unknown transfer items: {unknown}")
    missing = sorted(item_ids - set(received_quantities))
    if missing:
        raise ValidationFailed(f"Received quantity is required for items: {missing}")
    not_finite = sorted(item_id for item_id, qty in received_quantities.items() if not math.isfinite(qty))
    if not_finite:
        raise ValidationFailed(f"Received quantity must be a finite number for items: {not_finite}")
    negative = sorted(item_id for item_id, qty in received_quantities.items() if qty < 0)
    if negative:
        raise ValidationFailed(f"Received quantity cannot be negative for items: {negative}")


def receive_transfer(
    transfer: Transfer,
    received_quantities: Mapping[str, float],
    justification: str | None,
    assignments: Iterable[RoleAssignment],
    *,
    resolver: PermissionResolver | None = None,
) -> Transition:
    """
    Record what arrived at the destination.

    A receipt where any item's received quantity differs from what was sent is
    divergent: it also needs TRANSFER_REPORT_DIVERGENCE (checked first) and a
    justification of at least MIN_JUSTIFICATION_LENGTH characters.
    """

    resolver = resolver or get_resolver()
    assignments = list(assignments)
    scope = scope_from_transfer(transfer)

    current = _require_state(transfer, TransferStatus.IN_TRANSIT)
    resolver.require_permission(Permission.TRANSFER_RECEIVE, scope, assignments)
    _validate_quantities(transfer, received_quantities)

    divergent = find_divergent_items(transfer, received_quantities)
    note = (justification or "").strip()
    if divergent:
        resolver.require_permission(Permission.TRANSFER_REPORT_DIVERGENCE, scope, assignments)
        if len(note) < MIN_JUSTIFICATION_LENGTH:
            raise ValidationFailed(
                f"A justification of at least {MIN_JUSTIFICATION_LENGTH} characters is required for divergent receipts"
            )

    new_state = TransferStatus.DIVERGENCE if divergent else TransferStatus.RECEIVED
    movements: list[StockMovement] = []
    for item in transfer.items:
        item.quantity_received = received_quantities[item.id]
        movements.append(
            StockMovement(
                warehouse_id=transfer.destination_warehouse_id,
                material_id=item.material_id,
                type=MovementType.TRANSFER_IN,
                quantity=item.quantity_received,
                description=f"Receipt of transfer {transfer.id}",
            )
        )
    transfer.status = new_state
    transfer.received_at = datetime.utcnow()

    if divergent:
        transfer.justification = note
        logger.info("Transfer %s received with divergence on items %s", transfer.id, divergent)
        details = f"Divergence on {len(divergent)} item(s): {note}"
    else:
        logger.info("Transfer %s received", transfer.id)
        details = "Received as sent"

    return Transition(
        entity_type="TRANSFER",
        entity_id=transfer.id,
        tenant_id=transfer.tenant_id,
        action="RECEIVE",
        from_state=current.value,
        to_state=new_state.value,
        details=details,
        movements=tuple(movements),
    )


def cancel_transfer(
    transfer: Transfer,
    assignments: Iterable[RoleAssignment],
    *,
    resolver: PermissionResolver | None = None,
) -> Transition:
    """Cancel a transfer that has not left its origin yet. Requires TRANSFER_CREATE."""

    resolver = resolver or get_resolver()
    current = _require_state(transfer, TransferStatus.CREATED, TransferStatus.SEPARATED)
    resolver.require_permission(Permission.TRANSFER_CREATE, scope_from_transfer(transfer), assignments)

    transfer.status = TransferStatus.CANCELED
    logger.info("Transfer %s canceled", transfer.id)
    return Transition(
        entity_type="TRANSFER",
        entity_id=transfer.id,
        tenant_id=transfer.tenant_id,
        action="CANCEL",
        from_state=current.value,
        to_state=TransferStatus.CANCELED.value,
    )
