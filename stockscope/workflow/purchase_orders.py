from __future__ import annotations

import logging
from typing import Iterable

from stockscope.authz.derivation import scope_from_po
from stockscope.authz.permissions import Permission
from stockscope.authz.resolver import PermissionResolver, RoleAssignment, get_resolver
from stockscope.errors import TransitionConflict, ValidationFailed
from stockscope.models.enums import PurchaseOrderStatus
from stockscope.models.inventory import PurchaseOrder
from stockscope.workflow.transitions import Transition

logger = logging.getLogger(__name__)

OPEN_STATES = frozenset({PurchaseOrderStatus.OPEN, PurchaseOrderStatus.PARTIAL})
FINAL_STATES = frozenset({PurchaseOrderStatus.CLOSED, PurchaseOrderStatus.CANCELED})


def close_purchase_order(
    po: PurchaseOrder,
    status: PurchaseOrderStatus | str,
    assignments: Iterable[RoleAssignment],
    *,
    resolver: PermissionResolver | None = None,
) -> Transition:
    """Close or cancel an open purchase order. Requires PO_CLOSE at the order's unit."""

    resolver = resolver or get_resolver()
    try:
        target = PurchaseOrderStatus(status)
    except ValueError as exc:
        raise ValidationFailed(f"Unknown purchase order status {status!r}") from exc
    if target not in FINAL_STATES:
        raise ValidationFailed(f"A purchase order can only be closed as CLOSED or CANCELED, not {target.value}")

    current = PurchaseOrderStatus(po.status)
    if current not in OPEN_STATES:
        raise TransitionConflict(f"Purchase order {po.id} is already {current.value}")

    resolver.require_permission(Permission.PO_CLOSE, scope_from_po(po), assignments)

    po.status = target
    logger.info("Purchase order %s: %s -> %s", po.id, current.value, target.value)
    return Transition(
        entity_type="PO",
        entity_id=po.id,
        tenant_id=po.tenant_id,
        action="CLOSE" if target is PurchaseOrderStatus.CLOSED else "CANCEL",
        from_state=current.value,
        to_state=target.value,
    )
