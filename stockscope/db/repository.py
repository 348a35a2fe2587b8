"""
Data-access layer used by the workflows.

- load_* fetch one entity or raise EntityNotFound.
- load_role_assignments turns stored rows into normalized RoleAssignment values.
- persist_transition writes a workflow Transition (new state, stock movements,
  audit entry) in a single commit. A concurrent change to the same entity is
  caught by the version column and reported as TransitionConflict. Stock
  balances are changed with `quantity = quantity + delta` in SQL so concurrent
  transitions touching the same balance both count.
- list_* return entities visible from a scope (warehouse > sector > unit > tenant).
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stockscope.authz.permissions import Permission, Role
from stockscope.authz.resolver import RoleAssignment
from stockscope.authz.scope import Scope, get_scope_unit_id, normalize
from stockscope.errors import EntityNotFound, TransitionConflict
from stockscope.models.inventory import AuditLog, Movement, PurchaseOrder, Requisition, Stock, Transfer
from stockscope.models.org import Material, Sector, Warehouse
from stockscope.models.security import RoleAssignmentRecord
from stockscope.workflow.transitions import StockMovement, Transition

logger = logging.getLogger(__name__)


def load_transfer(db: Session, transfer_id: str) -> Transfer:
    transfer = db.scalars(select(Transfer).where(Transfer.id == transfer_id)).first()
    if transfer is None:
        raise EntityNotFound("Transfer", transfer_id)
    return transfer


def load_requisition(db: Session, requisition_id: str) -> Requisition:
    rm = db.scalars(select(Requisition).where(Requisition.id == requisition_id)).first()
    if rm is None:
        raise EntityNotFound("Requisition", requisition_id)
    return rm


def load_purchase_order(db: Session, po_id: str) -> PurchaseOrder:
    po = db.scalars(select(PurchaseOrder).where(PurchaseOrder.id == po_id)).first()
    if po is None:
        raise EntityNotFound("Purchase order", po_id)
    return po


def to_role_assignment(record: RoleAssignmentRecord) -> RoleAssignment:
    scope = normalize(
        Scope(
            tenant_id=record.tenant_id,
            unit_id=record.unit_id,
            work_id=record.work_id,
            sector_id=record.sector_id,
            warehouse_id=record.warehouse_id,
        )
    )
    return RoleAssignment(
        role=Role(record.role),
        scope=scope,
        custom_permissions=frozenset(Permission(p) for p in (record.custom_permissions or [])),
    )


def load_role_assignments(db: Session, user_id: str) -> list[RoleAssignment]:
    records = db.scalars(
        select(RoleAssignmentRecord).where(RoleAssignmentRecord.user_id == user_id).order_by(RoleAssignmentRecord.id)
    ).all()
    return [to_role_assignment(r) for r in records]


def load_warehouse(db: Session, warehouse_id: str) -> Warehouse:
    warehouse = db.get(Warehouse, warehouse_id)
    if warehouse is None:
        raise EntityNotFound("Warehouse", warehouse_id)
    return warehouse


def require_materials(db: Session, material_ids: Iterable[str]) -> None:
    wanted = set(material_ids)
    found = set(db.scalars(select(Material.id).where(Material.id.in_(wanted))).all())
    missing = sorted(wanted - found)
    if missing:
        raise EntityNotFound("Material", ", ".join(missing))


def _record_movement(db: Session, movement: StockMovement, reference_id: str, actor_id: str | None) -> None:
    db.add(
        Movement(
            warehouse_id=movement.warehouse_id,
            material_id=movement.material_id,
            type=movement.type,
            quantity=movement.quantity,
            user_id=actor_id,
            reference_id=reference_id,
            description=movement.description,
        )
    )


def _stock_deltas(movements: Iterable[StockMovement]) -> dict[tuple[str, str], float]:
    deltas: dict[tuple[str, str], float] = {}
    for movement in movements:
        key = (movement.warehouse_id, movement.material_id)
        signed = movement.quantity if movement.type.is_inbound else -movement.quantity
        deltas[key] = deltas.get(key, 0) + signed
    return deltas


def _apply_stock_delta(db: Session, warehouse_id: str, material_id: str, delta: float) -> None:
    # Balance arithmetic happens in SQL; the copy loaded in this session may be stale.
    result = db.execute(
        update(Stock)
        .where(Stock.warehouse_id == warehouse_id, Stock.material_id == material_id)
        .values(quantity=Stock.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.add(Stock(warehouse_id=warehouse_id, material_id=material_id, quantity=delta, reserved=0))


def persist_transition(
    db: Session,
    entity: object,
    transition: Transition,
    actor_id: str | None,
    *,
    created: Iterable[object] = (),
) -> None:
    """
    Commit ``entity`` (already updated by the workflow) with the transition's side effects.

    ``created`` holds new rows produced by the same transition (the transfer a
    fulfillment generates); they are inserted in the same commit.

    On a version conflict, or when a created row collides with an existing
    one, everything is rolled back and TransitionConflict raised.
    """

    db.add(entity)
    db.add_all(list(created))
    # The version check must only fire inside the commit below.
    with db.no_autoflush:
        for movement in transition.movements:
            _record_movement(db, movement, transition.entity_id, actor_id)
        for (warehouse_id, material_id), delta in _stock_deltas(transition.movements).items():
            _apply_stock_delta(db, warehouse_id, material_id, delta)
    db.add(
        AuditLog(
            tenant_id=transition.tenant_id,
            entity_id=transition.entity_id,
            entity_type=transition.entity_type,
            action=transition.action,
            user_id=actor_id,
            details=transition.details or f"From {transition.from_state} to {transition.to_state}",
        )
    )

    try:
        db.commit()
    except (StaleDataError, IntegrityError) as exc:
        db.rollback()
        logger.warning(
            "Concurrent update of %s %s while applying %s",
            transition.entity_type,
            transition.entity_id,
            transition.action,
        )
        raise TransitionConflict(
            f"{transition.entity_type} {transition.entity_id} was modified concurrently; reload and retry"
        ) from exc

    logger.info(
        "Persisted %s %s: %s -> %s (actor=%s)",
        transition.entity_type,
        transition.entity_id,
        transition.from_state,
        transition.to_state,
        actor_id,
    )


def _warehouse_ids_of_unit(db: Session, unit_id: str) -> list[str]:
    stmt = select(Warehouse.id).where(or_(Warehouse.unit_id == unit_id, Warehouse.work_id == unit_id))
    return list(db.scalars(stmt).all())


def _warehouse_ids_of_sector(db: Session, sector_id: str) -> list[str]:
    stmt = select(Warehouse.id).join(Sector, Warehouse.sector_id == Sector.id).where(Sector.id == sector_id)
    return list(db.scalars(stmt).all())


def list_transfers(db: Session, scope: Scope) -> list[Transfer]:
    """
    Transfers touching the scope's warehouse, else the warehouses of its
    sector, else those of its unit, else the whole tenant.
    """

    stmt = select(Transfer).where(Transfer.tenant_id == scope.tenant_id)
    unit_id = get_scope_unit_id(scope)
    warehouse_ids: list[str] | None = None
    if scope.warehouse_id is not None:
        warehouse_ids = [scope.warehouse_id]
    elif scope.sector_id is not None:
        warehouse_ids = _warehouse_ids_of_sector(db, scope.sector_id)
    elif unit_id is not None:
        warehouse_ids = _warehouse_ids_of_unit(db, unit_id)
    if warehouse_ids is not None:
        stmt = stmt.where(
            or_(
                Transfer.origin_warehouse_id.in_(warehouse_ids),
                Transfer.destination_warehouse_id.in_(warehouse_ids),
            )
        )
    return list(db.scalars(stmt.order_by(Transfer.created_at, Transfer.id)).all())


def list_requisitions(db: Session, scope: Scope) -> list[Requisition]:
    stmt = select(Requisition).where(Requisition.tenant_id == scope.tenant_id)
    unit_id = get_scope_unit_id(scope)
    if unit_id is not None:
        stmt = stmt.where(or_(Requisition.unit_id == unit_id, Requisition.work_id == unit_id))
    if scope.warehouse_id is not None:
        stmt = stmt.where(Requisition.warehouse_id == scope.warehouse_id)
    return list(db.scalars(stmt.order_by(Requisition.created_at, Requisition.id)).all())


def list_purchase_orders(db: Session, scope: Scope) -> list[PurchaseOrder]:
    stmt = select(PurchaseOrder).where(PurchaseOrder.tenant_id == scope.tenant_id)
    unit_id = get_scope_unit_id(scope)
    if unit_id is not None:
        stmt = stmt.where(or_(PurchaseOrder.unit_id == unit_id, PurchaseOrder.work_id == unit_id))
    return list(db.scalars(stmt.order_by(PurchaseOrder.created_at, PurchaseOrder.id)).all())
