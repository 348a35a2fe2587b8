from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockscope.authz.permissions import Permission
from stockscope.authz.resolver import PermissionResolver
from stockscope.authz.scope import Scope
from stockscope.db import repository
from stockscope.db.session import get_db
from stockscope.models.inventory import Requisition, Transfer
from stockscope.schemas.inventory import FulfillRequisitionIn, RequisitionOut, TransferOut
from stockscope.security.context import AuthzContext
from stockscope.security.dependencies import get_authz, get_resolver, query_scope
from stockscope.workflow.requisitions import approve_requisition, cancel_requisition, fulfill_requisition

router = APIRouter(prefix="/requisitions", tags=["requisitions"])


@router.get("", response_model=list[RequisitionOut])
def list_requisitions(
    scope: Scope = Depends(query_scope),
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> list[Requisition]:
    resolver.require_permission(Permission.RM_VIEW, scope, authz.assignments)
    return repository.list_requisitions(db, scope)


@router.post("/{id}/approve", response_model=RequisitionOut)
def approve(
    id: str,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Requisition:
    rm = repository.load_requisition(db, id)
    transition = approve_requisition(rm, authz.assignments, resolver=resolver)
    repository.persist_transition(db, rm, transition, authz.user_id)
    return rm


@router.post("/{id}/cancel", response_model=RequisitionOut)
def cancel(
    id: str,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Requisition:
    rm = repository.load_requisition(db, id)
    transition = cancel_requisition(rm, authz.assignments, resolver=resolver)
    repository.persist_transition(db, rm, transition, authz.user_id)
    return rm


@router.post("/{id}/fulfill", response_model=TransferOut, status_code=201)
def fulfill(
    id: str,
    body: FulfillRequisitionIn,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Transfer:
    rm = repository.load_requisition(db, id)
    origin = repository.load_warehouse(db, body.origin_warehouse_id)
    repository.require_materials(db, body.quantities)
    transfer, transition = fulfill_requisition(rm, origin, body.quantities, authz.assignments, resolver=resolver)
    repository.persist_transition(db, rm, transition, authz.user_id, created=[transfer])
    return transfer
