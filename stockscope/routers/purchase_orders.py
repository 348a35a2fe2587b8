from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockscope.authz.permissions import Permission
from stockscope.authz.resolver import PermissionResolver
from stockscope.authz.scope import Scope
from stockscope.db import repository
from stockscope.db.session import get_db
from stockscope.models.inventory import PurchaseOrder
from stockscope.schemas.inventory import ClosePurchaseOrderIn, PurchaseOrderOut
from stockscope.security.context import AuthzContext
from stockscope.security.dependencies import get_authz, get_resolver, query_scope
from stockscope.workflow.purchase_orders import close_purchase_order

router = APIRouter(prefix="/purchase-orders", tags=["purchase_orders"])


@router.get("", response_model=list[PurchaseOrderOut])
def list_purchase_orders(
    scope: Scope = Depends(query_scope),
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> list[PurchaseOrder]:
    resolver.require_permission(Permission.PO_VIEW, scope, authz.assignments)
    return repository.list_purchase_orders(db, scope)


@router.post("/{id}/close", response_model=PurchaseOrderOut)
def close(
    id: str,
    body: ClosePurchaseOrderIn,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> PurchaseOrder:
    po = repository.load_purchase_order(db, id)
    transition = close_purchase_order(po, body.status, authz.assignments, resolver=resolver)
    repository.persist_transition(db, po, transition, authz.user_id)
    return po
