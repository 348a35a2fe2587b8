from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockscope.authz.derivation import scope_from_transfer
from stockscope.authz.permissions import Permission
from stockscope.authz.resolver import PermissionResolver
from stockscope.authz.scope import Scope
from stockscope.db import repository
from stockscope.db.session import get_db
from stockscope.models.inventory import Transfer
from stockscope.schemas.inventory import CreateTransferIn, ReceiveTransferIn, TransferOut
from stockscope.security.context import AuthzContext
from stockscope.security.dependencies import get_authz, get_resolver, query_scope
from stockscope.workflow.transfers import cancel_transfer, create_transfer, dispatch_transfer, receive_transfer

router = APIRouter(prefix="/transfers", tags=["transfers"])


@router.get("", response_model=list[TransferOut])
def list_transfers(
    scope: Scope = Depends(query_scope),
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> list[Transfer]:
    resolver.require_permission(Permission.TRANSFER_RECEIVE, scope, authz.assignments)
    return repository.list_transfers(db, scope)


@router.post("", response_model=TransferOut, status_code=201)
def create(
    body: CreateTransferIn,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Transfer:
    origin = repository.load_warehouse(db, body.origin_warehouse_id)
    destination = repository.load_warehouse(db, body.destination_warehouse_id)
    repository.require_materials(db, body.quantities)
    transfer, transition = create_transfer(
        body.tenant_id,
        origin,
        destination,
        body.quantities,
        authz.assignments,
        resolver=resolver,
    )
    repository.persist_transition(db, transfer, transition, authz.user_id)
    return transfer


@router.get("/{id}", response_model=TransferOut)
def get_transfer(
    id: str,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Transfer:
    transfer = repository.load_transfer(db, id)
    resolver.require_permission(Permission.TRANSFER_RECEIVE, scope_from_transfer(transfer), authz.assignments)
    return transfer


@router.post("/{id}/dispatch", response_model=TransferOut)
def dispatch(
    id: str,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Transfer:
    transfer = repository.load_transfer(db, id)
    transition = dispatch_transfer(transfer, authz.assignments, resolver=resolver)
    repository.persist_transition(db, transfer, transition, authz.user_id)
    return transfer


@router.post("/{id}/receive", response_model=TransferOut)
def receive(
    id: str,
    body: ReceiveTransferIn,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Transfer:
    transfer = repository.load_transfer(db, id)
    transition = receive_transfer(
        transfer,
        body.quantities,
        body.justification,
        authz.assignments,
        resolver=resolver,
    )
    repository.persist_transition(db, transfer, transition, authz.user_id)
    return transfer


@router.post("/{id}/cancel", response_model=TransferOut)
def cancel(
    id: str,
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
) -> Transfer:
    transfer = repository.load_transfer(db, id)
    transition = cancel_transfer(transfer, authz.assignments, resolver=resolver)
    repository.persist_transition(db, transfer, transition, authz.user_id)
    return transfer
