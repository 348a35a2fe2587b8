from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from stockscope.authz.resolver import PermissionResolver
from stockscope.authz.scope import Scope
from stockscope.db.repository import load_role_assignments
from stockscope.db.session import get_db
from stockscope.models.security import User
from stockscope.security.auth import extract_user_id, load_user
from stockscope.security.config import SecurityConfig
from stockscope.security.context import AuthzContext


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_resolver(config: SecurityConfig = Depends(get_security_config)) -> PermissionResolver:
    return config.resolver


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def get_authz(request: Request) -> AuthzContext:
    authz = getattr(request.state, "authz", None)
    if authz is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return authz


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency.

    Identifies the caller and attaches their role assignments to the request.
    It does not decide anything about scopes: each route derives the target
    scope from the entity it touches and asks the resolver.
    """

    if config.is_public(request.url.path, request.method):
        return

    user_id = extract_user_id(request, config)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user id")

    user = load_user(db, user_id)
    request.state.user = user
    request.state.authz = AuthzContext(
        user_id=user.id,
        assignments=tuple(load_role_assignments(db, user.id)),
    )


def query_scope(
    tenant_id: str | None = None,
    unit_id: str | None = None,
    work_id: str | None = None,
    sector_id: str | None = None,
    warehouse_id: str | None = None,
) -> Scope:
    """
    Target scope of a listing, taken from query parameters.

    Passed explicitly to each check; a missing tenant_id surfaces as InvalidScope.
    """

    return Scope(
        tenant_id=tenant_id,
        unit_id=unit_id,
        work_id=work_id,
        sector_id=sector_id,
        warehouse_id=warehouse_id,
    )
