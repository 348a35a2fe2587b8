from __future__ import annotations

from fastapi import APIRouter, Depends

from stockscope.authz.resolver import PermissionResolver
from stockscope.models.security import User
from stockscope.schemas.security import MeOut, RoleAssignmentOut, ScopeOut
from stockscope.security.context import AuthzContext
from stockscope.security.dependencies import get_authz, get_current_user, get_resolver

router = APIRouter(tags=["users"])


@router.get("/me", response_model=MeOut)
def me(
    user: User = Depends(get_current_user),
    authz: AuthzContext = Depends(get_authz),
    resolver: PermissionResolver = Depends(get_resolver),
) -> MeOut:
    assignments = [
        RoleAssignmentOut(
            role=a.role.value,
            scope=ScopeOut.model_validate(a.scope),
            custom_permissions=sorted(p.value for p in a.custom_permissions),
            permissions=sorted(p.value for p in resolver.granted_permissions(a)),
        )
        for a in authz.assignments
    ]
    return MeOut(id=user.id, name=user.name, email=user.email, is_active=user.is_active, assignments=assignments)
