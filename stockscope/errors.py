"""
Error taxonomy shared by the authorization engine and the workflows.

Every error carries an HTTP-ish ``status_code`` and a stable ``code`` so the
FastAPI exception handler in ``stockscope.main`` can turn it into a response
without knowing about individual subclasses. None of these are transient:
callers should surface them, never retry.
"""

from __future__ import annotations

from typing import Any


class StockscopeError(Exception):
    """Base class for business errors raised at the workflow boundary."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class InvalidScope(StockscopeError):
    """Target scope has no tenant. Always a caller bug."""

    status_code = 400
    code = "invalid_scope"


class PermissionDenied(StockscopeError):
    status_code = 403
    code = "permission_denied"

    def __init__(self, permission: str, scope: object | None = None, message: str | None = None) -> None:
        super().__init__(message or f"Permission {permission} is not granted for this scope")
        self.permission = permission
        self.scope = scope

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["permission"] = self.permission
        return data


class ValidationFailed(StockscopeError):
    """Business-rule violation (e.g. divergence justification too short)."""

    status_code = 422
    code = "validation_failed"


class TransitionConflict(StockscopeError):
    """Entity is not in the source state the action requires, or was changed concurrently."""

    status_code = 409
    code = "transition_conflict"


class EntityNotFound(StockscopeError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type} {entity_id!r} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id
