from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

from stockscope.authz.permissions import ROLE_PERMISSIONS, Permission, Role, parse_role_table
from stockscope.authz.resolver import PermissionResolver


class SecurityConfigError(ValueError):
    """Raised when the security YAML is missing or invalid."""


class AuthConfig(BaseModel):
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class PublicRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    def normalized_methods(self) -> set[str]:
        return {m.upper() for m in self.methods}


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    public: list[PublicRule] = Field(default_factory=list)
    # Optional override of the built-in role -> permission table.
    roles: dict[str, list[str]] | None = None


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # Convert "/transfers/{id}" -> r"^/transfers/[^/]+$"
    regex = re.sub(r"\{[^/]+\}", r"[^/]+", path_template)
    return re.compile(rf"^{regex}$")


class SecurityConfig:
    """
    Runtime helper around the validated config: public-route matching and the
    resolver built from the effective role table.
    """

    def __init__(self, model: SecurityConfigModel):
        self.model = model
        self._public = [(_path_template_to_regex(r.path), r.normalized_methods()) for r in model.public]

        if model.roles is None:
            self.role_table: Mapping[Role, frozenset[Permission]] = ROLE_PERMISSIONS
        else:
            self.role_table = parse_role_table(model.roles)
        self.resolver = PermissionResolver(self.role_table)

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def is_public(self, path: str, method: str) -> bool:
        method = method.upper()
        return any(method in methods and regex.match(path) for regex, methods in self._public)


def build_security_config(raw: Mapping[str, Any]) -> SecurityConfig:
    if "security" not in raw:
        raise SecurityConfigError("Missing top-level 'security' key in config")
    try:
        model = SecurityConfigModel.model_validate(raw["security"] or {})
    except ValidationError as exc:
        raise SecurityConfigError(f"Invalid security config: {exc}") from exc
    return SecurityConfig(model)


def load_security_config(path: Path) -> SecurityConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}
    return build_security_config(raw)
