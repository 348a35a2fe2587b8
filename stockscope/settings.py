from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Checkout root: holds config/ and the default SQLite file.
PROJECT_ROOT = Path(__file__).resolve().parents[1]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Runtime settings of the stockscope API, read from `STOCKSCOPE_*` env vars.

    - db_url: SQLAlchemy URL; unset means `stockscope.db` at the project root.
    - security_config_path: YAML with public routes and role table overrides;
      unset means `config/security_config.yaml`.
    - log_level: level of the `stockscope` logger tree (workflow transitions log at INFO).
    - authz_log_level: separate level for `stockscope.authz`, whose allow/deny
      decisions log at DEBUG; unset follows log_level.
    - seed_demo_data: seed the two demo tenants into an empty database at startup.
    """

    model_config = SettingsConfigDict(env_prefix="STOCKSCOPE_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"
    authz_log_level: str | None = None
    seed_demo_data: bool = True

    @field_validator("log_level", "authz_log_level")
    @classmethod
    def _known_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level

    def resolved_db_url(self) -> str:
        return self.db_url or f"sqlite:///{PROJECT_ROOT / 'stockscope.db'}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)
        return PROJECT_ROOT / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
