from __future__ import annotations

import logging

APP_LOGGER = "stockscope"
AUTHZ_LOGGER = "stockscope.authz"


def configure_app_logging(level: str = "INFO", authz_level: str | None = None) -> None:
    """
    Set levels for the stockscope loggers; handlers stay with uvicorn.

    Transitions, conflicts and rejected requests log under `stockscope` at
    INFO/WARNING. Every resolver decision logs under `stockscope.authz` at
    DEBUG, so `authz_level="DEBUG"` traces authorization without turning on
    DEBUG for the data layer.
    """

    logging.getLogger(APP_LOGGER).setLevel(level.upper())
    logging.getLogger(AUTHZ_LOGGER).setLevel((authz_level or level).upper())
