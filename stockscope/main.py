from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from stockscope.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from stockscope.db.init_db import init_db
from stockscope.errors import InvalidScope, StockscopeError
from stockscope.logging_config import configure_app_logging
from stockscope.routers import health, purchase_orders, requisitions, transfers, users
from stockscope.security.config import load_security_config
from stockscope.security.dependencies import enforce_security
from stockscope.settings import get_settings

logger = logging.getLogger(__name__)


async def handle_stockscope_error(request: Request, exc: StockscopeError) -> JSONResponse:
    """
    Workflow boundary: every business error becomes a user-facing message.

    InvalidScope means a caller built a tenant-less scope, so it is logged
    louder than ordinary denials and validation failures.
    """

    level = logging.WARNING if isinstance(exc, InvalidScope) else logging.INFO
    logger.log(level, "Rejected %s %s: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level, settings.authz_log_level)

        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db(seed=settings.seed_demo_data)
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: identifies the caller for every non-public route.
    app = FastAPI(dependencies=[Depends(enforce_security)], lifespan=lifespan)
    app.add_exception_handler(StockscopeError, handle_stockscope_error)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(transfers.router)
    app.include_router(requisitions.router)
    app.include_router(purchase_orders.router)

    return app


app = create_app()
