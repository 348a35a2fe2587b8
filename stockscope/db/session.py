from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from stockscope.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def attach_authz(db: Session, request: Request) -> None:
    """Copy the request's authorization context onto the session for the tenant filter."""
    authz = getattr(getattr(request, "state", None), "authz", None)
    if authz is not None:
        db.info["authz"] = authz


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Main DB dependency.

    Queries on tenant-owned models are restricted to the caller's tenants by
    the `do_orm_execute` listener in stockscope/db/filters.py, which reads
    `Session.info["authz"]`.
    """

    db = SessionLocal()
    try:
        attach_authz(db, request)
        yield db
    finally:
        db.close()
