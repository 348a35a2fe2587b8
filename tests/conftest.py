"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other. API tests reuse that
session through a `get_db` override.
"""
from __future__ import annotations

import pytest
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from stockscope.db.base import Base
    from stockscope.models import inventory, org, security  # noqa: F401  (register tables)

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    The transaction is rolled back so the next test gets a clean state.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def seeded(db_session):
    """Demo organization from stockscope.db.init_db (users u1-u6 in t1, u9 in t2)."""
    from stockscope.db.init_db import seed_demo_data

    seed_demo_data(db_session)
    return db_session


@pytest.fixture
def client(seeded):
    """TestClient over the real app, sharing the seeded session. Lifespan is not run."""
    from fastapi.testclient import TestClient

    from stockscope.db.session import attach_authz, get_db
    from stockscope.main import create_app
    from stockscope.security.config import build_security_config

    app = create_app()
    app.state.security_config = build_security_config(
        {"security": {"public": [{"path": "/health", "methods": ["GET"]}]}}
    )

    def _get_db(request: Request):
        attach_authz(seeded, request)
        yield seeded

    app.dependency_overrides[get_db] = _get_db
    return TestClient(app)
