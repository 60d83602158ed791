"""Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database with foreign keys enforced,
so services that commit (``GrantAdministration``) cannot leak state between
tests.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from menugate.api.deps import get_db
from menugate.api.main import app
from menugate.db.base import Base
from menugate.db.seed import seed_defaults
from menugate.db.session import enable_sqlite_foreign_keys

from tests import factories


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    """Fresh in-memory database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def role_factory(db_session):
    def _create(**kwargs):
        return factories.create_role(db_session, **kwargs)
    return _create


@pytest.fixture
def module_factory(db_session):
    def _create(**kwargs):
        return factories.create_module(db_session, **kwargs)
    return _create


@pytest.fixture
def menu_factory(db_session):
    def _create(**kwargs):
        return factories.create_menu_item(db_session, **kwargs)
    return _create


@pytest.fixture
def module_grant_factory(db_session):
    def _create(**kwargs):
        return factories.grant_module(db_session, **kwargs)
    return _create


@pytest.fixture
def menu_grant_factory(db_session):
    def _create(**kwargs):
        return factories.grant_menu(db_session, **kwargs)
    return _create


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@pytest.fixture
def client(session_factory):
    """TestClient whose requests each open their own session on the test database."""

    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_roles(db_session):
    """Administration module plus the Super Admin and Access Auditor roles."""
    return seed_defaults(db_session)


@pytest.fixture
def admin_headers(seeded_roles):
    return {"X-User-ID": "admin@example.com", "X-Role-ID": str(seeded_roles["super_admin"].id)}


@pytest.fixture
def auditor_headers(seeded_roles):
    return {"X-User-ID": "auditor@example.com", "X-Role-ID": str(seeded_roles["access_auditor"].id)}
