"""Shared pytest fixtures for all test suites."""

import os
import uuid
from collections.abc import Callable, Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from backend.app.audit import InMemoryAuditSink
from backend.app.config import Settings
from backend.app.db.context import Principal
from backend.app.db.engine import create_engine_from_url, create_session_factory
from backend.app.db.inmemory import InMemoryReservationStore, InMemoryScopedStore, InMemoryTenantStore
from backend.app.db.models import Base
from backend.app.db.repositories import ReservationSettingsRecord, TenantRecord
from backend.app.reservations.locks import InProcessKeyedLock
from backend.app.services import Services, build_services
from backend.app.tenancy.roles import Role


@pytest.fixture
def audit() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def services(audit: InMemoryAuditSink) -> Services:
    """In-memory service graph with a recording audit sink."""
    return build_services(
        Settings(storage_backend="memory", lock_backend="memory", admission_lock_timeout_seconds=2.0),
        tenants=InMemoryTenantStore(),
        reservations=InMemoryReservationStore(),
        scoped=InMemoryScopedStore(),
        lock=InProcessKeyedLock(),
        audit=audit,
    )


@pytest.fixture
def make_tenant(services: Services) -> Callable[..., TenantRecord]:
    """Create a tenant, optionally with reservation settings."""

    def _make(slug: str | None = None, **settings: object) -> TenantRecord:
        slug = slug or f"tenant-{uuid.uuid4().hex[:8]}"
        tenant = services.tenants.create_tenant(slug, slug.replace("-", " ").title())
        if settings:
            services.tenants.save_settings(
                ReservationSettingsRecord(tenant_id=tenant.tenant_id, **settings)  # type: ignore[arg-type]
            )
        return tenant

    return _make


@pytest.fixture
def make_staff(services: Services) -> Callable[[TenantRecord, Role], Principal]:
    """Create a principal holding ``role`` in ``tenant``."""

    def _make(tenant: TenantRecord, role: Role) -> Principal:
        principal = Principal(principal_id=uuid.uuid4())
        services.tenants.assign(principal.principal_id, tenant.tenant_id, role)
        return principal

    return _make


@pytest.fixture
def sqlite_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_engine_from_url("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(sqlite_engine)


@pytest.fixture
def postgres_engine() -> Generator[Engine, None, None]:
    """Engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith("postgresql"):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    engine = create_engine(database_url, poolclass=NullPool, echo=False)
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()
