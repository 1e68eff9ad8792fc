"""Service wiring - builds stores, locks and controllers from settings."""

import logging
from dataclasses import dataclass

import redis
from sqlalchemy import Engine

from backend.app.audit import AuditSink, LoggingAuditSink
from backend.app.config import Settings
from backend.app.db.engine import (
    create_engine_from_settings,
    create_lock_engine,
    create_session_factory,
)
from backend.app.db.inmemory import InMemoryReservationStore, InMemoryScopedStore, InMemoryTenantStore
from backend.app.db.repositories import ReservationStore, ScopedStore, TenantStore
from backend.app.db.sql_repositories import SqlReservationStore, SqlScopedStore, SqlTenantStore
from backend.app.reservations.capacity import CapacityAdmissionController
from backend.app.reservations.locks import (
    InProcessKeyedLock,
    KeyedLock,
    PostgresAdvisoryLock,
    RedisKeyedLock,
)
from backend.app.reservations.settings import ReservationSettingsService
from backend.app.tenancy.authorizer import RoleAuthorizer
from backend.app.tenancy.gate import RequestGate
from backend.app.tenancy.resolver import TenantContextResolver
from backend.app.tenancy.roles import RoleHierarchy
from backend.app.utils.metrics import PrometheusAdmissionMetrics

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide service graph shared by all requests."""

    tenants: TenantStore
    reservations: ReservationStore
    scoped: ScopedStore
    gate: RequestGate
    admission: CapacityAdmissionController
    reservation_settings: ReservationSettingsService
    audit: AuditSink
    engine: Engine | None = None


def build_services(
    settings: Settings,
    *,
    tenants: TenantStore | None = None,
    reservations: ReservationStore | None = None,
    scoped: ScopedStore | None = None,
    lock: KeyedLock | None = None,
    audit: AuditSink | None = None,
) -> Services:
    """Build the service graph.

    Explicit stores, lock or audit sink take precedence over the configured
    backends, which is how tests plug in their own.

    Raises:
        ValueError: Backend configured without its connection setting
    """
    engine: Engine | None = None
    if settings.storage_backend == "sql" or settings.lock_backend == "postgres":
        engine = create_engine_from_settings(settings)

    if settings.storage_backend == "sql" and engine is not None:
        session_factory = create_session_factory(engine)
        tenants = tenants or SqlTenantStore(session_factory)
        reservations = reservations or SqlReservationStore(session_factory)
        scoped = scoped or SqlScopedStore(session_factory)
    else:
        tenants = tenants or InMemoryTenantStore()
        reservations = reservations or InMemoryReservationStore()
        scoped = scoped or InMemoryScopedStore()

    if lock is None:
        lock = _build_lock(settings)

    audit = audit or LoggingAuditSink()
    metrics = PrometheusAdmissionMetrics()
    authorizer = RoleAuthorizer(hierarchy=RoleHierarchy(settings.role_hierarchy))
    gate = RequestGate(
        TenantContextResolver(tenants), authorizer, scoped, audit=audit, metrics=metrics
    )
    admission = CapacityAdmissionController(
        tenants,
        reservations,
        lock,
        gate,
        audit=audit,
        metrics=metrics,
        lock_timeout=settings.admission_lock_timeout_seconds,
        near_capacity_ratio=settings.near_capacity_ratio,
        max_range_days=settings.max_capacity_range_days,
    )

    logger.info(
        "Services built",
        extra={
            "structured": {
                "storage_backend": settings.storage_backend,
                "lock_backend": settings.lock_backend,
            }
        },
    )
    return Services(
        tenants=tenants,
        reservations=reservations,
        scoped=scoped,
        gate=gate,
        admission=admission,
        reservation_settings=ReservationSettingsService(tenants, gate),
        audit=audit,
        engine=engine,
    )


def _build_lock(settings: Settings) -> KeyedLock:
    if settings.lock_backend == "redis":
        if not settings.redis_url:
            raise ValueError("REDIS_URL must be set when LOCK_BACKEND=redis")
        client = redis.from_url(settings.redis_url)  # type: ignore[no-untyped-call]
        return RedisKeyedLock(client, lease_seconds=settings.admission_lock_lease_seconds)
    if settings.lock_backend == "postgres":
        return PostgresAdvisoryLock(create_lock_engine(settings))
    return InProcessKeyedLock()
