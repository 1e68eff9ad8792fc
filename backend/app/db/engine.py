"""Database engine and session factory."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.config import Settings


def database_url_from_settings(settings: Settings) -> str:
    """Configured DATABASE_URL.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    if not settings.database_url:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )
    return settings.database_url


def create_engine_from_settings(settings: Settings) -> Engine:
    """Create SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    return create_engine_from_url(database_url_from_settings(settings))


def create_engine_from_url(database_url: str) -> Engine:
    """Create a sync engine, sharing one connection for in-memory SQLite."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(database_url, pool_pre_ping=True, echo=False)


def create_lock_engine(settings: Settings) -> Engine:
    """Engine whose pool only serves advisory-lock sessions.

    A lock holder keeps its connection for the whole admission while the
    stores check out their own, so the two never share a pool. Checkout waits
    at most the admission lock timeout.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    return create_engine(
        database_url_from_settings(settings),
        pool_pre_ping=True,
        pool_size=settings.admission_lock_pool_size,
        max_overflow=0,
        pool_timeout=settings.admission_lock_timeout_seconds,
        echo=False,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create sessionmaker for creating database sessions.

    Args:
        engine: SQLAlchemy engine

    Returns:
        Sessionmaker bound to the engine
    """
    return sessionmaker(bind=engine, expire_on_commit=False)
