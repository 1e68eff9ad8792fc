"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str | None = None

    # Cache / distributed locks
    redis_url: str | None = None

    # Backends
    storage_backend: Literal["memory", "sql"] = "memory"
    lock_backend: Literal["memory", "redis", "postgres"] = "memory"

    # Admission control
    admission_lock_timeout_seconds: float = 5.0
    admission_lock_lease_seconds: float = 30.0
    # Connections reserved for PostgreSQL advisory-lock holders
    admission_lock_pool_size: int = 10
    near_capacity_ratio: float = 0.8
    max_capacity_range_days: int = 90

    # Roles, lowest privilege first
    role_hierarchy: list[str] = ["STAFF", "ADMIN", "OWNER"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
