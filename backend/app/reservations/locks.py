"""Keyed mutual exclusion for the admission read-decide-write unit.

All implementations share one contract: ``hold(key, timeout)`` blocks for at
most ``timeout`` seconds, raises ``AdmissionBusy`` if the key stays taken, and
never makes holders of different keys wait for one another.
"""

import hashlib
import logging
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import ContextManager, Protocol

import redis
from sqlalchemy import Engine, exc, text

from backend.app.errors import AdmissionBusy

logger = logging.getLogger(__name__)


class KeyedLock(Protocol):
    """Mutual exclusion per string key with bounded wait."""

    def hold(self, key: str, timeout: float) -> ContextManager[None]:
        """Hold ``key`` for the duration of the ``with`` block.

        Raises:
            AdmissionBusy: Key not acquired within ``timeout`` seconds
        """
        ...


class InProcessKeyedLock:
    """Per-key ``threading.Lock`` for a single-instance deployment.

    Entries are reference counted and dropped once no thread holds or waits
    on them.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: str, timeout: float) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=max(timeout, 0)):
                raise AdmissionBusy(f"timed out waiting for {key}", key=key)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)

    def active_keys(self) -> int:
        """Number of keys currently held or waited on."""
        with self._registry_lock:
            return len(self._locks)

    def _checkout(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _checkin(self, key: str) -> None:
        with self._registry_lock:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)


class RedisKeyedLock:
    """Distributed lock backed by redis-py's ``Lock``.

    The lease bounds how long a crashed holder can keep a key.
    """

    def __init__(
        self, client: redis.Redis, lease_seconds: float = 30.0, prefix: str = "lock:"
    ) -> None:
        self._client = client
        self._lease_seconds = lease_seconds
        self._prefix = prefix

    @contextmanager
    def hold(self, key: str, timeout: float) -> Iterator[None]:
        lock = self._client.lock(
            f"{self._prefix}{key}",
            timeout=self._lease_seconds,
            blocking_timeout=max(timeout, 0),
        )
        if not lock.acquire(blocking=True):
            raise AdmissionBusy(f"timed out waiting for {key}", key=key)
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                logger.warning(f"Admission lock {key} expired before release")


class PostgresAdvisoryLock:
    """Session-level PostgreSQL advisory lock on a dedicated connection.

    ``engine`` must not be the one the stores use: each holder keeps a
    connection checked out until release. Exhausting its pool counts as the
    key being busy.
    """

    def __init__(self, engine: Engine, poll_interval: float = 0.05) -> None:
        self._engine = engine
        self._poll_interval = poll_interval

    @staticmethod
    def lock_id(key: str) -> int:
        """Stable signed 64-bit id for ``key``."""
        digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big", signed=True)

    @contextmanager
    def hold(self, key: str, timeout: float) -> Iterator[None]:
        lock_id = self.lock_id(key)
        deadline = time.monotonic() + max(timeout, 0)
        try:
            conn = self._engine.connect()
        except exc.TimeoutError:
            raise AdmissionBusy(f"no lock connection free for {key}", key=key) from None
        with conn:
            while not conn.execute(
                text("SELECT pg_try_advisory_lock(:id)"), {"id": lock_id}
            ).scalar():
                conn.rollback()
                if time.monotonic() >= deadline:
                    raise AdmissionBusy(f"timed out waiting for {key}", key=key)
                time.sleep(self._poll_interval)
            conn.commit()
            try:
                yield
            finally:
                conn.execute(text("SELECT pg_advisory_unlock(:id)"), {"id": lock_id})
                conn.commit()


def admission_key(tenant_id: uuid.UUID, on: date) -> str:
    """Lock key serializing admission and cancellation for one tenant and day."""
    return f"admission:{tenant_id}:{on.isoformat()}"
