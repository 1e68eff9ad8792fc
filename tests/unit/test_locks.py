"""Tests for keyed admission locks."""

import threading
import time
import uuid
from datetime import date

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import QueuePool

from backend.app.config import Settings
from backend.app.db.engine import create_lock_engine
from backend.app.errors import AdmissionBusy
from backend.app.reservations.locks import (
    InProcessKeyedLock,
    PostgresAdvisoryLock,
    RedisKeyedLock,
    admission_key,
)


def test_admission_key_format() -> None:
    tenant_id = uuid.UUID("11111111-1111-1111-1111-111111111111")

    assert (
        admission_key(tenant_id, date(2026, 6, 1))
        == "admission:11111111-1111-1111-1111-111111111111:2026-06-01"
    )


class TestInProcessKeyedLock:
    def test_same_key_times_out(self) -> None:
        lock = InProcessKeyedLock()
        held = threading.Event()
        release = threading.Event()

        def holder() -> None:
            with lock.hold("k", timeout=1):
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(5)
        try:
            started = time.monotonic()
            with pytest.raises(AdmissionBusy):
                with lock.hold("k", timeout=0.1):
                    pass
            assert time.monotonic() - started < 2
        finally:
            release.set()
            thread.join()

    def test_different_keys_do_not_block(self) -> None:
        lock = InProcessKeyedLock()

        with lock.hold("a", timeout=0.1):
            with lock.hold("b", timeout=0.1):
                assert lock.active_keys() == 2

    def test_entries_are_reclaimed(self) -> None:
        lock = InProcessKeyedLock()

        with lock.hold("a", timeout=0.1):
            pass
        with pytest.raises(RuntimeError):
            with lock.hold("b", timeout=0.1):
                raise RuntimeError("boom")

        assert lock.active_keys() == 0

    def test_key_is_reusable_after_release(self) -> None:
        lock = InProcessKeyedLock()

        with lock.hold("k", timeout=0.1):
            pass
        with lock.hold("k", timeout=0.1):
            pass


class TestRedisKeyedLock:
    @pytest.fixture
    def client(self) -> fakeredis.FakeRedis:
        return fakeredis.FakeRedis()

    def test_hold_and_release(self, client: fakeredis.FakeRedis) -> None:
        lock = RedisKeyedLock(client)

        with lock.hold("admission:t:2026-06-01", timeout=0.5):
            assert client.exists("lock:admission:t:2026-06-01")

        assert not client.exists("lock:admission:t:2026-06-01")

    def test_contended_key_times_out(self, client: fakeredis.FakeRedis) -> None:
        first = RedisKeyedLock(client)
        second = RedisKeyedLock(client)

        with first.hold("k", timeout=0.5):
            with pytest.raises(AdmissionBusy):
                with second.hold("k", timeout=0.1):
                    pass

    def test_different_keys_do_not_block(self, client: fakeredis.FakeRedis) -> None:
        lock = RedisKeyedLock(client)

        with lock.hold("a", timeout=0.1):
            with lock.hold("b", timeout=0.1):
                pass


def test_postgres_lock_id_is_stable_signed_64_bit() -> None:
    lock_id = PostgresAdvisoryLock.lock_id("admission:t:2026-06-01")

    assert lock_id == PostgresAdvisoryLock.lock_id("admission:t:2026-06-01")
    assert lock_id != PostgresAdvisoryLock.lock_id("admission:t:2026-06-02")
    assert -(2**63) <= lock_id < 2**63


def test_postgres_lock_reports_exhausted_pool_as_busy() -> None:
    engine = create_engine(
        "sqlite://", poolclass=QueuePool, pool_size=1, max_overflow=0, pool_timeout=0.1
    )
    lock = PostgresAdvisoryLock(engine)

    try:
        with engine.connect():
            with pytest.raises(AdmissionBusy, match="no lock connection"):
                with lock.hold("admission:t:2026-06-01", timeout=1):
                    pass
    finally:
        engine.dispose()


def test_lock_engine_pool_is_bounded_by_settings() -> None:
    engine = create_lock_engine(
        Settings(
            database_url="sqlite:///locks.db",
            admission_lock_pool_size=3,
            admission_lock_timeout_seconds=2,
        )
    )

    try:
        assert engine.pool.size() == 3
        assert engine.pool._max_overflow == 0
        assert engine.pool._timeout == 2
    finally:
        engine.dispose()


def test_lock_engine_requires_database_url() -> None:
    with pytest.raises(ValueError, match="DATABASE_URL must be set"):
        create_lock_engine(Settings(database_url=None))
