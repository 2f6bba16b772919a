# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskflow.config import Settings
from taskflow.core.coordinator import AppCoordinator
from taskflow.storage.gateway import PersistenceGateway
from taskflow.tasks.task_store import TaskStore

from .fakes import FakeClock, FakePresenter, FlakyKVStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test temp dir (the real environment is never read)."""
    data_dir = tmp_path / "data"
    return Settings(
        app_name="taskflow-test",
        log_level="DEBUG",
        storage_backend="sqlite",
        storage_quota_bytes=None,
        data_dir=data_dir,
        storage_db_path=data_dir / "storage.sqlite3",
        export_dir=data_dir / "exports",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def kv() -> FlakyKVStore:
    return FlakyKVStore()


@pytest.fixture()
def gateway(kv: FlakyKVStore) -> PersistenceGateway:
    gw = PersistenceGateway(kv)
    assert gw.initialize()
    return gw


@pytest.fixture()
def store(gateway: PersistenceGateway, clock: FakeClock) -> TaskStore:
    """Seeded repository on an in-memory store."""
    s = TaskStore(gateway, clock=clock)
    assert s.initialize()
    return s


@pytest.fixture()
def presenter() -> FakePresenter:
    return FakePresenter()


@pytest.fixture()
def coordinator(store: TaskStore, presenter: FakePresenter, clock: FakeClock) -> AppCoordinator:
    app = AppCoordinator(store, presenter, clock=clock)
    app.initialize()
    return app
