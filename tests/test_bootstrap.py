# tests/test_bootstrap.py

from __future__ import annotations

import dataclasses

from taskflow.cli.bootstrap import build_kv_store, create_coordinator
from taskflow.config import Settings
from taskflow.storage.kv_store import MemoryKVStore, SqliteKVStore

from .fakes import FakePresenter


def test_build_kv_store_picks_backend(settings: Settings) -> None:
    assert isinstance(build_kv_store(settings), SqliteKVStore)

    memory = dataclasses.replace(settings, storage_backend="memory", storage_quota_bytes=10)
    assert isinstance(build_kv_store(memory), MemoryKVStore)


def test_create_coordinator_persists_to_sqlite(settings: Settings) -> None:
    presenter = FakePresenter()
    app = create_coordinator(presenter, settings=settings)
    assert settings.export_dir.is_dir()

    app.initialize()
    assert app.add_category("Garden", "#00aa00")
    app.teardown()

    again = FakePresenter()
    reopened = create_coordinator(again, settings=settings)
    reopened.initialize()
    assert "Garden" in [c.name for c in again.last_view.categories]
    reopened.teardown()
