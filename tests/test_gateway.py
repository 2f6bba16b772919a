# tests/test_gateway.py

from __future__ import annotations

from pathlib import Path

from taskflow.storage.gateway import PROBE_KEY, PersistenceGateway, Slot
from taskflow.storage.kv_store import MemoryKVStore, SqliteKVStore

from .fakes import UnwritableKVStore


def test_probe_leaves_no_trace_and_slots_round_trip() -> None:
    kv = MemoryKVStore()
    gw = PersistenceGateway(kv)

    assert gw.initialize() is True
    assert gw.is_degraded is False
    assert PROBE_KEY not in kv.keys()

    assert gw.read_slot(Slot.TASKS) is None
    assert gw.write_slot(Slot.TASKS, "[]") is True
    assert gw.read_slot(Slot.TASKS) == "[]"
    assert kv.get_item("taskflow_tasks") == "[]"

    assert gw.remove_slot(Slot.TASKS) is True
    assert gw.read_slot(Slot.TASKS) is None


def test_unwritable_store_degrades_gateway() -> None:
    gw = PersistenceGateway(UnwritableKVStore())

    assert gw.initialize() is False
    assert gw.is_degraded is True
    # degraded: no store calls at all, so nothing raises
    assert gw.read_slot(Slot.SETTINGS) is None
    assert gw.write_slot(Slot.SETTINGS, "{}") is False
    assert gw.remove_slot(Slot.SETTINGS) is False


def test_missing_store_is_degraded_from_the_start() -> None:
    gw = PersistenceGateway(None)
    assert gw.is_degraded is True
    assert gw.initialize() is False
    assert gw.write_slot(Slot.TASKS, "[]") is False


def test_quota_exceeded_is_reported_not_raised() -> None:
    kv = MemoryKVStore(quota_bytes=64)
    gw = PersistenceGateway(kv)
    assert gw.initialize()

    assert gw.write_slot(Slot.TASKS, "[]") is True
    assert gw.write_slot(Slot.TASKS, "x" * 500) is False
    # previous value untouched
    assert gw.read_slot(Slot.TASKS) == "[]"


def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    db = tmp_path / "kv.sqlite3"
    gw = PersistenceGateway(SqliteKVStore(db))
    assert gw.initialize()
    assert gw.write_slot(Slot.CATEGORIES, '[{"id": "c"}]')

    gw2 = PersistenceGateway(SqliteKVStore(db))
    assert gw2.initialize()
    assert gw2.read_slot(Slot.CATEGORIES) == '[{"id": "c"}]'
    assert gw2.remove_slot(Slot.CATEGORIES)
    assert gw2.read_slot(Slot.CATEGORIES) is None
