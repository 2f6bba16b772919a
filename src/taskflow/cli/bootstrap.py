# src/taskflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires backing store -> gateway -> repository -> coordinator.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.coordinator import AppCoordinator
from ..core.ports import KeyValueStore, Presenter
from ..storage.gateway import PersistenceGateway
from ..storage.kv_store import MemoryKVStore, SqliteKVStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_kv_store(settings: Settings) -> KeyValueStore | None:
    """Concrete backing store, or None if it cannot be opened (gateway degrades)."""
    if settings.storage_backend == "memory":
        return MemoryKVStore(quota_bytes=settings.storage_quota_bytes)
    try:
        return SqliteKVStore(settings.storage_db_path)
    except Exception:
        logger.exception("Failed to open storage at %s", settings.storage_db_path)
        return None


def create_coordinator(presenter: Presenter, *, settings: Settings | None = None) -> AppCoordinator:
    """
    Build an AppCoordinator (not yet initialized).

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    gateway = PersistenceGateway(build_kv_store(settings))
    store = TaskStore(gateway)
    return AppCoordinator(store, presenter)
