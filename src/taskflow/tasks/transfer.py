# src/taskflow/tasks/transfer.py

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from .task_models import format_timestamp, utc_now
from .task_store import TaskStore

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


def export_snapshot(store: TaskStore, *, clock: Callable[[], datetime] = utc_now) -> str | None:
    """Serialize the whole repository state. None if encoding fails."""
    data = {
        "tasks": [t.to_dict() for t in store.list_tasks()],
        "categories": [c.to_dict() for c in store.list_categories()],
        "settings": store.get_settings().to_dict(),
        "exportDate": format_timestamp(clock()),
        "version": SNAPSHOT_VERSION,
    }
    try:
        return json.dumps(data, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        logger.exception("Failed to export data")
        return None


def import_snapshot(store: TaskStore, text: str) -> bool:
    """
    Restore a snapshot produced by export_snapshot.

    Only the top-level shape is checked: an object with `tasks` and `categories`
    lists. Individual records are stored as-is. Settings are replaced only when
    the document carries them. On any failure nothing is changed.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        logger.warning("Import rejected: not valid JSON")
        return False

    if not isinstance(data, dict):
        logger.warning("Import rejected: top level is not an object")
        return False

    tasks = data.get("tasks")
    categories = data.get("categories")
    if not isinstance(tasks, list) or not isinstance(categories, list):
        logger.warning("Import rejected: missing tasks/categories")
        return False

    settings = data.get("settings")
    if settings is not None and not isinstance(settings, dict):
        logger.warning("Import rejected: settings is not an object")
        return False

    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        logger.warning("Importing snapshot with version %r (expected %s)", version, SNAPSHOT_VERSION)

    return bool(store.restore_snapshot(tasks=tasks, categories=categories, settings=settings))


# ---- backup files ----


def backup_filename(now: datetime) -> str:
    return f"taskflow-backup-{now.date().isoformat()}.json"


def write_snapshot_file(path: str | Path, text: str) -> Path:
    """Atomic write (tmp + replace). Raises OSError on failure."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(text, "utf-8")
    os.replace(tmp, path)
    return path


async def read_snapshot_file(path: str | Path) -> str:
    """Read a snapshot without blocking the event loop. Raises OSError/UnicodeDecodeError."""
    return await asyncio.to_thread(Path(path).read_text, "utf-8")
