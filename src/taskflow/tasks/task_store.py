# src/taskflow/tasks/task_store.py

from __future__ import annotations

import json
import logging
import random
import string
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Any

from ..storage.gateway import PersistenceGateway, Slot
from .task_models import (
    Category,
    Priority,
    RepoError,
    RepoResult,
    Task,
    TaskDraft,
    TaskPatch,
    UserSettings,
    default_categories,
    utc_now,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LEN = 9


def _well_typed(priority: Any, due_date: Any) -> bool:
    """True if the write-side fields hold model types (not raw wire values)."""
    if not isinstance(priority, Priority):
        return False
    return due_date is None or (isinstance(due_date, date) and not isinstance(due_date, datetime))


class TaskStore:
    """
    Repository over the three slots (tasks, categories, settings).

    Every mutation is read full collection -> mutate -> write full collection.
    Nothing raises to the caller: reads fall back to defaults, writes report
    through RepoResult.

    Single-writer assumption: there is no locking between read and write.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._gateway = gateway
        self._clock = clock

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    def initialize(self) -> bool:
        """Probe storage and seed every absent slot with its default."""
        if not self._gateway.initialize():
            return False

        ok = True
        if self._gateway.read_slot(Slot.TASKS) is None:
            ok = self._save_tasks([]) and ok
        if self._gateway.read_slot(Slot.CATEGORIES) is None:
            ok = self._save_categories(default_categories()) and ok
        if self._gateway.read_slot(Slot.SETTINGS) is None:
            ok = self._save_settings(UserSettings()) and ok
        if ok:
            logger.info("Storage initialized")
        else:
            logger.warning("Storage initialized with errors; some defaults were not persisted")
        return ok

    # ---- low-level helpers ----

    def _read_json(self, slot: Slot) -> Any:
        raw = self._gateway.read_slot(slot)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Slot %s holds unparsable data; using default", slot.value)
            return None

    def _read_records(self, slot: Slot) -> list[dict[str, Any]] | None:
        data = self._read_json(slot)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.warning("Slot %s is not a list; using default", slot.value)
            return None
        records = [r for r in data if isinstance(r, dict)]
        if len(records) != len(data):
            logger.warning("Slot %s: skipped %d non-object records", slot.value, len(data) - len(records))
        return records

    def _write_json(self, slot: Slot, value: Any) -> bool:
        try:
            text = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Failed to JSON-encode slot %s", slot.value)
            return False
        return self._gateway.write_slot(slot, text)

    def _save_tasks(self, tasks: Iterable[Task]) -> bool:
        return self._write_json(Slot.TASKS, [t.to_dict() for t in tasks])

    def _save_categories(self, categories: Iterable[Category]) -> bool:
        return self._write_json(Slot.CATEGORIES, [c.to_dict() for c in categories])

    def _save_settings(self, settings: UserSettings) -> bool:
        return self._write_json(Slot.SETTINGS, settings.to_dict())

    def _new_id(self, prefix: str, taken: Iterable[str]) -> str:
        taken_ids = set(taken)
        millis = int(self._clock().timestamp() * 1000)
        while True:
            suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LEN))
            candidate = f"{prefix}_{millis}_{suffix}"
            if candidate not in taken_ids:
                return candidate

    # ---- reads ----

    def list_tasks(self) -> list[Task]:
        records = self._read_records(Slot.TASKS)
        if records is None:
            return []
        return [Task.from_dict(r) for r in records]

    def list_categories(self) -> list[Category]:
        records = self._read_records(Slot.CATEGORIES)
        if records is None:
            return default_categories()
        return [Category.from_dict(r) for r in records]

    def get_settings(self) -> UserSettings:
        data = self._read_json(Slot.SETTINGS)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Slot %s is not an object; using default", Slot.SETTINGS.value)
            return UserSettings()
        return UserSettings.from_dict(data)

    def get_task_by_id(self, task_id: str) -> Task | None:
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        return None

    def get_category_by_id(self, category_id: str) -> Category | None:
        for category in self.list_categories():
            if category.id == category_id:
                return category
        return None

    # ---- task mutations ----

    def create_task(self, draft: TaskDraft) -> RepoResult[Task]:
        if not draft.title or not draft.title.strip():
            return RepoResult.failure(RepoError.INVALID_VALUE)
        if not _well_typed(draft.priority, draft.due_date):
            logger.warning("Rejected task draft with priority=%r due_date=%r", draft.priority, draft.due_date)
            return RepoResult.failure(RepoError.INVALID_VALUE)

        tasks = self.list_tasks()
        task = Task(
            id=self._new_id("task", (t.id for t in tasks)),
            title=draft.title,
            description=draft.description or "",
            category=draft.category,
            priority=draft.priority,
            due_date=draft.due_date,
            created_at=self._clock(),
            completed=False,
            completed_at=None,
        )
        tasks.append(task)
        if not self._save_tasks(tasks):
            return RepoResult.failure(RepoError.WRITE_FAILED)

        logger.debug("Task added id=%s category=%s priority=%s", task.id, task.category, task.priority.value)
        return RepoResult.success(task)

    def update_task(self, task_id: str, patch: TaskPatch) -> RepoResult[Task]:
        """
        Shallow-merge `patch` over the stored task.

        completed/completed_at are only touched when the patch names them; a patch
        that sets `completed` without `completed_at` derives the timestamp.
        """
        tasks = self.list_tasks()
        for idx, task in enumerate(tasks):
            if task.id == task_id:
                break
        else:
            logger.warning("Task not found: %s", task_id)
            return RepoResult.failure(RepoError.NOT_FOUND)

        changes = patch.changes()
        if "title" in changes and not (changes["title"] or "").strip():
            return RepoResult.failure(RepoError.INVALID_VALUE)
        if not _well_typed(changes.get("priority", task.priority), changes.get("due_date", task.due_date)):
            logger.warning("Rejected patch for task %s: %r", task_id, changes)
            return RepoResult.failure(RepoError.INVALID_VALUE)

        updated = patch.apply(task)
        if "completed" in changes and "completed_at" not in changes:
            if updated.completed and not task.completed:
                updated.completed_at = self._clock()
            elif not updated.completed:
                updated.completed_at = None

        tasks[idx] = updated
        if not self._save_tasks(tasks):
            return RepoResult.failure(RepoError.WRITE_FAILED)

        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return RepoResult.success(updated)

    def delete_task(self, task_id: str) -> RepoResult[None]:
        tasks = self.list_tasks()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            logger.warning("Task not found: %s", task_id)
            return RepoResult.failure(RepoError.NOT_FOUND)
        if not self._save_tasks(remaining):
            return RepoResult.failure(RepoError.WRITE_FAILED)
        logger.debug("Task deleted id=%s", task_id)
        return RepoResult.success()

    def toggle_task_completion(self, task_id: str) -> RepoResult[Task]:
        tasks = self.list_tasks()
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None:
            logger.warning("Task not found: %s", task_id)
            return RepoResult.failure(RepoError.NOT_FOUND)

        task.completed = not task.completed
        task.completed_at = self._clock() if task.completed else None

        if not self._save_tasks(tasks):
            return RepoResult.failure(RepoError.WRITE_FAILED)
        logger.debug("Task toggled id=%s completed=%s", task_id, task.completed)
        return RepoResult.success(task)

    def clear_completed_tasks(self) -> RepoResult[int]:
        """Remove every completed task. value = number removed."""
        tasks = self.list_tasks()
        active = [t for t in tasks if not t.completed]
        if not self._save_tasks(active):
            return RepoResult.failure(RepoError.WRITE_FAILED)
        removed = len(tasks) - len(active)
        logger.debug("Cleared %d completed tasks", removed)
        return RepoResult.success(removed)

    # ---- categories ----

    def create_category(self, name: str, color: str) -> RepoResult[Category]:
        clean = (name or "").strip()
        if not clean:
            return RepoResult.failure(RepoError.INVALID_VALUE)

        categories = self.list_categories()
        key = clean.casefold()
        if any(c.name.casefold() == key for c in categories):
            logger.warning("Category already exists: %s", clean)
            return RepoResult.failure(RepoError.DUPLICATE_CATEGORY)

        category = Category(
            id=self._new_id("cat", (c.id for c in categories)),
            name=clean,
            color=color,
        )
        categories.append(category)
        if not self._save_categories(categories):
            return RepoResult.failure(RepoError.WRITE_FAILED)
        logger.debug("Category added id=%s name=%s", category.id, category.name)
        return RepoResult.success(category)

    # ---- settings ----

    def update_setting(self, key: str, value: Any) -> RepoResult[UserSettings]:
        try:
            settings = self.get_settings().with_value(key, value)
        except ValueError:
            logger.warning("Rejected setting %s=%r", key, value)
            return RepoResult.failure(RepoError.INVALID_VALUE)
        if not self._save_settings(settings):
            return RepoResult.failure(RepoError.WRITE_FAILED)
        return RepoResult.success(settings)

    # ---- whole-state operations ----

    def restore_snapshot(
        self,
        *,
        tasks: list[Any],
        categories: list[Any],
        settings: dict[str, Any] | None,
    ) -> RepoResult[None]:
        """
        Overwrite slots with raw records (no per-record validation).

        Settings are only written when given. If any write fails, slots already
        written are put back to their previous text.
        """
        plan: list[tuple[Slot, Any]] = [(Slot.TASKS, tasks), (Slot.CATEGORIES, categories)]
        if settings is not None:
            plan.append((Slot.SETTINGS, settings))

        previous = {slot: self._gateway.read_slot(slot) for slot, _ in plan}
        written: list[Slot] = []
        for slot, value in plan:
            if not self._write_json(slot, value):
                self._rollback(written, previous)
                return RepoResult.failure(RepoError.WRITE_FAILED)
            written.append(slot)

        logger.info("Snapshot restored: %d tasks, %d categories", len(tasks), len(categories))
        return RepoResult.success()

    def _rollback(self, slots: list[Slot], previous: dict[Slot, str | None]) -> None:
        for slot in slots:
            old = previous.get(slot)
            ok = self._gateway.remove_slot(slot) if old is None else self._gateway.write_slot(slot, old)
            if not ok:
                logger.error("Rollback of slot %s failed", slot.value)

    def reset_all(self) -> RepoResult[None]:
        """Erase all three slots and re-seed defaults."""
        removed = all([self._gateway.remove_slot(slot) for slot in Slot])
        if not removed or not self.initialize():
            return RepoResult.failure(RepoError.WRITE_FAILED)
        logger.info("All data reset to defaults")
        return RepoResult.success()
