# src/taskflow/core/coordinator.py

"""
Application coordinator.

Holds the session mirror of persisted state and turns external commands into
repository calls. After every mutation the mirror is reloaded in full from the
repository (never patched in place), re-derived and handed to the presenter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ..tasks.task_models import (
    Category,
    Priority,
    RepoError,
    SortBy,
    StatusFilter,
    Task,
    TaskDraft,
    TaskPatch,
    Theme,
    UserSettings,
    parse_due_date,
    utc_now,
)
from ..tasks.task_query import TaskStats, compute_stats, derive_view
from ..tasks.task_store import TaskStore
from ..tasks.transfer import backup_filename, export_snapshot, import_snapshot, read_snapshot_file
from .ports import NoticeLevel, Presenter

logger = logging.getLogger(__name__)

_ERROR_HINTS: dict[RepoError, str] = {
    RepoError.NOT_FOUND: "task not found",
    RepoError.DUPLICATE_CATEGORY: "category already exists",
    RepoError.WRITE_FAILED: "storage write failed",
    RepoError.INVALID_VALUE: "invalid value",
}


@dataclass(slots=True)
class SessionState:
    tasks: list[Task] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    settings: UserSettings = field(default_factory=UserSettings)
    editing_task_id: str | None = None
    search_text: str = ""


@dataclass(frozen=True, slots=True)
class ViewModel:
    tasks: list[Task]
    stats: TaskStats
    categories: list[Category]
    settings: UserSettings
    search_text: str
    editing_task_id: str | None


@dataclass(frozen=True, slots=True)
class TaskForm:
    """Raw form input; everything is text until submit_task validates it."""

    title: str
    category: str
    due_date: str
    priority: str = Priority.MEDIUM.value
    description: str = ""


class AppCoordinator:
    def __init__(
        self,
        store: TaskStore,
        presenter: Presenter,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._presenter = presenter
        self._clock = clock
        self.session = SessionState()

    # ---- lifecycle ----

    def initialize(self) -> None:
        if not self._store.initialize():
            if self._store.gateway.is_degraded:
                self._presenter.notify("Storage unavailable. Changes will not be saved.", NoticeLevel.INFO)
            else:
                self._presenter.notify("Error saving default data", NoticeLevel.ERROR)
        self._reload()
        self._presenter.apply_theme(self.session.settings.theme)
        self.publish()
        logger.info("Coordinator initialized (%d tasks)", len(self.session.tasks))

    def reset(self) -> bool:
        """Erase everything back to defaults (no confirmation)."""
        result = self._store.reset_all()
        self.session = SessionState()
        self._reload()
        self._presenter.apply_theme(self.session.settings.theme)
        self.publish()
        return result.ok

    def teardown(self) -> None:
        self._store.gateway.teardown()
        logger.info("Coordinator stopped")

    # ---- internals ----

    def _reload(self) -> None:
        self.session.tasks = self._store.list_tasks()
        self.session.categories = self._store.list_categories()
        self.session.settings = self._store.get_settings()

    def current_view(self) -> ViewModel:
        s = self.session
        view = derive_view(
            s.tasks,
            s.search_text,
            s.settings.filter_category,
            s.settings.filter_status,
            s.settings.sort_by,
        )
        return ViewModel(
            tasks=view,
            stats=compute_stats(s.tasks),
            categories=list(s.categories),
            settings=s.settings,
            search_text=s.search_text,
            editing_task_id=s.editing_task_id,
        )

    def publish(self) -> None:
        self._presenter.render(self.current_view())

    def _refresh(self) -> None:
        self._reload()
        self.publish()

    def _fail(self, action: str, error: RepoError | None) -> None:
        hint = _ERROR_HINTS.get(error) if error else None
        msg = f"Error {action}" + (f" ({hint})" if hint else "")
        self._presenter.notify(msg, NoticeLevel.ERROR)

    # ---- lookups ----

    def get_category_by_id(self, category_id: str) -> Category | None:
        return self._store.get_category_by_id(category_id)

    # ---- task form ----

    def begin_create(self) -> None:
        self.session.editing_task_id = None
        self._presenter.show_task_form(None)

    def begin_edit(self, task_id: str) -> bool:
        task = self._store.get_task_by_id(task_id)
        if task is None:
            self._fail("opening task", RepoError.NOT_FOUND)
            return False
        self.session.editing_task_id = task.id
        self._presenter.show_task_form(task)
        return True

    def cancel_edit(self) -> None:
        self.session.editing_task_id = None

    def submit_task(self, form: TaskForm) -> bool:
        title = form.title.strip()
        category = form.category.strip()
        due = parse_due_date(form.due_date)
        if not title or not category or due is None:
            self._presenter.notify("Please fill in all required fields", NoticeLevel.ERROR)
            return False
        try:
            priority = Priority(form.priority.strip().lower())
        except ValueError:
            self._presenter.notify(f"Unknown priority: {form.priority}", NoticeLevel.ERROR)
            return False

        description = form.description.strip()
        editing = self.session.editing_task_id
        if editing:
            result = self._store.update_task(
                editing,
                TaskPatch(
                    title=title,
                    description=description,
                    category=category,
                    priority=priority,
                    due_date=due,
                ),
            )
            done_msg = "Task updated successfully"
        else:
            result = self._store.create_task(
                TaskDraft(
                    title=title,
                    description=description,
                    category=category,
                    priority=priority,
                    due_date=due,
                )
            )
            done_msg = "Task added successfully"

        if not result:
            self._fail("saving task", result.error)
            return False

        self._presenter.notify(done_msg, NoticeLevel.SUCCESS)
        self.session.editing_task_id = None
        self._refresh()
        return True

    # ---- task commands ----

    def delete_task(self, task_id: str) -> bool:
        task = self._store.get_task_by_id(task_id)
        if task is None:
            self._fail("deleting task", RepoError.NOT_FOUND)
            return False
        if not self._presenter.confirm("Delete Task", f'Are you sure you want to delete "{task.title}"?'):
            return False

        result = self._store.delete_task(task_id)
        if not result:
            self._fail("deleting task", result.error)
            return False
        if self.session.editing_task_id == task_id:
            self.session.editing_task_id = None
        self._presenter.notify("Task deleted successfully", NoticeLevel.SUCCESS)
        self._refresh()
        return True

    def toggle_complete(self, task_id: str) -> bool:
        result = self._store.toggle_task_completion(task_id)
        if not result:
            self._fail("updating task", result.error)
            return False
        self._refresh()
        return True

    def clear_completed(self) -> bool:
        count = sum(1 for t in self.session.tasks if t.completed)
        if count == 0:
            self._presenter.notify("No completed tasks to clear", NoticeLevel.INFO)
            return False
        noun = "task" if count == 1 else "tasks"
        if not self._presenter.confirm(
            "Clear Completed Tasks", f"Are you sure you want to delete {count} completed {noun}?"
        ):
            return False

        result = self._store.clear_completed_tasks()
        if not result:
            self._fail("clearing tasks", result.error)
            return False
        self._presenter.notify("Completed tasks cleared", NoticeLevel.SUCCESS)
        self._refresh()
        return True

    # ---- categories ----

    def add_category(self, name: str, color: str) -> bool:
        if not name.strip():
            self._presenter.notify("Please enter a category name", NoticeLevel.ERROR)
            return False
        result = self._store.create_category(name, color)
        if not result:
            if result.error is RepoError.DUPLICATE_CATEGORY:
                self._presenter.notify("Category already exists", NoticeLevel.ERROR)
            else:
                self._fail("adding category", result.error)
            return False
        self._presenter.notify("Category added successfully", NoticeLevel.SUCCESS)
        self._refresh()
        return True

    # ---- view parameters ----

    def set_search(self, text: str) -> None:
        # search text is session-only, never persisted
        self.session.search_text = text
        self.publish()

    def _set_view_setting(self, key: str, value: str) -> bool:
        result = self._store.update_setting(key, value)
        if not result:
            self._fail("saving setting", result.error)
            return False
        self._refresh()
        return True

    def set_category_filter(self, category_id: str) -> bool:
        return self._set_view_setting("filterCategory", category_id)

    def set_status_filter(self, status: StatusFilter) -> bool:
        return self._set_view_setting("filterStatus", StatusFilter(status).value)

    def set_sort(self, sort_by: SortBy) -> bool:
        return self._set_view_setting("sortBy", SortBy(sort_by).value)

    def set_theme(self, theme: Theme) -> bool:
        theme = Theme(theme)
        result = self._store.update_setting("theme", theme.value)
        if not result:
            self._fail("saving theme", result.error)
            return False
        self._reload()
        self._presenter.apply_theme(self.session.settings.theme)
        label = "Dark" if theme is Theme.DARK else "Light"
        self._presenter.notify(f"{label} theme activated", NoticeLevel.SUCCESS)
        self.publish()
        return True

    def toggle_theme(self) -> bool:
        current = self.session.settings.theme
        return self.set_theme(Theme.LIGHT if current is Theme.DARK else Theme.DARK)

    # ---- export / import ----

    def export_data(self) -> str | None:
        text = export_snapshot(self._store, clock=self._clock)
        if text is None:
            self._presenter.notify("Error exporting data", NoticeLevel.ERROR)
            return None
        self._presenter.offer_download(backup_filename(self._clock()), text)
        self._presenter.notify("Data exported successfully", NoticeLevel.SUCCESS)
        return text

    def import_text(self, text: str) -> bool:
        if not import_snapshot(self._store, text):
            self._presenter.notify(
                "Invalid file format. Please select a valid TaskFlow export file.", NoticeLevel.ERROR
            )
            return False
        self.session.editing_task_id = None
        self._presenter.notify("Data imported successfully", NoticeLevel.SUCCESS)
        self._reload()
        self._presenter.apply_theme(self.session.settings.theme)
        self.publish()
        return True

    async def import_file(self, path: str | Path) -> bool:
        try:
            text = await read_snapshot_file(path)
        except (OSError, UnicodeDecodeError):
            logger.warning("Failed to read import file %s", path, exc_info=True)
            self._presenter.notify("Error reading file", NoticeLevel.ERROR)
            return False
        return self.import_text(text)

    # ---- reset ----

    def reset_all(self) -> bool:
        if not self._presenter.confirm("Reset All Data", "Delete all tasks and categories and restore defaults?"):
            return False
        if not self.reset():
            self._fail("resetting data", RepoError.WRITE_FAILED)
            return False
        self._presenter.notify("All data reset", NoticeLevel.SUCCESS)
        return True
