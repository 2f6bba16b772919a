# tests/test_coordinator.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskflow.core.coordinator import AppCoordinator, TaskForm
from taskflow.core.ports import NoticeLevel
from taskflow.storage.gateway import PersistenceGateway, Slot
from taskflow.tasks.task_models import SortBy, StatusFilter, Theme
from taskflow.tasks.task_store import TaskStore

from .fakes import FakeClock, FakePresenter, FlakyKVStore, UnwritableKVStore


def _form(title: str = "Write report", **kw) -> TaskForm:
    kw.setdefault("category", "cat_1")
    kw.setdefault("due_date", "2026-02-01")
    return TaskForm(title=title, **kw)


def test_initialize_renders_and_applies_theme(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    view = presenter.last_view
    assert view.tasks == []
    assert (view.stats.total, view.stats.completed, view.stats.pending) == (0, 0, 0)
    assert len(view.categories) == 4
    assert presenter.themes == [Theme.LIGHT]


def test_submit_creates_task_and_reloads(
    coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore
) -> None:
    coordinator.begin_create()
    assert presenter.forms == [None]

    assert coordinator.submit_task(_form(priority="HIGH", description="  quarterly  "))
    assert presenter.last_notice.message == "Task added successfully"

    stored = store.list_tasks()
    assert coordinator.session.tasks == stored
    assert presenter.last_view.tasks == stored
    assert stored[0].description == "quarterly"
    assert presenter.last_view.stats.pending == 1


@pytest.mark.parametrize(
    "form",
    [
        _form(title="   "),
        _form(category=""),
        _form(due_date=""),
        _form(due_date="someday"),
    ],
)
def test_submit_requires_fields(
    coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore, form: TaskForm
) -> None:
    assert coordinator.submit_task(form) is False
    assert presenter.last_notice.level is NoticeLevel.ERROR
    assert presenter.last_notice.message == "Please fill in all required fields"
    assert store.list_tasks() == []


def test_edit_flow_updates_existing_task(
    coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore
) -> None:
    coordinator.submit_task(_form("Draft"))
    task = store.list_tasks()[0]

    assert coordinator.begin_edit(task.id)
    assert presenter.forms[-1] == task
    assert coordinator.session.editing_task_id == task.id

    assert coordinator.submit_task(_form("Final", priority="low"))
    assert presenter.last_notice.message == "Task updated successfully"
    assert coordinator.session.editing_task_id is None

    tasks = store.list_tasks()
    assert len(tasks) == 1
    assert tasks[0].id == task.id
    assert tasks[0].title == "Final"
    assert tasks[0].created_at == task.created_at


def test_begin_edit_unknown_task(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    assert coordinator.begin_edit("task_missing") is False
    assert presenter.last_notice.level is NoticeLevel.ERROR


def test_delete_respects_confirmation(
    coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore
) -> None:
    coordinator.submit_task(_form("Doomed"))
    task_id = store.list_tasks()[0].id

    presenter.confirm_answer = False
    assert coordinator.delete_task(task_id) is False
    assert len(store.list_tasks()) == 1

    presenter.confirm_answer = True
    assert coordinator.delete_task(task_id)
    assert 'delete "Doomed"' in presenter.confirmations[-1][1]
    assert store.list_tasks() == []
    assert presenter.last_view.stats.total == 0


def test_toggle_complete_reorders_view(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    coordinator.submit_task(_form("first", due_date="2026-01-01"))
    coordinator.submit_task(_form("second", due_date="2026-03-01"))
    first = presenter.last_view.tasks[0]

    assert coordinator.toggle_complete(first.id)
    view = presenter.last_view
    assert [t.title for t in view.tasks] == ["second", "first"]
    assert (view.stats.completed, view.stats.pending) == (1, 1)

    assert coordinator.toggle_complete("nope") is False


def test_clear_completed(coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore) -> None:
    assert coordinator.clear_completed() is False
    assert presenter.last_notice.message == "No completed tasks to clear"
    assert presenter.confirmations == []

    coordinator.submit_task(_form("a"))
    coordinator.submit_task(_form("b"))
    coordinator.toggle_complete(store.list_tasks()[0].id)

    assert coordinator.clear_completed()
    assert presenter.confirmations[-1][1] == "Are you sure you want to delete 1 completed task?"
    assert [t.title for t in store.list_tasks()] == ["b"]


def test_add_category(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    assert coordinator.add_category("Errands", "#222222")
    assert [c.name for c in presenter.last_view.categories][-1] == "Errands"

    assert coordinator.add_category("errands", "#333333") is False
    assert presenter.last_notice.message == "Category already exists"

    assert coordinator.add_category("  ", "#333333") is False
    assert presenter.last_notice.message == "Please enter a category name"


def test_filters_and_sort_are_persisted(
    coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore
) -> None:
    coordinator.submit_task(_form("work", category="cat_1"))
    coordinator.submit_task(_form("home", category="cat_2"))

    assert coordinator.set_category_filter("cat_2")
    assert [t.title for t in presenter.last_view.tasks] == ["home"]

    assert coordinator.set_status_filter(StatusFilter.COMPLETED)
    assert presenter.last_view.tasks == []

    assert coordinator.set_sort(SortBy.ALPHABETICAL)
    settings = store.get_settings()
    assert settings.filter_category == "cat_2"
    assert settings.filter_status is StatusFilter.COMPLETED
    assert settings.sort_by is SortBy.ALPHABETICAL


def test_search_is_session_only(coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore) -> None:
    coordinator.submit_task(_form("Buy milk"))
    coordinator.submit_task(_form("Call mom"))

    coordinator.set_search("MILK")
    assert [t.title for t in presenter.last_view.tasks] == ["Buy milk"]
    assert "milk" not in store.gateway.read_slot(Slot.SETTINGS).lower()


def test_toggle_theme(coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore) -> None:
    assert coordinator.toggle_theme()
    assert store.get_settings().theme is Theme.DARK
    assert presenter.themes[-1] is Theme.DARK
    assert presenter.last_notice.message == "Dark theme activated"

    coordinator.toggle_theme()
    assert coordinator.session.settings.theme is Theme.LIGHT


def test_export_offers_download(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    coordinator.submit_task(_form())
    text = coordinator.export_data()

    filename, offered = presenter.downloads[-1]
    assert filename == "taskflow-backup-2026-01-15.json"
    assert offered == text
    assert json.loads(text)["tasks"][0]["title"] == "Write report"


def test_import_text_replaces_state(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    coordinator.submit_task(_form("old"))
    doc = {
        "tasks": [],
        "categories": [{"id": "c1", "name": "Imported", "color": "#000"}],
        "settings": {"theme": "dark", "sortBy": "priority", "filterCategory": "all", "filterStatus": "all"},
        "exportDate": "2026-01-01T00:00:00.000Z",
        "version": "1.0",
    }
    assert coordinator.import_text(json.dumps(doc))

    assert coordinator.session.tasks == []
    assert [c.name for c in coordinator.session.categories] == ["Imported"]
    assert presenter.themes[-1] is Theme.DARK
    assert presenter.last_view.settings.sort_by is SortBy.PRIORITY


def test_import_invalid_text_keeps_state(coordinator: AppCoordinator, presenter: FakePresenter) -> None:
    coordinator.submit_task(_form("kept"))
    before = list(coordinator.session.tasks)

    assert coordinator.import_text("{not valid}") is False
    assert presenter.last_notice.level is NoticeLevel.ERROR
    assert coordinator.session.tasks == before


@pytest.mark.asyncio
async def test_import_file(coordinator: AppCoordinator, presenter: FakePresenter, tmp_path: Path) -> None:
    coordinator.submit_task(_form("exported"))
    path = tmp_path / "backup.json"
    path.write_text(coordinator.export_data(), "utf-8")
    coordinator.reset()
    assert coordinator.session.tasks == []

    assert await coordinator.import_file(path)
    assert [t.title for t in coordinator.session.tasks] == ["exported"]


@pytest.mark.asyncio
async def test_import_file_read_error(coordinator: AppCoordinator, presenter: FakePresenter, tmp_path: Path) -> None:
    assert await coordinator.import_file(tmp_path / "missing.json") is False
    assert presenter.last_notice.message == "Error reading file"


def test_reset_all_requires_confirmation(
    coordinator: AppCoordinator, presenter: FakePresenter, store: TaskStore
) -> None:
    coordinator.submit_task(_form())
    presenter.confirm_answer = False
    assert coordinator.reset_all() is False
    assert len(store.list_tasks()) == 1

    presenter.confirm_answer = True
    assert coordinator.reset_all()
    assert store.list_tasks() == []
    assert presenter.last_view.tasks == []


def test_write_failure_is_reported_and_mirror_unchanged(
    coordinator: AppCoordinator, presenter: FakePresenter, kv: FlakyKVStore
) -> None:
    coordinator.submit_task(_form("kept"))
    kv.failing_keys.add(Slot.TASKS.value)

    assert coordinator.submit_task(_form("lost")) is False
    assert presenter.last_notice.message == "Error saving task (storage write failed)"
    assert [t.title for t in coordinator.session.tasks] == ["kept"]


def test_unavailable_storage_is_surfaced_once(clock: FakeClock) -> None:
    presenter = FakePresenter()
    app = AppCoordinator(TaskStore(PersistenceGateway(UnwritableKVStore()), clock=clock), presenter, clock=clock)
    app.initialize()

    assert [(n.message, n.level) for n in presenter.notices] == [
        ("Storage unavailable. Changes will not be saved.", NoticeLevel.INFO)
    ]
    assert len(presenter.last_view.categories) == 4

    assert app.submit_task(_form()) is False
    assert app.session.tasks == []


def test_seed_failure_on_healthy_storage_is_not_reported_as_unavailable(clock: FakeClock) -> None:
    kv = FlakyKVStore()
    kv.failing_keys.add(Slot.CATEGORIES.value)
    presenter = FakePresenter()
    app = AppCoordinator(TaskStore(PersistenceGateway(kv), clock=clock), presenter, clock=clock)
    app.initialize()

    assert [(n.message, n.level) for n in presenter.notices] == [
        ("Error saving default data", NoticeLevel.ERROR)
    ]
    assert app.add_category("Errands", "#222222") is False
    assert app.submit_task(_form())
