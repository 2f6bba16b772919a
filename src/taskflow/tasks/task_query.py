# src/taskflow/tasks/task_query.py

from __future__ import annotations

"""
Query engine.

Pure functions from (tasks, UI parameters) to display-ready data. No storage
access here: category lookups are passed in as a callable.
"""

import unicodedata
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from .task_models import ALL, Category, Priority, SortBy, StatusFilter, Task

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_COLOR = "#6b7280"

_PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    pending: int


@dataclass(frozen=True, slots=True)
class TaskRow:
    """One rendered line of the task list."""

    task: Task
    category_name: str
    category_color: str
    due_label: str
    overdue: bool
    created_label: str


def _collation_key(text: str) -> tuple[str, str]:
    # accent/case-insensitive first, then lowercase before uppercase
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text.swapcase()


def _secondary_key(sort_by: SortBy) -> Callable[[Task], tuple]:
    if sort_by is SortBy.DATE:
        # undated tasks after dated ones
        return lambda t: (t.due_date is None, t.due_date or date.min)
    if sort_by is SortBy.PRIORITY:
        return lambda t: (_PRIORITY_RANK[t.priority],)
    if sort_by is SortBy.ALPHABETICAL:
        return lambda t: _collation_key(t.title)
    raise ValueError(f"Unhandled sort order: {sort_by!r}")


def _matches_search(task: Task, needle: str) -> bool:
    if needle in task.title.casefold():
        return True
    return bool(task.description) and needle in task.description.casefold()


def _matches_status(task: Task, status: StatusFilter) -> bool:
    if status is StatusFilter.ALL:
        return True
    if status is StatusFilter.PENDING:
        return not task.completed
    if status is StatusFilter.COMPLETED:
        return task.completed
    raise ValueError(f"Unhandled status filter: {status!r}")


def derive_view(
    tasks: Iterable[Task],
    search_text: str,
    category_filter: str,
    status_filter: StatusFilter | str,
    sort_by: SortBy | str,
) -> list[Task]:
    """
    Filter then order tasks for display.

    Incomplete tasks always come before completed ones; within each group the
    order follows `sort_by`. The sort is stable, so ties keep input order.
    Plain strings equal to an enum value ("all", "date", ...) are accepted.
    """
    status_filter = StatusFilter(status_filter)
    sort_by = SortBy(sort_by)
    result = list(tasks)

    needle = (search_text or "").strip().casefold()
    if needle:
        result = [t for t in result if _matches_search(t, needle)]

    if category_filter != ALL:
        result = [t for t in result if t.category == category_filter]

    result = [t for t in result if _matches_status(t, status_filter)]

    secondary = _secondary_key(sort_by)
    result.sort(key=lambda t: (t.completed, secondary(t)))
    return result


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    items = list(tasks)
    total = len(items)
    completed = sum(1 for t in items if t.completed)
    return TaskStats(total=total, completed=completed, pending=total - completed)


# ---- display formatting ----


def is_overdue(task: Task, today: date) -> bool:
    return not task.completed and task.due_date is not None and task.due_date < today


def format_due_date(d: date | None) -> str:
    if d is None:
        return "No due date"
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n > 1 else ''} ago"


def relative_time(ts: datetime | None, now: datetime) -> str:
    if ts is None:
        return "unknown"
    seconds = (now - ts).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return _plural(hours, "hour")
    if days < 30:
        return _plural(days, "day")
    return format_due_date(ts.date())


def category_label(task: Task, lookup: Callable[[str], Category | None]) -> tuple[str, str]:
    """(name, color) for the task's category; dangling references are tolerated."""
    category = lookup(task.category) if task.category else None
    if category is None:
        return UNCATEGORIZED_NAME, UNCATEGORIZED_COLOR
    return category.name, category.color


def describe_tasks(
    tasks: Iterable[Task],
    categories: Iterable[Category],
    *,
    now: datetime | None = None,
) -> list[TaskRow]:
    now = now or datetime.now(timezone.utc)
    by_id = {c.id: c for c in categories}
    today = now.astimezone().date()

    rows: list[TaskRow] = []
    for task in tasks:
        name, color = category_label(task, by_id.get)
        rows.append(
            TaskRow(
                task=task,
                category_name=name,
                category_color=color,
                due_label=format_due_date(task.due_date),
                overdue=is_overdue(task, today),
                created_label=relative_time(task.created_at, now),
            )
        )
    return rows
