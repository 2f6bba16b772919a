# src/taskflow/tasks/task_models.py

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any, Generic, TypeVar

_UNSET: Any = object()

ALL = "all"  # filterCategory sentinel

E = TypeVar("E", bound=StrEnum)


def _enum_from_raw(cls: type[E], raw: object, default: E) -> E:
    """Lenient decode for stored/imported values; unknown -> default."""
    if raw is None:
        return default
    try:
        return cls(str(raw).strip().lower())
    except ValueError:
        return default


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_raw(cls, raw: object, default: Priority | None = None) -> Priority:
        return _enum_from_raw(cls, raw, cls.MEDIUM if default is None else default)


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_raw(cls, raw: object, default: Theme | None = None) -> Theme:
        return _enum_from_raw(cls, raw, cls.LIGHT if default is None else default)


class SortBy(StrEnum):
    DATE = "date"
    PRIORITY = "priority"
    ALPHABETICAL = "alphabetical"

    @classmethod
    def from_raw(cls, raw: object, default: SortBy | None = None) -> SortBy:
        return _enum_from_raw(cls, raw, cls.DATE if default is None else default)


class StatusFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: object, default: StatusFilter | None = None) -> StatusFilter:
        return _enum_from_raw(cls, raw, cls.ALL if default is None else default)


# ---- timestamps / dates (wire format helpers) ----


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds (what the wire format keeps)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(ts: datetime) -> str:
    ts = ts.astimezone(timezone.utc)
    spec = "milliseconds" if ts.microsecond % 1000 == 0 else "microseconds"
    return ts.isoformat(timespec=spec).replace("+00:00", "Z")


def parse_timestamp(raw: object) -> datetime | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        ts = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_due_date(raw: object) -> date | None:
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def _coerce_due_date(value: object) -> date | None:
    """Strict form of parse_due_date for write-side structs; raises ValueError."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    parsed = parse_due_date(value)
    if parsed is None:
        raise ValueError(f"Invalid due date: {value!r}")
    return parsed


def _coerce_timestamp(value: object) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Invalid timestamp: {value!r}")
    return parsed


# ---- records ----

_TASK_KEYS = frozenset(
    {"id", "title", "description", "category", "priority", "dueDate", "completed", "createdAt", "completedAt"}
)
_CATEGORY_KEYS = frozenset({"id", "name", "color"})
_SETTING_KEYS = frozenset({"theme", "sortBy", "filterCategory", "filterStatus"})


def _merge_extra(known: dict[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(known)
    for k, v in extra.items():
        out.setdefault(k, v)
    return out


@dataclass(slots=True)
class Task:
    id: str
    title: str
    category: str
    priority: Priority
    due_date: date | None
    created_at: datetime | None
    description: str = ""
    completed: bool = False
    completed_at: datetime | None = None
    # unknown keys found on a stored record; written back untouched
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Task:
        completed = raw.get("completed") is True
        return cls(
            id=str(raw.get("id") or ""),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            category=str(raw.get("category") or ""),
            priority=Priority.from_raw(raw.get("priority")),
            due_date=parse_due_date(raw.get("dueDate")),
            completed=completed,
            created_at=parse_timestamp(raw.get("createdAt")),
            completed_at=parse_timestamp(raw.get("completedAt")) if completed else None,
            extra={k: v for k, v in raw.items() if k not in _TASK_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return _merge_extra(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "category": self.category,
                "priority": self.priority.value,
                "dueDate": self.due_date.isoformat() if self.due_date else None,
                "completed": self.completed,
                "createdAt": format_timestamp(self.created_at) if self.created_at else None,
                "completedAt": format_timestamp(self.completed_at) if self.completed_at else None,
            },
            self.extra,
        )


@dataclass(slots=True)
class Category:
    id: str
    name: str
    color: str
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Category:
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            color=str(raw.get("color") or ""),
            extra={k: v for k, v in raw.items() if k not in _CATEGORY_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return _merge_extra({"id": self.id, "name": self.name, "color": self.color}, self.extra)


@dataclass(slots=True)
class UserSettings:
    """
    The single settings record.

    Known keys are typed; anything else lives in `extra` so records written by a
    newer version survive a round-trip through this one.
    """

    theme: Theme = Theme.LIGHT
    sort_by: SortBy = SortBy.DATE
    filter_category: str = ALL
    filter_status: StatusFilter = StatusFilter.ALL
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> UserSettings:
        return cls(
            theme=Theme.from_raw(raw.get("theme")),
            sort_by=SortBy.from_raw(raw.get("sortBy")),
            filter_category=str(raw.get("filterCategory") or ALL),
            filter_status=StatusFilter.from_raw(raw.get("filterStatus")),
            extra={k: v for k, v in raw.items() if k not in _SETTING_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return _merge_extra(
            {
                "theme": self.theme.value,
                "sortBy": self.sort_by.value,
                "filterCategory": self.filter_category,
                "filterStatus": self.filter_status.value,
            },
            self.extra,
        )

    def with_value(self, key: str, value: Any) -> UserSettings:
        """
        Return a copy with one wire key set.

        Raises ValueError for an invalid value of a known key.
        """
        if key == "theme":
            return dataclasses.replace(self, theme=Theme(value))
        if key == "sortBy":
            return dataclasses.replace(self, sort_by=SortBy(value))
        if key == "filterStatus":
            return dataclasses.replace(self, filter_status=StatusFilter(value))
        if key == "filterCategory":
            if not isinstance(value, str) or not value.strip():
                raise ValueError("filterCategory must be a category id or 'all'")
            return dataclasses.replace(self, filter_category=value)
        extra = dict(self.extra)
        extra[key] = value
        return dataclasses.replace(self, extra=extra)


def default_categories() -> list[Category]:
    return [
        Category(id="cat_1", name="Work", color="#3b82f6"),
        Category(id="cat_2", name="Personal", color="#8b5cf6"),
        Category(id="cat_3", name="Shopping", color="#ec4899"),
        Category(id="cat_4", name="Health", color="#10b981"),
    ]


# ---- write-side structs ----


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """Fields a caller may supply when creating a task (identity is assigned by the store)."""

    title: str
    category: str
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    description: str = ""

    def __post_init__(self) -> None:
        # accept wire values ("low", "2026-02-01"); bad ones raise ValueError
        object.__setattr__(self, "priority", Priority(self.priority))
        object.__setattr__(self, "due_date", _coerce_due_date(self.due_date))


@dataclass(frozen=True, slots=True)
class TaskPatch:
    """
    Partial update. A field left at its default is not touched; passing None
    (where the field allows it) clears the value.
    """

    title: str = _UNSET
    description: str = _UNSET
    category: str = _UNSET
    priority: Priority = _UNSET
    due_date: date | None = _UNSET
    completed: bool = _UNSET
    completed_at: datetime | None = _UNSET

    def __post_init__(self) -> None:
        if self.priority is not _UNSET:
            object.__setattr__(self, "priority", Priority(self.priority))
        if self.due_date is not _UNSET:
            object.__setattr__(self, "due_date", _coerce_due_date(self.due_date))
        if self.completed_at is not _UNSET:
            object.__setattr__(self, "completed_at", _coerce_timestamp(self.completed_at))
        if self.completed is not _UNSET and not isinstance(self.completed, bool):
            raise ValueError(f"completed must be a bool, got {self.completed!r}")

    def changes(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not _UNSET
        }

    def apply(self, task: Task) -> Task:
        return dataclasses.replace(task, **self.changes())


class RepoError(StrEnum):
    NOT_FOUND = "not_found"
    DUPLICATE_CATEGORY = "duplicate_category"
    WRITE_FAILED = "write_failed"
    INVALID_VALUE = "invalid_value"


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RepoResult(Generic[T]):
    ok: bool
    value: T | None = None
    error: RepoError | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None) -> RepoResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: RepoError) -> RepoResult[T]:
        return cls(ok=False, error=error)
