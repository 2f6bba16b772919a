# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the backing store and the presentation shell swappable and makes testing easier.
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task, Theme
    from .coordinator import ViewModel


class KeyValueStore(Protocol):
    """
    Synchronous, string-only key-value store (localStorage-like).

    Implementations may raise on any call (unavailable, quota exceeded, I/O errors);
    the persistence gateway is responsible for catching.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class NoticeLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Presenter(Protocol):
    """
    Presentation collaborator: renders what the coordinator hands over and
    answers the few questions the coordinator needs from the user.
    """

    def render(self, view: ViewModel) -> None: ...
    def notify(self, message: str, level: NoticeLevel) -> None: ...
    def confirm(self, title: str, message: str) -> bool: ...
    def show_task_form(self, task: Task | None) -> None: ...
    def apply_theme(self, theme: Theme) -> None: ...
    def offer_download(self, filename: str, text: str) -> None: ...
