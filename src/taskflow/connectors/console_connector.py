# src/taskflow/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from ..cli.commands import registry as command_registry
from ..core.coordinator import AppCoordinator, ViewModel
from ..core.ports import NoticeLevel
from ..tasks.task_models import Task, Theme
from ..tasks.task_query import describe_tasks
from ..tasks.transfer import write_snapshot_file

logger = logging.getLogger(__name__)

_NOTICE_TAGS = {
    NoticeLevel.SUCCESS: "[OK]",
    NoticeLevel.ERROR: "[ERROR]",
    NoticeLevel.INFO: "[INFO]",
}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_view(view: ViewModel, *, theme: Theme = Theme.LIGHT) -> str:
    s = view.settings
    stats = view.stats
    lines = [
        f"Tasks: {stats.total} total, {stats.completed} completed, {stats.pending} pending"
        f"  [sort={s.sort_by.value} status={s.filter_status.value} category={s.filter_category}"
        + (f' search="{view.search_text}"' if view.search_text else "")
        + f" theme={theme.value}]",
    ]
    if not view.tasks:
        lines.append("  (no tasks)")
        return "\n".join(lines)

    for n, row in enumerate(describe_tasks(view.tasks, view.categories), start=1):
        t = row.task
        box = "[x]" if t.completed else "[ ]"
        due = row.due_label + (" !overdue" if row.overdue else "")
        lines.append(f"  #{n:<3} {box} {t.title}  ({row.category_name}, {t.priority.value}, due {due})")
        if t.description:
            lines.append(f"        {t.description}")
    return "\n".join(lines)


class ConsolePresenter:
    """Presenter that prints to stdout and asks confirmations via input()."""

    def __init__(self, export_dir: str | Path, *, assume_yes: bool = False) -> None:
        self._export_dir = Path(export_dir)
        self._assume_yes = assume_yes
        self.theme = Theme.LIGHT

    def render(self, view: ViewModel) -> None:
        print(format_view(view, theme=self.theme))

    def notify(self, message: str, level: NoticeLevel) -> None:
        print(f"[{_ts_local()}] {_NOTICE_TAGS[level]} {message}")

    def confirm(self, title: str, message: str) -> bool:
        if self._assume_yes:
            return True
        try:
            answer = input(f"{title}: {message} [y/N] ").strip().lower()
        except EOFError:
            return False
        return answer in ("y", "yes")

    def show_task_form(self, task: Task | None) -> None:
        if task is None:
            logger.debug("New task form")
            return
        due = task.due_date.isoformat() if task.due_date else ""
        print(
            f"Editing: {task.title} | {task.category} | {due} | {task.priority.value}"
            + (f" | {task.description}" if task.description else "")
        )

    def apply_theme(self, theme: Theme) -> None:
        self.theme = theme

    def offer_download(self, filename: str, text: str) -> None:
        try:
            path = write_snapshot_file(self._export_dir / filename, text)
        except OSError:
            logger.exception("Failed to write export file")
            self.notify("Could not write export file", NoticeLevel.ERROR)
            return
        print(f"Backup written to {path}")


def run_console_loop(coordinator: AppCoordinator) -> None:
    logger.info("Console shell started.")
    print(f"[{_ts_local()}] Type /help for commands, /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            line = input("taskflow> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not line.startswith("/"):
            # bare text is a search shortcut
            line = f"/search {line}"

        try:
            response = command_registry.handle(coordinator, line, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response:
            print(response)

    logger.info("Console shell finished.")
