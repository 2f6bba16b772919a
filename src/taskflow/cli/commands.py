# src/taskflow/cli/commands.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..core.coordinator import AppCoordinator, TaskForm
from ..tasks.task_models import ALL, SortBy, StatusFilter, Theme

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppCoordinator, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = "#6b7280"


class CommandRegistry:
    """Simple slash-command registry used by the console shell (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        coordinator: AppCoordinator,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."
        return handler(coordinator, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def resolve_task_ref(coordinator: AppCoordinator, ref: str) -> str | None:
    """
    "#3" / "3" -> id of the 3rd task in the current view; anything else is taken
    as a literal task id.
    """
    ref = ref.strip()
    number = ref[1:] if ref.startswith("#") else ref
    if number.isdigit():
        tasks = coordinator.current_view().tasks
        idx = int(number) - 1
        if 0 <= idx < len(tasks):
            return tasks[idx].id
        return None
    return ref or None


def _split_fields(args: list[str]) -> list[str]:
    return [p.strip() for p in " ".join(args).split("|")]


def _form_from_fields(fields: list[str]) -> TaskForm | None:
    # title | category | due [| priority [| description]]
    if len(fields) < 3:
        return None
    return TaskForm(
        title=fields[0],
        category=fields[1],
        due_date=fields[2],
        priority=fields[3] if len(fields) > 3 and fields[3] else "medium",
        description=fields[4] if len(fields) > 4 else "",
    )


def cmd_help(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_list(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    coordinator.publish()
    return ""


def cmd_add(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add title | category-id | YYYY-MM-DD [| high|medium|low [| description]]
    """
    form = _form_from_fields(_split_fields(args))
    if form is None:
        return "Usage: /add title | category-id | YYYY-MM-DD [| priority [| description]]"
    coordinator.begin_create()
    coordinator.submit_task(form)
    return ""


def cmd_edit(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /edit #n title | category-id | YYYY-MM-DD [| priority [| description]]
    """
    if len(args) < 2:
        return "Usage: /edit #n title | category-id | YYYY-MM-DD [| priority [| description]]"
    task_id = resolve_task_ref(coordinator, args[0])
    form = _form_from_fields(_split_fields(args[1:]))
    if task_id is None:
        return f"No task {args[0]} in the current view."
    if form is None:
        return "Edit needs at least: title | category-id | YYYY-MM-DD"
    if not coordinator.begin_edit(task_id):
        return ""
    if not coordinator.submit_task(form):
        coordinator.cancel_edit()
    return ""


def _task_command(action: Callable[[AppCoordinator, str], bool], usage: str) -> CommandHandler:
    def handler(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
        if len(args) != 1:
            return usage
        task_id = resolve_task_ref(coordinator, args[0])
        if task_id is None:
            return f"No task {args[0]} in the current view."
        action(coordinator, task_id)
        return ""

    return handler


cmd_done = _task_command(AppCoordinator.toggle_complete, "Usage: /done #n")
cmd_rm = _task_command(AppCoordinator.delete_task, "Usage: /rm #n")


def cmd_cat(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /cat              -> list categories
    /cat name [#hex]  -> add a category
    """
    if not args:
        lines = ["Categories:"]
        for c in coordinator.session.categories:
            lines.append(f"  {c.id}  {c.name}  {c.color}")
        return "\n".join(lines)

    color = DEFAULT_CATEGORY_COLOR
    if len(args) > 1 and args[-1].startswith("#"):
        color = args[-1]
        args = args[:-1]
    coordinator.add_category(" ".join(args), color)
    return ""


def cmd_search(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    coordinator.set_search(" ".join(args))
    return ""


def cmd_filter(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /filter category <id|all>
    /filter status <all|pending|completed>
    """
    usage = "Usage: /filter category <id|all> | /filter status <all|pending|completed>"
    if len(args) != 2:
        return usage
    sub, value = args[0].lower(), args[1]
    if sub in ("category", "cat"):
        coordinator.set_category_filter(ALL if value.lower() == ALL else value)
        return ""
    if sub == "status":
        try:
            status = StatusFilter(value.lower())
        except ValueError:
            return usage
        coordinator.set_status_filter(status)
        return ""
    return usage


def cmd_sort(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    try:
        sort_by = SortBy(args[0].lower()) if len(args) == 1 else None
    except ValueError:
        sort_by = None
    if sort_by is None:
        return "Usage: /sort date | priority | alphabetical"
    coordinator.set_sort(sort_by)
    return ""


def cmd_theme(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /theme              -> toggle
    /theme light|dark   -> set
    """
    if not args:
        coordinator.toggle_theme()
        return ""
    try:
        theme = Theme(args[0].lower())
    except ValueError:
        return "Usage: /theme [light|dark]"
    coordinator.set_theme(theme)
    return ""


def cmd_export(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    coordinator.export_data()
    return ""


def cmd_import(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /import path/to/backup.json"
    path = " ".join(args)
    if emit:
        emit(f"Reading {path} ...")
    asyncio.run(coordinator.import_file(path))
    return ""


def cmd_clear(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    coordinator.clear_completed()
    return ""


def cmd_reset(coordinator: AppCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    coordinator.reset_all()
    return ""


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the task list.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add: /add title | category-id | YYYY-MM-DD [| priority [| description]].")
registry.register("edit", cmd_edit, help_text="Edit: /edit #n title | category-id | YYYY-MM-DD [| ...].")
registry.register("done", cmd_done, help_text="Toggle completion: /done #n.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm #n.", aliases=["delete"])
registry.register("cat", cmd_cat, help_text="Categories: /cat | /cat name [#hex].")
registry.register("search", cmd_search, help_text="Search title/description: /search text (empty clears).")
registry.register("filter", cmd_filter, help_text="Filter: /filter category <id|all> | /filter status <...>.")
registry.register("sort", cmd_sort, help_text="Sort: /sort date | priority | alphabetical.")
registry.register("theme", cmd_theme, help_text="Theme: /theme [light|dark].")
registry.register("export", cmd_export, help_text="Export a backup file.")
registry.register("import", cmd_import, help_text="Import a backup file: /import path.")
registry.register("clear", cmd_clear, help_text="Delete all completed tasks.")
registry.register("reset", cmd_reset, help_text="Reset everything to defaults.")
