# src/taskdeck/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, cast

from ..core.state import AppState
from ..tasks.task_errors import ValidationError
from ..tasks.task_models import (
    SortKey,
    StatusFilter,
    Task,
    changed_fields,
    is_due_soon,
    is_overdue,
    validate_draft,
)

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

SHORT_ID_LEN = 8

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
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

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _short(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def _resolve_id(state: AppState, token: str) -> str | None:
    """Accept a full id, a short id shown by /list, or a unique prefix."""
    if state.cache.find(token) is not None:
        return token
    if token in state.id_aliases:
        return state.id_aliases[token]
    matches = [t.id for t in state.cache.tasks if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    return None


def format_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    flags = []
    if task.deleted:
        flags.append("DELETED")
    elif not task.completed:
        if is_overdue(task):
            flags.append("OVERDUE")
        elif is_due_soon(task):
            flags.append("due soon")
    flag_str = f" [{', '.join(flags)}]" if flags else ""
    return f"{_short(task.id)} [{mark}] {task.priority.value:<6} {task.name} (due {task.due_date}){flag_str}"


def _render(state: AppState, tasks: list[Task], title: str) -> str:
    state.id_aliases = {_short(t.id): t.id for t in state.cache.tasks}
    if not tasks:
        return f"{title}: no tasks."
    lines = [f"{title} ({len(tasks)}):"]
    for t in tasks:
        busy = state.coordinator.pending_op(t.id)
        suffix = f"  <{busy.value}...>" if busy else ""
        lines.append(f"  {format_task(t)}{suffix}")
    return "\n".join(lines)


def _outcome(state: AppState, ok_text: str | None) -> str:
    if ok_text is not None:
        return ok_text
    return f"Error: {state.cache.error or 'operation failed'}"


def _say(emit: CommandEmitter | None, text: str) -> None:
    if emit:
        with contextlib.suppress(Exception):
            emit(text)


def _parse_assignments(args: list[str]) -> dict[str, Any]:
    """
    Parse `key=value` tokens; a value runs until the next `key=` token,
    so `name=Buy more milk` works without quoting.
    """
    keys = {"name": "name", "description": "description", "desc": "description",
            "priority": "priority", "due": "dueDate", "completed": "completed"}
    out: dict[str, Any] = {}
    current: str | None = None
    for token in args:
        head, sep, tail = token.partition("=")
        if sep and head.lower() in keys:
            current = keys[head.lower()]
            out[current] = tail
        elif current is not None:
            out[current] = f"{out[current]} {token}"
        else:
            raise ValidationError(f"Expected key=value, got {token!r}")
    if "completed" in out:
        out["completed"] = str(out["completed"]).strip().lower() in {"1", "true", "yes", "y", "on"}
    return out


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /list      -> refresh and show the current view
    /list all  -> refresh and show every task, deleted included
    """
    await state.coordinator.refresh()
    if args and args[0].lower() == "all":
        return _render(state, list(state.cache.tasks), "All tasks")
    return _render(state, state.cache.visible(), "Tasks")


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/add name | description | priority | due-date"""
    parts = [p.strip() for p in " ".join(args).split("|")]
    if len(parts) != 4:
        return "Usage: /add name | description | low|medium|high | YYYY-MM-DD"
    name, description, priority, due = parts
    try:
        draft = validate_draft(
            {"name": name, "description": description, "priority": priority, "dueDate": due}
        )
    except ValidationError as exc:
        return f"Invalid task: {exc.message}"

    _say(emit, "Creating task...")
    task = await state.coordinator.create(draft)
    return _outcome(state, f"Created {_short(task.id)}: {task.name}" if task else None)


async def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/edit <id> name=... description=... priority=... due=... completed=yes|no"""
    if len(args) < 2:
        return "Usage: /edit <id> key=value ... (keys: name, description, priority, due, completed)"
    task_id = _resolve_id(state, args[0])
    if task_id is None:
        return f"No task matches {args[0]!r}. Use /list first."
    current = state.cache.find(task_id)
    if current is not None and current.deleted:
        return "Task is deleted; /restore it before editing."

    try:
        updates = _parse_assignments(args[1:])
    except ValidationError as exc:
        return f"Invalid edit: {exc.message}"

    if current is not None:
        merged = {**current.to_dict(), **updates}
        try:
            validate_draft(merged, check_due="dueDate" in updates)
        except ValidationError as exc:
            return f"Invalid edit: {exc.message}"
        updates = changed_fields(current, updates)
        if not updates:
            return "No changes."

    _say(emit, f"Updating {_short(task_id)}...")
    task = await state.coordinator.update(task_id, updates)
    return _outcome(state, f"Updated {_short(task_id)}." if task else None)


def _single_id_command(action: str, method: str, verb: str, past: str) -> Callable[..., Awaitable[str]]:
    """Build a handler for commands that take one task id and call one coordinator method."""

    async def handler(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
        if not args:
            return f"Usage: /{action} <id>"
        task_id = _resolve_id(state, args[0])
        if task_id is None:
            return f"No task matches {args[0]!r}. Use /list first."
        if state.coordinator.is_busy(task_id):
            return f"Task {_short(task_id)} is busy; wait for it to finish."

        _say(emit, f"{verb} {_short(task_id)}...")
        result = await getattr(state.coordinator, method)(task_id)
        return _outcome(state, f"{past} {_short(task_id)}." if result else None)

    handler.__name__ = f"cmd_{action}"
    return handler


async def cmd_search(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/search [term]  (no term clears the search)"""
    state.cache.set_search_term(" ".join(args))
    return _render(state, state.cache.visible(), "Tasks")


async def cmd_find(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """Server-side query with the current view params."""
    _say(emit, "Searching...")
    tasks = await state.coordinator.search()
    if tasks is None:
        return _outcome(state, None)
    return _render(state, tasks, "Search results")


def cmd_priority(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Priority filter: {state.cache.view.priority}. Use /priority low|medium|high|all."
    try:
        state.cache.set_priority_filter(args[0])
    except ValidationError as exc:
        return exc.message
    return _render(state, state.cache.visible(), "Tasks")


def cmd_status(state: AppState, args: list[str]) -> str:
    if not args:
        choices = "|".join(s.value for s in StatusFilter)
        return f"Status filter: {state.cache.view.status.value}. Use /status {choices}."
    try:
        state.cache.set_status_filter(args[0])
    except ValidationError as exc:
        return exc.message
    return _render(state, state.cache.visible(), "Tasks")


def cmd_sort(state: AppState, args: list[str]) -> str:
    if not args:
        choices = " | ".join(s.value for s in SortKey)
        return f"Sort: {state.cache.view.sort.value}. Options: {choices}."
    state.cache.set_sort(args[0])
    return _render(state, state.cache.visible(), "Tasks")


def cmd_view(state: AppState, args: list[str]) -> str:
    view = state.cache.view
    return (
        "View:\n"
        f"  Search: {view.search_term or '(none)'}\n"
        f"  Priority: {view.priority}\n"
        f"  Status: {view.status.value}\n"
        f"  Sort: {view.sort.value}"
    )


def cmd_busy(state: AppState, args: list[str]) -> str:
    busy = state.coordinator.busy_ids()
    if not busy:
        return "No operations in flight."
    return "\n".join(f"  {_short(k)} {op.value}" for k, op in busy.items())


def cmd_error(state: AppState, args: list[str]) -> str:
    """
    /error        -> show the last error
    /error clear  -> dismiss it
    """
    if args and args[0].lower() == "clear":
        state.cache.clear_error()
        return "Error cleared."
    return f"Last error: {state.cache.error}" if state.cache.error else "No error."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Refresh and show tasks: /list | /list all.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create: /add name | description | priority | YYYY-MM-DD.")
registry.register("edit", cmd_edit, help_text="Edit: /edit <id> name=... priority=... due=...")
registry.register("done", _single_id_command("done", "toggle_completed", "Toggling", "Toggled"), help_text="Toggle completed: /done <id>.")
registry.register("del", _single_id_command("del", "soft_delete", "Deleting", "Moved to trash:"), help_text="Move to trash: /del <id>.")
registry.register("restore", _single_id_command("restore", "restore", "Restoring", "Restored"), help_text="Restore from trash: /restore <id>.")
registry.register("purge", _single_id_command("purge", "hard_delete", "Purging", "Permanently deleted"), help_text="Delete permanently: /purge <id>.")
registry.register("search", cmd_search, help_text="Search name/description: /search [term].")
registry.register("find", cmd_find, help_text="Run the current view as a server-side query.")
registry.register("priority", cmd_priority, help_text="Filter by priority: /priority low|medium|high|all.")
registry.register("status", cmd_status, help_text="Filter by status: /status all|completed|pending|deleted.")
registry.register("sort", cmd_sort, help_text="Sort order: /sort priority-high-low|priority-low-high|newest-first|oldest-first.")
registry.register("view", cmd_view, help_text="Show current search/filter/sort.")
registry.register("busy", cmd_busy, help_text="Show operations in flight.")
registry.register("error", cmd_error, help_text="Show or clear the last error: /error | /error clear.")
