# src/todolist_client/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.models import Notification, TaskRecord
from ..core.state import AppState

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

# /save "" and /save '' clear the title; a blank console line is ignored instead.
EMPTY_TITLE_ARGS = ('""', "''")


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /done, ...)."""

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
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit, /quit - Leave the console.")
        lines.append("  (plain text adds a task, or sets the new title while editing)")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def task_marker(done: bool) -> str:
    return "✅" if done else "🔲"


def render_tasks(state: AppState) -> str:
    tasks = state.controller.tasks
    if not tasks:
        return "Todo List: (empty)"

    edit = state.controller.edit_session
    lines = ["Todo List:"]
    for i, t in enumerate(tasks, start=1):
        suffix = "  [editing]" if edit.is_editing(t.id) else ""
        lines.append(f"  {i}. {task_marker(t.done)} {t.title}{suffix}")
    return "\n".join(lines)


def render_notification(notification: Notification | None) -> str | None:
    if notification is None:
        return None
    return f"[{notification.level.value.upper()}] {notification.text}"


def _resolve_position(state: AppState, args: list[str]) -> TaskRecord | str:
    """Map a 1-based list position to a task, or return an error message."""
    if not args:
        return "Missing task number. Use /list to see numbers."
    try:
        pos = int(args[0])
    except ValueError:
        return f"Not a task number: {args[0]}"

    tasks = state.controller.tasks
    if pos < 1 or pos > len(tasks):
        return f"No task #{pos} (list has {len(tasks)})."
    return tasks[pos - 1]


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_tasks(state)


def cmd_add(state: AppState, args: list[str]) -> str:
    title = " ".join(args)
    rec = state.controller.add(title)
    if rec is None:
        return "Nothing to add."
    return f"Added: {rec.title}"


def cmd_done(state: AppState, args: list[str]) -> str:
    target = _resolve_position(state, args)
    if isinstance(target, str):
        return target
    updated = state.controller.toggle(target.id)
    if updated is None:
        return "Task disappeared before it could be toggled."
    return f"{task_marker(updated.done)} {updated.title}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    target = _resolve_position(state, args)
    if isinstance(target, str):
        return target
    state.controller.begin_edit(target.id)
    return f"Editing '{target.title}'. Type the new title (or /save, /cancel)."


def cmd_save(state: AppState, args: list[str]) -> str:
    """
    /save          -> save the current edit buffer
    /save <title>  -> save with this title
    /save ""       -> save an empty title
    """
    ctrl = state.controller
    if not ctrl.edit_session.active:
        return "Not editing. Use /edit N first."
    if args:
        title = " ".join(args)
        ctrl.set_edit_buffer("" if title in EMPTY_TITLE_ARGS else title)
    updated = ctrl.save_edit()
    if updated is None:
        return "Task disappeared before it could be renamed."
    return f"Renamed to: {updated.title}"


def cmd_cancel(state: AppState, args: list[str]) -> str:
    if state.controller.cancel_edit():
        return "Edit cancelled."
    return "Not editing."


def cmd_rm(state: AppState, args: list[str]) -> str:
    target = _resolve_position(state, args)
    if isinstance(target, str):
        return target
    state.controller.delete(target.id)
    return f"Deleted: {target.title}"


def cmd_reload(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit is not None:
        emit("Reloading from server...")
    state.controller.load()
    return "Reload requested."


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    state.notifier.dismiss()
    return "Notification dismissed."


def cmd_status(state: AppState, args: list[str]) -> str:
    ctrl = state.controller
    editing = "yes" if ctrl.edit_session.active else "no"
    backend = getattr(state.settings, "backend_url", "?")
    return (
        "Status:\n"
        f"  Backend: {backend}\n"
        f"  Tasks: {len(ctrl.tasks)} ({sum(1 for t in ctrl.tasks if t.done)} done)\n"
        f"  In-flight requests: {ctrl.pending_count}\n"
        f"  Editing: {editing}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the todo list.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done N.", aliases=["toggle"])
registry.register("edit", cmd_edit, help_text="Start renaming task N: /edit N.")
registry.register("save", cmd_save, help_text='Save the rename: /save [title] (/save "" for an empty title).')
registry.register("cancel", cmd_cancel, help_text="Leave edit mode without saving.")
registry.register("rm", cmd_rm, help_text="Delete task N: /rm N.", aliases=["del", "delete"])
registry.register("reload", cmd_reload, help_text="Fetch the list from the server again.")
registry.register("dismiss", cmd_dismiss, help_text="Close the current notification.")
registry.register("status", cmd_status, help_text="Show backend / request status.")
