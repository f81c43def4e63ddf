# src/todolist_client/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The sync controller depends on Protocols instead of concrete implementations,
so the HTTP client can be swapped for an in-memory fake in tests.
"""

from collections.abc import Callable
from typing import Protocol

from .models import Notification, NotificationLevel, TaskRecord

# Called after the task list or the edit session changed; read state from the controller.
StateListener = Callable[[], None]
NotificationListener = Callable[[Notification | None], None]


class TodoApi(Protocol):
    """
    Remote todo store.

    Every method raises RemoteOperationError on failure. Mutations return the
    server's response body as text (shown to the user verbatim).
    """

    async def list_todos(self) -> list[TaskRecord]: ...
    async def create_todo(self, title: str) -> str: ...
    async def update_done(self, task_id: int, done: bool) -> str: ...
    async def update_title(self, task_id: int, title: str) -> str: ...
    async def delete_todo(self, task_id: int) -> str: ...
    async def aclose(self) -> None: ...


class Notifier(Protocol):
    """Where the controller reports outcomes of remote calls."""

    def show(self, level: NotificationLevel, text: str) -> None: ...
    def dismiss(self) -> None: ...
