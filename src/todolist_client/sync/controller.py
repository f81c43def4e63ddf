# src/todolist_client/sync/controller.py

"""
Optimistic sync controller.

Owns the local task list and the edit session. Every user action:
- replaces the local list immediately (new tuple, records never mutated),
- spawns one detached asyncio task that performs the matching remote call,
- reports the outcome through the notifier.

Key invariants:
- local state is never rolled back or corrected from a response,
- client-generated ids are never reconciled with ids the server assigns,
- in-flight calls are independent: no ordering, no cancellation,
- no RemoteOperationError escapes to the caller.

Operations must be called from inside a running event loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace

from ..api.client import RemoteOperationError
from ..core.models import EditSession, NotificationLevel, TaskRecord, next_client_id
from ..core.ports import Notifier, StateListener, TodoApi

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncController:
    def __init__(
        self,
        api: TodoApi,
        notifier: Notifier,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._api = api
        self._notifier = notifier
        self._clock = clock

        self._tasks: tuple[TaskRecord, ...] = ()
        self._edit = EditSession()
        self._pending: set[asyncio.Task[None]] = set()
        self._listeners: list[StateListener] = []

    # ---- read side ----

    @property
    def tasks(self) -> tuple[TaskRecord, ...]:
        return self._tasks

    @property
    def edit_session(self) -> EditSession:
        return self._edit

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def get(self, task_id: int) -> TaskRecord | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    # ---- list load ----

    def load(self) -> None:
        """Fetch the full list in the background; replaces the local list on success."""
        self._require_loop()
        self._spawn("load", self._load())

    async def refresh(self) -> bool:
        """Same as load(), but awaited. Returns True if the list was replaced."""
        return await self._load()

    async def _load(self) -> bool:
        try:
            records = await self._api.list_todos()
        except RemoteOperationError as e:
            logger.debug("load failed: %s", e, exc_info=True)
            self._notifier.show(NotificationLevel.ERROR, str(e))
            return False
        except Exception as e:
            logger.exception("load crashed")
            self._notifier.show(NotificationLevel.ERROR, str(e) or e.__class__.__name__)
            return False

        self._set_tasks(records)
        logger.info("Loaded %d todos from server", len(records))
        return True

    # ---- mutations ----

    def add(self, title: str) -> TaskRecord | None:
        """Append a new task and send it. Empty/whitespace-only titles are ignored."""
        if not title or not title.strip():
            return None
        self._require_loop()

        rec = TaskRecord(
            id=next_client_id(self._clock(), (t.id for t in self._tasks)),
            title=title,
            done=False,
        )
        self._set_tasks((*self._tasks, rec))
        # The server assigns its own id; it is not applied locally.
        self._confirm("create", lambda: self._api.create_todo(title))
        return rec

    def toggle(self, task_id: int) -> TaskRecord | None:
        self._require_loop()
        current = self.get(task_id)
        if current is None:
            logger.warning("toggle: unknown task id=%s", task_id)
            return None

        updated = replace(current, done=not current.done)
        self._set_tasks(updated if t.id == task_id else t for t in self._tasks)
        self._confirm("toggle", lambda: self._api.update_done(task_id, updated.done))
        return updated

    def rename(self, task_id: int, new_title: str) -> TaskRecord | None:
        """Replace a title (empty allowed) and leave edit mode."""
        self._require_loop()
        self._edit = EditSession()

        current = self.get(task_id)
        if current is None:
            logger.warning("rename: unknown task id=%s", task_id)
            self._changed()
            return None

        updated = replace(current, title=new_title)
        self._set_tasks(updated if t.id == task_id else t for t in self._tasks)
        self._confirm("rename", lambda: self._api.update_title(task_id, new_title))
        return updated

    def delete(self, task_id: int) -> bool:
        self._require_loop()
        if self.get(task_id) is None:
            logger.warning("delete: unknown task id=%s", task_id)
            return False

        if self._edit.is_editing(task_id):
            self._edit = EditSession()
        self._set_tasks(t for t in self._tasks if t.id != task_id)
        self._confirm("delete", lambda: self._api.delete_todo(task_id))
        return True

    # ---- edit session ----

    def begin_edit(self, task_id: int) -> bool:
        current = self.get(task_id)
        if current is None:
            return False
        self._edit = EditSession(active=True, target_id=task_id, buffer=current.title)
        self._changed()
        return True

    def set_edit_buffer(self, text: str) -> None:
        if not self._edit.active:
            return
        self._edit = replace(self._edit, buffer=text)

    def save_edit(self) -> TaskRecord | None:
        if not self._edit.active or self._edit.target_id is None:
            return None
        return self.rename(self._edit.target_id, self._edit.buffer)

    def cancel_edit(self) -> bool:
        if not self._edit.active:
            return False
        self._edit = EditSession()
        self._changed()
        return True

    # ---- background confirmations ----

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight remote calls. Never raises."""
        while self._pending:
            _, not_done = await asyncio.wait(list(self._pending), timeout=timeout)
            if not_done:
                logger.warning("Gave up waiting for %d in-flight request(s)", len(not_done))
                return

    def _confirm(self, label: str, call: Callable[[], Awaitable[str]]) -> None:
        self._spawn(label, self._run_confirmation(label, call))

    async def _run_confirmation(self, label: str, call: Callable[[], Awaitable[str]]) -> None:
        try:
            body = await call()
        except RemoteOperationError as e:
            logger.debug("%s failed: %s", label, e, exc_info=True)
            self._notifier.show(NotificationLevel.ERROR, str(e))
            return
        except Exception as e:
            logger.exception("%s crashed", label)
            self._notifier.show(NotificationLevel.ERROR, str(e) or e.__class__.__name__)
            return

        logger.debug("%s ok: %s", label, body)
        self._notifier.show(NotificationLevel.SUCCESS, body)

    @staticmethod
    def _require_loop() -> None:
        # Checked before any local mutation so a misuse leaves state untouched.
        try:
            asyncio.get_running_loop()
        except RuntimeError as e:
            raise RuntimeError("SyncController operations need a running event loop") from e

    def _spawn(self, label: str, coro: Awaitable[object]) -> None:
        task = asyncio.ensure_future(coro)
        task.set_name(f"todo-sync-{label}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # ---- state replacement ----

    def _set_tasks(self, tasks) -> None:
        self._tasks = tuple(tasks)
        self._changed()

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("State listener failed.")
