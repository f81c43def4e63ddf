# src/todolist_client/core/models.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"

    @classmethod
    def parse(cls, raw: str | None) -> NotificationLevel:
        # Anything that is not recognisably "success" is shown as an error.
        if raw and raw.strip().lower() == cls.SUCCESS.value:
            return cls.SUCCESS
        return cls.ERROR


@dataclass(slots=True, frozen=True)
class TaskRecord:
    id: int
    title: str
    done: bool = False

    @classmethod
    def from_api(cls, raw: Any) -> TaskRecord | None:
        """
        Build a record from one element of the /getAllTodos payload.

        Returns None for entries that cannot carry an id; title/done fall back
        to "" / False so a sloppy server row still shows up.
        """
        if not isinstance(raw, dict):
            return None
        try:
            task_id = int(raw.get("id"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None

        title_any = raw.get("title", "")
        title = title_any if isinstance(title_any, str) else str(title_any or "")

        done_any = raw.get("done", False)
        if isinstance(done_any, str):
            done = done_any.strip().lower() in {"1", "true", "yes"}
        else:
            done = bool(done_any)

        return cls(id=task_id, title=title, done=done)


def parse_task_list(payload: Any) -> list[TaskRecord]:
    """Convert a decoded JSON body into task records, skipping malformed rows."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array of todos, got {type(payload).__name__}")

    out: list[TaskRecord] = []
    for item in payload:
        rec = TaskRecord.from_api(item)
        if rec is None:
            logger.warning("Skipping malformed todo row: %r", item)
            continue
        out.append(rec)
    return out


@dataclass(slots=True, frozen=True)
class Notification:
    level: NotificationLevel
    text: str


@dataclass(slots=True, frozen=True)
class EditSession:
    """
    At most one task is being renamed at a time.

    Viewing is EditSession() (active=False); Editing(x) is active=True, target_id=x.
    """

    active: bool = False
    target_id: int | None = None
    buffer: str = ""

    def is_editing(self, task_id: int) -> bool:
        return self.active and self.target_id == task_id


def next_client_id(now_ms: int, existing: Iterable[int]) -> int:
    """Time-based id, bumped past any id already in the list."""
    taken = set(existing)
    candidate = int(now_ms)
    while candidate in taken:
        candidate += 1
    return candidate
