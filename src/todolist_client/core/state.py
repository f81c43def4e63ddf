# src/todolist_client/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..notify.emitter import NotificationEmitter
from ..sync.controller import SyncController
from .ports import TodoApi


@dataclass
class AppState:
    """
    Everything the presentation layer needs, passed by reference.

    The controller owns the task list and the edit session; the emitter owns
    the single visible notification.
    """

    settings: Any
    api: TodoApi
    notifier: NotificationEmitter
    controller: SyncController
