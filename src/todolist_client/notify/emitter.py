# src/todolist_client/notify/emitter.py

from __future__ import annotations

import asyncio
import logging

from ..core.models import Notification, NotificationLevel
from ..core.ports import NotificationListener

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """
    Single transient message slot.

    - show() replaces whatever is visible and restarts the auto-dismiss timer
    - dismiss() clears it (explicit close or timer)
    - no queue: a newer show() always wins

    The timer is only armed when show() is called from inside a running event
    loop; otherwise the notification stays until dismiss().
    """

    def __init__(self, *, timeout_seconds: float = 6.0) -> None:
        self.timeout_seconds = float(timeout_seconds)
        self._current: Notification | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._listeners: list[NotificationListener] = []

    @property
    def current(self) -> Notification | None:
        return self._current

    def subscribe(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def show(self, level: NotificationLevel | str, text: str) -> None:
        if not isinstance(level, NotificationLevel):
            level = NotificationLevel.parse(level)
        self._cancel_timer()
        self._current = Notification(level=level, text=str(text))
        self._arm_timer()
        self._fire()

    def dismiss(self) -> None:
        self._cancel_timer()
        if self._current is None:
            return
        self._current = None
        self._fire()

    def _arm_timer(self) -> None:
        if self.timeout_seconds <= 0:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self.timeout_seconds, self.dismiss)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._current)
            except Exception:
                logger.exception("Notification listener failed.")
