# src/todolist_client/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the HTTP client, notification emitter and sync controller into AppState.
"""

from __future__ import annotations

import logging

from ..api.client import HttpTodoApi
from ..config import get_settings
from ..core.ports import TodoApi
from ..core.state import AppState
from ..notify.emitter import NotificationEmitter
from ..sync.controller import SyncController

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, api: TodoApi | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the API client) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if api is None:
        api = HttpTodoApi(settings.backend_url, timeout=settings.request_timeout_seconds)
        logger.info("Using backend %s", settings.backend_url)

    notifier = NotificationEmitter(timeout_seconds=settings.notification_timeout_seconds)
    controller = SyncController(api, notifier)

    return AppState(
        settings=settings,
        api=api,
        notifier=notifier,
        controller=controller,
    )


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown: let in-flight requests finish, then close the client."""
    timeout = float(getattr(state.settings, "drain_timeout_seconds", 5.0))
    try:
        await state.controller.drain(timeout=timeout)
    except Exception:
        logger.exception("Failed to drain in-flight requests.")

    state.notifier.dismiss()

    try:
        await state.api.aclose()
    except Exception:
        logger.debug("API client close failed.", exc_info=True)
