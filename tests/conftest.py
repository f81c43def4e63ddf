# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from todolist_client.cli.bootstrap import create_initial_state
from todolist_client.core.state import AppState

from .fakes import FakeTodoApi, NotificationRecorder


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="todolist-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        backend_url="http://todo.test",
        request_timeout_seconds=1.0,
        # 0 disables auto-dismiss so tests can inspect the last notification.
        notification_timeout_seconds=0.0,
        load_on_start=False,
        drain_timeout_seconds=1.0,
    )


@pytest.fixture()
def api() -> FakeTodoApi:
    return FakeTodoApi()


@pytest.fixture()
def state(settings: SimpleNamespace, api: FakeTodoApi) -> AppState:
    """AppState wired with the in-memory API fake."""
    return create_initial_state(settings=settings, api=api)


@pytest.fixture()
def notifications(state: AppState) -> NotificationRecorder:
    rec = NotificationRecorder()
    state.notifier.subscribe(rec)
    return rec
