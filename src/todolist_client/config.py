# src/todolist_client/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is contacted at import time; the backend URL is only read here.
- BACKEND_URL (unprefixed) is accepted as a fallback for existing deployments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TODO"

DEFAULT_BACKEND_URL = "http://localhost:8080"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Remote API ----
    backend_url: str
    request_timeout_seconds: float

    # ---- Behaviour ----
    notification_timeout_seconds: float
    load_on_start: bool
    drain_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todolist").strip() or "todolist"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todolist"))

        backend_url = (
            _first_env(_k("BACKEND_URL"), "BACKEND_URL", default=DEFAULT_BACKEND_URL)
            or DEFAULT_BACKEND_URL
        ).strip()
        # Paths are appended as "/getAllTodos" etc.
        backend_url = backend_url.rstrip("/")

        request_timeout_seconds = max(0.1, _env_float(_k("REQUEST_TIMEOUT_SECONDS"), 10.0))
        notification_timeout_seconds = max(
            0.0, _env_float(_k("NOTIFICATION_TIMEOUT_SECONDS"), 6.0)
        )
        load_on_start = _env_bool(_k("LOAD_ON_START"), True)
        drain_timeout_seconds = max(0.0, _env_float(_k("DRAIN_TIMEOUT_SECONDS"), 5.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            backend_url=backend_url,
            request_timeout_seconds=request_timeout_seconds,
            notification_timeout_seconds=notification_timeout_seconds,
            load_on_start=load_on_start,
            drain_timeout_seconds=drain_timeout_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
