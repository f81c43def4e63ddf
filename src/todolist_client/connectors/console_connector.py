# src/todolist_client/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import queue
import sys
import threading
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_notification, render_tasks
from ..core.models import Notification
from ..core.state import AppState

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit")


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts_block(text: str) -> None:
    ts = _ts_local()
    lines = text.splitlines() or [""]
    for i, line in enumerate(lines):
        # keep alignment for multi-line output
        prefix = f"[{ts}] " if i == 0 else " " * (len(ts) + 3)
        print(prefix + line, flush=True)


def handle_line(state: AppState, line: str) -> str | None:
    """
    Route one line of input.

    - slash commands go to the registry
    - while editing, plain text becomes the new title and is saved
    - otherwise plain text adds a task (blank text is ignored)
    """
    if line.startswith("/"):
        return command_registry.handle(state, line, emit=_print_ts_block)

    ctrl = state.controller
    if ctrl.edit_session.active:
        ctrl.set_edit_buffer(line)
        updated = ctrl.save_edit()
        return None if updated is None else f"Renamed to: {updated.title}"

    ctrl.add(line)
    return None


class ConsoleLineReader:
    """
    Reads console lines in a daemon thread and hands them to the event loop.

    One line is read per readline() call, so the prompt shows up only when the
    loop is ready for input. The thread is never joined: a reader blocked in
    input() must not keep the process alive after the loop stops.
    """

    def __init__(self, prompt: str = ">>> ", read: Callable[[str], str] = input) -> None:
        self._prompt = prompt
        self._read = read
        self._requests: queue.Queue[asyncio.Future[str | None]] = queue.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    async def readline(self) -> str | None:
        """Next line without its newline, or None on EOF."""
        if self._thread is None:
            self._loop = asyncio.get_running_loop()
            self._thread = threading.Thread(target=self._worker, name="console-reader", daemon=True)
            self._thread.start()

        assert self._loop is not None
        fut: asyncio.Future[str | None] = self._loop.create_future()
        self._requests.put(fut)
        return await fut

    def _worker(self) -> None:
        while True:
            fut = self._requests.get()
            line: str | None
            try:
                line = self._read(self._prompt)
            except EOFError:
                line = None
            except Exception:
                logger.exception("Console read failed.")
                line = None

            try:
                assert self._loop is not None
                self._loop.call_soon_threadsafe(_resolve, fut, line)
            except RuntimeError:
                # Event loop already closed.
                return
            if line is None:
                return


def _resolve(fut: asyncio.Future[str | None], line: str | None) -> None:
    if not fut.done():
        fut.set_result(line)


async def run_console_loop(state: AppState, *, reader: ConsoleLineReader | None = None) -> None:
    logger.info("Console connector started (backend=%s).", state.settings.backend_url)
    _print_ts_block("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    if reader is None:
        reader = ConsoleLineReader()

    def on_change() -> None:
        _print_ts_block(render_tasks(state))

    def on_notification(notification: Notification | None) -> None:
        text = render_notification(notification)
        if text is not None:
            _print_ts_block(text)

    state.controller.subscribe(on_change)
    state.notifier.subscribe(on_notification)

    if getattr(state.settings, "load_on_start", True):
        state.controller.load()
    else:
        on_change()

    while True:
        try:
            raw = await reader.readline()
        except asyncio.CancelledError:
            # Ctrl+C: asyncio.run() cancels the main task.
            logger.info("Console interrupted, exiting.")
            print()
            raise

        if raw is None:
            logger.info("Console EOF received, exiting.")
            break

        user_input = raw.strip()
        _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")

        if not user_input:
            continue

        if user_input.lower() in EXIT_COMMANDS:
            logger.info("Console exit command received.")
            break

        try:
            response = handle_line(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            _print_ts_block(response)

    logger.info("Console connector finished.")
