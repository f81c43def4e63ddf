# src/todolist_client/api/client.py

"""
Async HTTP client for the todo backend.

Endpoints (all relative to the configured base URL):
- GET    /getAllTodos                    -> JSON array of {id, title, done}
- POST   /createTodo     {"title": ...}  -> plain-text confirmation
- POST   /updateTodo?id=&done= | ?id=&title=
- DELETE /deleteTodo?id=

Any transport error, timeout or non-2xx status is raised as RemoteOperationError.
The client never retries; callers decide what a failure means.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.models import TaskRecord, parse_task_list

logger = logging.getLogger(__name__)


class RemoteOperationError(Exception):
    """A remote call failed. str(err) is safe to show to the user."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.message = message


def _describe_status_error(resp: httpx.Response) -> str:
    msg = f"Request failed with status code {resp.status_code}"
    body = (resp.text or "").strip()
    if body:
        msg = f"{msg}: {body}"
    return msg


class HttpTodoApi:
    """httpx-backed implementation of the TodoApi port."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> HttpTodoApi:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        logger.debug("%s %s params=%s", method, path, params)
        try:
            resp = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            raise RemoteOperationError(operation, f"Request timed out ({method} {path})") from e
        except httpx.RequestError as e:
            raise RemoteOperationError(operation, f"Network error: {e}") from e

        if resp.is_error:
            raise RemoteOperationError(operation, _describe_status_error(resp))
        return resp

    # ---- endpoints ----

    async def list_todos(self) -> list[TaskRecord]:
        resp = await self._request("list", "GET", "/getAllTodos")
        try:
            return parse_task_list(resp.json())
        except ValueError as e:
            # json.JSONDecodeError is a ValueError as well.
            raise RemoteOperationError("list", f"Invalid todo list payload: {e}") from e

    async def create_todo(self, title: str) -> str:
        resp = await self._request("create", "POST", "/createTodo", json={"title": title})
        return resp.text.strip()

    async def update_done(self, task_id: int, done: bool) -> str:
        params = {"id": task_id, "done": "true" if done else "false"}
        resp = await self._request("update", "POST", "/updateTodo", params=params)
        return resp.text.strip()

    async def update_title(self, task_id: int, title: str) -> str:
        params = {"id": task_id, "title": title}
        resp = await self._request("update", "POST", "/updateTodo", params=params)
        return resp.text.strip()

    async def delete_todo(self, task_id: int) -> str:
        resp = await self._request("delete", "DELETE", "/deleteTodo", params={"id": task_id})
        return resp.text.strip()
