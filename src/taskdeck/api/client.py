# src/taskdeck/api/client.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ..tasks.task_errors import NetworkError, StorageError, TaskError, error_for_status
from ..tasks.task_models import Task, ViewParams

logger = logging.getLogger(__name__)


class HttpTaskRepo:
    """
    TaskRepo implementation talking to the taskdeck HTTP API.

    Error mapping:
    - transport failures / timeouts -> NetworkError
    - 400 -> ValidationError, 404 -> NotFound, other 5xx -> StorageError/NetworkError
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpTaskRepo:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ---- low-level helpers ----

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, url)
            raise NetworkError("Task service timed out") from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s transport failure: %s", method, url, exc)
            raise NetworkError() from exc

        if resp.is_error:
            message: str | None = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    message = body.get("error")
            except ValueError:
                pass
            raise error_for_status(resp.status_code, message)
        return resp

    @staticmethod
    def _to_task(data: Any) -> Task:
        if not isinstance(data, dict):
            raise StorageError("Unexpected task payload from server")
        try:
            return Task.from_dict(data)
        except TaskError as exc:
            raise StorageError(f"Unexpected task payload from server: {exc.message}") from exc

    # ---- TaskRepo ----

    async def list(self, params: ViewParams | None = None) -> list[Task]:
        query = params.to_query() if params is not None else None
        resp = await self._request("GET", "/tasks", params=query)
        data = resp.json()
        if not isinstance(data, list):
            raise StorageError("Unexpected task list payload from server")
        return [self._to_task(item) for item in data]

    async def get(self, task_id: str) -> Task:
        resp = await self._request("GET", f"/tasks/{task_id}")
        return self._to_task(resp.json())

    async def create(self, data: Mapping[str, Any]) -> Task:
        resp = await self._request("POST", "/tasks", json=dict(data))
        return self._to_task(resp.json())

    async def update(self, task_id: str, partial: Mapping[str, Any]) -> Task:
        resp = await self._request("PUT", f"/tasks/{task_id}", json=dict(partial))
        return self._to_task(resp.json())

    async def delete(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")
