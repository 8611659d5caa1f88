# tests/test_api_client.py

from __future__ import annotations

import httpx
import pytest

from taskdeck.api.client import HttpTaskRepo
from taskdeck.api.server import create_app
from taskdeck.tasks.task_errors import NetworkError, NotFound, StorageError, ValidationError
from taskdeck.tasks.task_models import StatusFilter, ViewParams

DRAFT = {"name": "Ship it", "description": "release 1.0 to users", "priority": "high", "dueDate": "2030-01-01"}


def _http_repo(repo) -> HttpTaskRepo:
    return HttpTaskRepo("http://testserver", transport=httpx.ASGITransport(app=create_app(repo)))


@pytest.mark.asyncio
async def test_round_trip_through_http(repo) -> None:
    async with _http_repo(repo) as client:
        task = await client.create(DRAFT)
        assert task.priority == "high"
        assert (await client.get(task.id)) == task

        done = await client.update(task.id, {"completed": True})
        assert done.completed is True

        assert [t.id for t in await client.list(ViewParams(status=StatusFilter.PENDING))] == []
        assert [t.id for t in await client.list()] == [task.id]

        await client.delete(task.id)
        assert await client.list() == []


@pytest.mark.asyncio
async def test_error_statuses_map_to_task_errors(repo) -> None:
    async with _http_repo(repo) as client:
        with pytest.raises(ValidationError) as excinfo:
            await client.create({"name": "only"})
        assert "Missing required fields" in excinfo.value.message

        with pytest.raises(NotFound) as excinfo:
            await client.update("missing", {"name": "x"})
        assert excinfo.value.message == "Task missing not found"

        with pytest.raises(NotFound):
            await client.delete("missing")


@pytest.mark.asyncio
async def test_transport_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with HttpTaskRepo("http://testserver", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError):
            await client.list()


@pytest.mark.asyncio
async def test_server_errors_and_bad_payloads() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/tasks/broken":
            return httpx.Response(200, json={"unexpected": True})
        if request.url.path == "/tasks/gateway":
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(500, json={"error": "Failed to save tasks"})

    async with HttpTaskRepo("http://testserver", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(StorageError, match="Unexpected task payload"):
            await client.get("broken")
        with pytest.raises(NetworkError):
            await client.get("gateway")
        with pytest.raises(StorageError) as excinfo:
            await client.update("a", {"name": "x"})
        assert excinfo.value.message == "Failed to save tasks"
