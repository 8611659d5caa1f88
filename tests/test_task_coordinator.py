# tests/test_task_coordinator.py

from __future__ import annotations

import asyncio

import pytest

from taskdeck.tasks.task_api import TaskRepository
from taskdeck.tasks.task_cache import TaskCache
from taskdeck.tasks.task_coordinator import OperationCoordinator, OpKind
from taskdeck.tasks.task_errors import NotFound, StorageError
from taskdeck.tasks.task_models import StatusFilter
from taskdeck.tasks.task_store import MemoryTaskStore

from .fakes import FakeTaskRepo, make_task

DRAFT = {"name": "Write report", "description": "quarterly numbers", "priority": "high", "dueDate": "2030-01-01"}


def _coordinator(tasks=()) -> tuple[OperationCoordinator, FakeTaskRepo, TaskCache]:
    repo = FakeTaskRepo(tasks)
    cache = TaskCache()
    return OperationCoordinator(repo, cache), repo, cache


@pytest.mark.asyncio
async def test_busy_while_pending_and_idle_after_settle() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    repo.gate = asyncio.Event()

    op = asyncio.create_task(coord.soft_delete("a"))
    await asyncio.sleep(0)
    assert coord.is_busy("a")
    assert coord.pending_op("a") == OpKind.SOFT_DELETE
    assert not coord.is_busy("b")

    repo.gate.set()
    task = await op
    assert task is not None and task.deleted
    assert not coord.is_busy("a")
    assert coord.busy_ids() == {}


@pytest.mark.asyncio
async def test_refreshes_exactly_once_after_success_and_failure() -> None:
    coord, repo, cache = _coordinator([make_task("a")])

    await coord.update("a", {"name": "renamed"})
    assert coord.refresh_count == 1
    assert [c[0] for c in repo.calls] == ["update", "list"]

    repo.fail_with = StorageError("disk full")
    await coord.update("a", {"name": "again"})
    assert coord.refresh_count == 2
    assert [c[0] for c in repo.calls] == ["update", "list", "update", "list"]


@pytest.mark.asyncio
async def test_failure_sets_error_and_clears_busy() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    repo.fail_with = NotFound("Task a not found")

    result = await coord.restore("a")
    assert result is None
    assert cache.error == "Task a not found"
    assert not coord.is_busy("a")


@pytest.mark.asyncio
async def test_most_recent_error_wins_and_success_clears_it() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    repo.fail_with = StorageError("first")
    await coord.update("a", {"name": "x"})
    repo.fail_with = NotFound("second")
    await coord.update("a", {"name": "y"})
    assert cache.error == "second"

    await coord.update("a", {"name": "z"})
    assert cache.error is None


@pytest.mark.asyncio
async def test_cache_reconciles_to_repository_after_each_operation() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    # Client-only state that the repository never saw.
    cache.reconcile([make_task("ghost")])

    created = await coord.create(DRAFT)
    assert created is not None
    assert [t.id for t in cache.tasks] == [t.id for t in repo.tasks]
    assert cache.find("ghost") is None


@pytest.mark.asyncio
async def test_create_is_tracked_under_provisional_key() -> None:
    coord, repo, cache = _coordinator()
    repo.gate = asyncio.Event()

    op = asyncio.create_task(coord.create(DRAFT))
    await asyncio.sleep(0)
    busy = coord.busy_ids()
    assert list(busy.values()) == [OpKind.CREATE]

    repo.gate.set()
    await op
    assert coord.busy_ids() == {}


@pytest.mark.asyncio
async def test_operations_on_different_ids_run_concurrently() -> None:
    coord, repo, cache = _coordinator([make_task("a"), make_task("b")])
    repo.gate = asyncio.Event()

    ops = [asyncio.create_task(coord.soft_delete("a")), asyncio.create_task(coord.hard_delete("b"))]
    await asyncio.sleep(0)
    assert coord.busy_ids() == {"a": OpKind.SOFT_DELETE, "b": OpKind.HARD_DELETE}

    repo.gate.set()
    deleted, purged = await asyncio.gather(*ops)
    assert deleted is not None and deleted.deleted
    assert purged is True
    assert [t.id for t in cache.tasks] == ["a"]


@pytest.mark.asyncio
async def test_same_id_dispatch_stays_busy_until_last_settles() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    repo.gate = asyncio.Event()

    first = asyncio.create_task(coord.update("a", {"name": "one"}))
    second = asyncio.create_task(coord.soft_delete("a"))
    await asyncio.sleep(0)
    assert coord.pending_op("a") == OpKind.SOFT_DELETE

    repo.gate.set()
    await asyncio.gather(first, second)
    assert not coord.is_busy("a")


@pytest.mark.asyncio
async def test_toggle_completed_flips_cached_value() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    await coord.refresh()

    task = await coord.toggle_completed("a")
    assert task is not None and task.completed is True
    task = await coord.toggle_completed("a")
    assert task is not None and task.completed is False

    assert await coord.toggle_completed("missing") is None
    assert cache.error == "Task missing not found"


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_cache() -> None:
    coord, repo, cache = _coordinator([make_task("a")])
    await coord.refresh()
    repo.fail_list = True

    assert await coord.refresh() is False
    assert [t.id for t in cache.tasks] == ["a"]
    assert cache.error == "Failed to load tasks"
    assert cache.loading is False


@pytest.mark.asyncio
async def test_search_fills_filtered_view() -> None:
    coord, repo, cache = _coordinator(
        [make_task("a", completed=True), make_task("b"), make_task("c", deleted=True)]
    )
    cache.set_status_filter("pending")
    result = await coord.search(silent=True)
    assert [t.id for t in result or []] == ["b"]
    assert [t.id for t in cache.filtered] == ["b"]
    assert cache.search_loading is False


@pytest.mark.asyncio
async def test_end_to_end_with_real_repository() -> None:
    repo = TaskRepository(MemoryTaskStore(), latency_seconds=0.0)
    cache = TaskCache()
    coord = OperationCoordinator(repo, cache)

    task = await coord.create(DRAFT)
    assert task is not None
    await coord.soft_delete(task.id)
    cache.set_status_filter(StatusFilter.DELETED.value)
    assert [t.id for t in cache.visible()] == [task.id]

    await coord.restore(task.id)
    assert cache.visible() == []

    assert await coord.hard_delete(task.id) is True
    assert cache.tasks == []
    assert await coord.update(task.id, {"name": "gone"}) is None
    assert cache.error == f"Task {task.id} not found"


@pytest.mark.asyncio
async def test_search_contains_unexpected_failures() -> None:
    coord, repo, cache = _coordinator([make_task("a")])

    async def broken_list(params=None):
        raise ValueError("not json")

    repo.list = broken_list
    assert await coord.search() is None
    assert cache.error == "Failed to search tasks"
    assert cache.search_loading is False
