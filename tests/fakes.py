# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

from taskdeck.tasks.task_errors import NotFound, StorageError, TaskError
from taskdeck.tasks.task_models import Priority, Task, ViewParams
from taskdeck.tasks.task_query import query

BASE_TS = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def make_task(
    task_id: str,
    *,
    name: str | None = None,
    description: str = "some description",
    priority: str = "medium",
    completed: bool = False,
    deleted: bool = False,
    created_offset_minutes: int = 0,
    due_date: str = "2030-01-01",
) -> Task:
    created = BASE_TS + timedelta(minutes=created_offset_minutes)
    return Task(
        id=task_id,
        name=name or f"Task {task_id}",
        description=description,
        priority=Priority(priority),
        due_date=due_date,
        created_at=created,
        updated_at=created,
        completed=completed,
        deleted=deleted,
    )


class FakeTaskRepo:
    """
    In-memory TaskRepo used for coordinator/cache unit tests.

    - `fail_with` makes the next mutating call raise the given error
    - `gate` (when set) holds every call until the event is set, so tests
      can observe the pending phase
    - `calls` records (method, args) for assertions
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self.tasks: list[Task] = list(tasks)
        self.fail_with: TaskError | None = None
        self.fail_list = False
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, Any]] = []
        self._seq = 0

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            err, self.fail_with = self.fail_with, None
            raise err

    def _index(self, task_id: str) -> int:
        for i, t in enumerate(self.tasks):
            if t.id == task_id:
                return i
        raise NotFound(f"Task {task_id} not found")

    async def list(self, params: ViewParams | None = None) -> list[Task]:
        self.calls.append(("list", params))
        await self._wait()
        if self.fail_list:
            raise StorageError("Failed to load tasks")
        return list(self.tasks) if params is None else query(self.tasks, params)

    async def get(self, task_id: str) -> Task:
        self.calls.append(("get", task_id))
        await self._wait()
        return self.tasks[self._index(task_id)]

    async def create(self, data: Mapping[str, Any]) -> Task:
        self.calls.append(("create", dict(data)))
        await self._wait()
        self._maybe_fail()
        self._seq += 1
        task = replace(
            make_task(f"fake{self._seq}", created_offset_minutes=self._seq),
            name=data["name"],
            description=data["description"],
            priority=Priority(data["priority"]),
            due_date=data["dueDate"],
        )
        self.tasks.append(task)
        return task

    async def update(self, task_id: str, partial: Mapping[str, Any]) -> Task:
        self.calls.append(("update", (task_id, dict(partial))))
        await self._wait()
        self._maybe_fail()
        idx = self._index(task_id)
        task = self.tasks[idx]
        kwargs = {}
        for key in ("name", "description", "completed", "deleted"):
            if key in partial:
                kwargs[key] = partial[key]
        if "priority" in partial:
            kwargs["priority"] = Priority(partial["priority"])
        updated = replace(task, **kwargs, updated_at=task.updated_at + timedelta(seconds=1))
        self.tasks[idx] = updated
        return updated

    async def delete(self, task_id: str) -> None:
        self.calls.append(("delete", task_id))
        await self._wait()
        self._maybe_fail()
        del self.tasks[self._index(task_id)]


class FailingStore:
    """Snapshot store whose save() always fails."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self.tasks = list(tasks)

    def load(self) -> list[Task]:
        return list(self.tasks)

    def save(self, tasks: Iterable[Task]) -> None:
        raise StorageError("Failed to save tasks")
