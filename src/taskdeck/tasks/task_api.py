# src/taskdeck/tasks/task_api.py

"""
Task repository.

Async request handlers over a snapshot store. Every call:
- waits an artificial latency (so callers always see a pending phase),
- then runs load -> mutate -> save with no await in between, which makes each
  read-modify-write atomic on the event loop.

Mutations on the same task id are additionally serialized with a per-id lock,
so two concurrent updates to one task apply one after the other instead of
both starting from the same snapshot.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.ports import SnapshotStore
from .task_errors import NotFound, ValidationError
from .task_models import (
    MUTABLE_FIELDS,
    REQUIRED_CREATE_FIELDS,
    Priority,
    Task,
    ViewParams,
    parse_due,
    utc_now,
)
from .task_query import query

logger = logging.getLogger(__name__)


def _require_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string")
    return value


def _require_bool(field: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false")
    return value


def _require_due(value: Any) -> str:
    due = _require_text("dueDate", value)
    parse_due(due)
    return due


def _find(tasks: list[Task], task_id: str) -> int:
    for i, t in enumerate(tasks):
        if t.id == task_id:
            return i
    raise NotFound(f"Task {task_id} not found")


class TaskRepository:
    def __init__(
        self,
        store: SnapshotStore,
        *,
        latency_seconds: float = 0.5,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._latency = max(0.0, float(latency_seconds))
        self._clock = clock
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    # ---- low-level helpers ----

    async def _delay(self) -> None:
        # Always yield once, even with zero latency, so calls never complete synchronously.
        await asyncio.sleep(self._latency)

    @contextlib.asynccontextmanager
    async def _serialized(self, task_id: str) -> AsyncIterator[None]:
        """Hold the per-id lock; the lock is dropped once no caller holds or awaits it."""
        lock = self._locks.get(task_id)
        if lock is None:
            lock = self._locks[task_id] = asyncio.Lock()
        self._lock_users[task_id] = self._lock_users.get(task_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            left = self._lock_users[task_id] - 1
            if left:
                self._lock_users[task_id] = left
            else:
                del self._lock_users[task_id]
                del self._locks[task_id]

    def _new_id(self, taken: set[str]) -> str:
        while True:
            task_id = self._id_factory()
            if task_id not in taken:
                return task_id

    def _merge(self, task: Task, partial: Mapping[str, Any]) -> Task:
        changes = {k: partial[k] for k in MUTABLE_FIELDS if k in partial}
        if task.deleted and set(changes) - {"deleted"}:
            raise ValidationError("Task is deleted; restore it before editing")

        kwargs: dict[str, Any] = {}
        if "name" in changes:
            kwargs["name"] = _require_text("name", changes["name"])
        if "description" in changes:
            kwargs["description"] = _require_text("description", changes["description"])
        if "priority" in changes:
            kwargs["priority"] = Priority.parse(changes["priority"])
        if "dueDate" in changes:
            kwargs["due_date"] = _require_due(changes["dueDate"])
        if "completed" in changes:
            kwargs["completed"] = _require_bool("completed", changes["completed"])
        if "deleted" in changes:
            kwargs["deleted"] = _require_bool("deleted", changes["deleted"])

        return replace(task, **kwargs, updated_at=max(self._clock(), task.created_at))

    # ---- public API ----

    async def list(self, params: ViewParams | None = None) -> list[Task]:
        """Full snapshot, or the query-engine view of it when params are given."""
        await self._delay()
        tasks = self._store.load()
        if params is None:
            return tasks
        return query(tasks, params)

    async def get(self, task_id: str) -> Task:
        await self._delay()
        tasks = self._store.load()
        return tasks[_find(tasks, task_id)]

    async def create(self, data: Mapping[str, Any]) -> Task:
        missing = [f for f in REQUIRED_CREATE_FIELDS if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        name = _require_text("name", data["name"])
        description = _require_text("description", data["description"])
        priority = Priority.parse(data["priority"])
        due_date = _require_due(data["dueDate"])
        completed = _require_bool("completed", data.get("completed", False))

        await self._delay()
        tasks = self._store.load()
        now = self._clock()
        task = Task(
            id=self._new_id({t.id for t in tasks}),
            name=name,
            description=description,
            priority=priority,
            due_date=due_date,
            created_at=now,
            updated_at=now,
            completed=completed,
            deleted=False,
        )
        tasks.append(task)
        self._store.save(tasks)
        logger.info("Task created id=%s priority=%s", task.id, task.priority.value)
        return task

    async def update(self, task_id: str, partial: Mapping[str, Any]) -> Task:
        async with self._serialized(task_id):
            await self._delay()
            tasks = self._store.load()
            idx = _find(tasks, task_id)
            updated = self._merge(tasks[idx], partial)
            tasks[idx] = updated
            self._store.save(tasks)
        logger.info(
            "Task updated id=%s fields=%s",
            task_id,
            ",".join(k for k in MUTABLE_FIELDS if k in partial) or "-",
        )
        return updated

    async def delete(self, task_id: str) -> None:
        async with self._serialized(task_id):
            await self._delay()
            tasks = self._store.load()
            idx = _find(tasks, task_id)
            del tasks[idx]
            self._store.save(tasks)
        logger.info("Task permanently deleted id=%s", task_id)
