# src/taskdeck/tasks/task_coordinator.py

from __future__ import annotations

"""
Operation coordinator.

Drives every mutating call through one path:
- mark the task id busy (pending(op)),
- await the repository,
- mirror the response into the cache, or record the error message,
- clear the busy mark unconditionally,
- refresh the cache from the repository exactly once.

Failures are never retried and never escape: the UI reads the single error
slot on the cache and stays usable.
"""

import itertools
import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import StrEnum
from typing import Any, TypeVar

from ..core.ports import TaskRepo
from .task_cache import TaskCache
from .task_errors import TaskError
from .task_models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OpKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    SOFT_DELETE = "soft_delete"
    RESTORE = "restore"
    HARD_DELETE = "hard_delete"


class OperationCoordinator:
    def __init__(self, repo: TaskRepo, cache: TaskCache) -> None:
        self._repo = repo
        self._cache = cache
        self._busy: dict[str, OpKind] = {}
        self._inflight: dict[str, int] = {}
        self._create_seq = itertools.count(1)
        self.refresh_count = 0

    @property
    def cache(self) -> TaskCache:
        return self._cache

    # ---- busy state ----

    def is_busy(self, task_id: str) -> bool:
        return task_id in self._busy

    def pending_op(self, task_id: str) -> OpKind | None:
        return self._busy.get(task_id)

    def busy_ids(self) -> dict[str, OpKind]:
        return dict(self._busy)

    def _begin(self, key: str, kind: OpKind) -> None:
        if key in self._inflight:
            # Not queued here; the repository serializes same-id mutations.
            logger.warning(
                "Dispatching %s while %s is pending task_id=%s", kind.value, self._busy[key].value, key
            )
        self._inflight[key] = self._inflight.get(key, 0) + 1
        self._busy[key] = kind

    def _end(self, key: str) -> None:
        left = self._inflight.get(key, 1) - 1
        if left <= 0:
            self._inflight.pop(key, None)
            self._busy.pop(key, None)
        else:
            self._inflight[key] = left

    async def _dispatch(
        self,
        key: str,
        kind: OpKind,
        call: Callable[[], Awaitable[T]],
        on_success: Callable[[T], None],
    ) -> tuple[bool, T | None]:
        self._begin(key, kind)
        self._cache.clear_error()
        ok = False
        result: T | None = None
        try:
            result = await call()
            on_success(result)
            ok = True
        except TaskError as exc:
            logger.warning("%s failed task_id=%s: %s", kind.value, key, exc.message)
            self._cache.set_error(exc.message)
        except Exception:
            logger.exception("%s crashed task_id=%s", kind.value, key)
            self._cache.set_error(f"Failed to {kind.value.replace('_', ' ')} task")
        finally:
            self._end(key)

        await self.refresh()
        return ok, result

    # ---- reads ----

    async def refresh(self) -> bool:
        """Replace the cached collection with the repository snapshot."""
        self.refresh_count += 1
        self._cache.loading = True
        try:
            tasks = await self._repo.list()
        except TaskError as exc:
            logger.warning("refresh failed: %s", exc.message)
            self._cache.set_error(exc.message)
            return False
        except Exception:
            logger.exception("refresh crashed")
            self._cache.set_error("Failed to fetch tasks")
            return False
        finally:
            self._cache.loading = False
        self._cache.reconcile(tasks)
        return True

    async def search(self, *, silent: bool = False) -> list[Task] | None:
        """Server-side filtered view using the cache's current view params."""
        if not silent:
            self._cache.search_loading = True
        self._cache.clear_error()
        try:
            tasks = await self._repo.list(self._cache.view)
        except TaskError as exc:
            logger.warning("search failed: %s", exc.message)
            self._cache.set_error(exc.message)
            return None
        except Exception:
            logger.exception("search crashed")
            self._cache.set_error("Failed to search tasks")
            return None
        finally:
            self._cache.search_loading = False
        self._cache.filtered = tasks
        return tasks

    # ---- mutations ----

    async def create(self, data: Mapping[str, Any]) -> Task | None:
        key = f"new-{next(self._create_seq)}"
        _, task = await self._dispatch(
            key, OpKind.CREATE, lambda: self._repo.create(data), self._cache.apply
        )
        return task

    async def update(self, task_id: str, partial: Mapping[str, Any]) -> Task | None:
        _, task = await self._dispatch(
            task_id, OpKind.UPDATE, lambda: self._repo.update(task_id, partial), self._cache.apply
        )
        return task

    async def toggle_completed(self, task_id: str) -> Task | None:
        current = self._cache.find(task_id)
        if current is None:
            self._cache.set_error(f"Task {task_id} not found")
            return None
        return await self.update(task_id, {"completed": not current.completed})

    async def soft_delete(self, task_id: str) -> Task | None:
        _, task = await self._dispatch(
            task_id,
            OpKind.SOFT_DELETE,
            lambda: self._repo.update(task_id, {"deleted": True}),
            self._cache.apply,
        )
        return task

    async def restore(self, task_id: str) -> Task | None:
        _, task = await self._dispatch(
            task_id,
            OpKind.RESTORE,
            lambda: self._repo.update(task_id, {"deleted": False}),
            self._cache.apply,
        )
        return task

    async def hard_delete(self, task_id: str) -> bool:
        ok, _ = await self._dispatch(
            task_id,
            OpKind.HARD_DELETE,
            lambda: self._repo.delete(task_id),
            lambda _none: self._cache.discard(task_id),
        )
        return ok
