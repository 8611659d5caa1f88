# src/taskdeck/tasks/task_cache.py

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import replace

from ..core.ports import ViewStateStore
from .task_models import Priority, SortKey, StatusFilter, Task, ViewParams
from .task_query import query

logger = logging.getLogger(__name__)


class TaskCache:
    """
    Client-side copy of the repository plus the view state.

    The cache never owns data: reconcile() replaces it wholesale with the
    repository snapshot, and apply()/discard() only mirror responses that the
    repository already committed. The visible list is always derived with the
    same query() the repository uses.
    """

    def __init__(self, view_store: ViewStateStore | None = None) -> None:
        self._view_store = view_store
        self.tasks: list[Task] = []
        self.view = ViewParams()
        self.filtered: list[Task] = []
        self.loading = False
        self.search_loading = False
        self.error: str | None = None
        self.last_updated = 0.0

    # ---- collection ----

    def reconcile(self, snapshot: Iterable[Task]) -> None:
        self.tasks = list(snapshot)
        logger.debug("Cache reconciled: %d tasks", len(self.tasks))

    def apply(self, task: Task) -> None:
        for i, t in enumerate(self.tasks):
            if t.id == task.id:
                self.tasks[i] = task
                break
        else:
            self.tasks.append(task)
        self._touch()

    def discard(self, task_id: str) -> None:
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self.filtered = [t for t in self.filtered if t.id != task_id]
        self._touch()

    def find(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def visible(self) -> list[Task]:
        return query(self.tasks, self.view)

    def _touch(self) -> None:
        self.last_updated = time.time()

    # ---- error slot (most recent wins) ----

    def set_error(self, message: str) -> None:
        self.error = message

    def clear_error(self) -> None:
        self.error = None

    # ---- view state ----

    def restore_view(self) -> ViewParams:
        if self._view_store is not None:
            self.view = self._view_store.load()
        return self.view

    def set_view(self, view: ViewParams) -> None:
        self.view = view
        if self._view_store is not None:
            self._view_store.save(view)

    def set_search_term(self, term: str) -> None:
        self.set_view(replace(self.view, search_term=term))

    def set_priority_filter(self, priority: str) -> None:
        prio = priority.strip().lower()
        if prio != "all":
            prio = Priority.parse(prio).value
        self.set_view(replace(self.view, priority=prio))

    def set_status_filter(self, status: str) -> None:
        self.set_view(replace(self.view, status=StatusFilter.parse(status)))

    def set_sort(self, sort: str) -> None:
        self.set_view(replace(self.view, sort=SortKey.parse(sort)))
