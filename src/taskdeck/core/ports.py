# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the storage medium and the transport (in-process vs HTTP)
swappable and makes testing easier.
"""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task, ViewParams


class SnapshotStore(Protocol):
    """
    Whole-collection persistence medium.

    load() returns the ordered task list; save() persists a full snapshot.
    Both raise StorageError on I/O failure. There are no partial writes.
    """

    def load(self) -> list[Task]: ...
    def save(self, tasks: Iterable[Task]) -> None: ...


class ViewStateStore(Protocol):
    """Best-effort persistence of search/filter/sort state."""

    def load(self) -> ViewParams: ...
    def save(self, view: ViewParams) -> None: ...


class TaskRepo(Protocol):
    """
    Repository contract shared by the in-process TaskRepository and the
    HTTP client. Every method is asynchronous and raises TaskError subclasses.
    """

    async def list(self, params: ViewParams | None = None) -> list[Task]: ...
    async def get(self, task_id: str) -> Task: ...
    async def create(self, data: Mapping[str, Any]) -> Task: ...
    async def update(self, task_id: str, partial: Mapping[str, Any]) -> Task: ...
    async def delete(self, task_id: str) -> None: ...
