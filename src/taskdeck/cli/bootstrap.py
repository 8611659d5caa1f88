# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the snapshot store, repository (in-process or HTTP), cache and
  coordinator into AppState.
"""

from __future__ import annotations

import contextlib
import logging

from ..api.client import HttpTaskRepo
from ..config import get_settings
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..tasks.task_api import TaskRepository
from ..tasks.task_cache import TaskCache
from ..tasks.task_coordinator import OperationCoordinator
from ..tasks.task_store import JsonTaskStore, JsonViewStateStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.view_state_path.parent.mkdir(parents=True, exist_ok=True)


def create_repository(settings) -> TaskRepository:
    """In-process repository over the JSON snapshot file (used by `serve` and local mode)."""
    return TaskRepository(
        JsonTaskStore(settings.tasks_path),
        latency_seconds=settings.latency_seconds,
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    repo: TaskRepo
    if getattr(settings, "backend", "local") == "http":
        repo = HttpTaskRepo(settings.api_base_url, timeout=settings.http_timeout_seconds)
        logger.info("Using HTTP task backend at %s", settings.api_base_url)
    else:
        repo = create_repository(settings)
        logger.info("Using local task backend at %s", settings.tasks_path)

    cache = TaskCache(JsonViewStateStore(settings.view_state_path))
    cache.restore_view()

    return AppState(
        settings=settings,
        repo=repo,
        cache=cache,
        coordinator=OperationCoordinator(repo, cache),
    )


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    close = getattr(state.repo, "aclose", None)
    if close is None:
        return
    with contextlib.suppress(Exception):
        await close()
