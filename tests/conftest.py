# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.core.state import AppState
from taskdeck.tasks.task_api import TaskRepository
from taskdeck.tasks.task_cache import TaskCache
from taskdeck.tasks.task_store import JsonTaskStore, JsonViewStateStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        view_state_path=tmp_path / "view_state.json",
        latency_seconds=0.0,
        api_host="127.0.0.1",
        api_port=8000,
        api_base_url="http://testserver",
        http_timeout_seconds=5.0,
        backend="local",
    )


@pytest.fixture()
def store(tmp_path: Path) -> JsonTaskStore:
    return JsonTaskStore(tmp_path / "tasks.json")


@pytest.fixture()
def repo(store: JsonTaskStore) -> TaskRepository:
    """Real repository over a real JSON file, without the artificial latency."""
    return TaskRepository(store, latency_seconds=0.0)


@pytest.fixture()
def cache(tmp_path: Path) -> TaskCache:
    return TaskCache(JsonViewStateStore(tmp_path / "view_state.json"))


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired exactly like the console, on tmp paths and zero latency."""
    return create_initial_state(settings=settings)
