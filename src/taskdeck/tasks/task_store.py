# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path

from .task_errors import StorageError, TaskError
from .task_models import Task, ViewParams

logger = logging.getLogger(__name__)


def _decode_snapshot(raw: str, source: object) -> list[Task]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Task snapshot {source} is not valid JSON") from exc
    if not isinstance(data, list):
        raise StorageError(f"Task snapshot {source} must hold a list of tasks")
    tasks: list[Task] = []
    for item in data:
        if not isinstance(item, dict):
            raise StorageError(f"Task snapshot {source} holds a non-object entry")
        try:
            tasks.append(Task.from_dict(item))
        except TaskError as exc:
            raise StorageError(f"Task snapshot {source} holds a bad record: {exc.message}") from exc
    return tasks


def _encode_snapshot(tasks: Iterable[Task], *, indent: int | None) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False, indent=indent)


class JsonTaskStore:
    """
    JSON-file snapshot store.

    The whole ordered task list is the sole content of the file:
    - load() reads everything (missing file -> empty list)
    - save() rewrites everything (temp file + os.replace, never a partial write)
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("JsonTaskStore ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Task]:
        if not self._path.exists():
            return []
        try:
            raw = self._path.read_text("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.exception("Failed to read task snapshot %s", self._path)
            raise StorageError("Failed to load tasks") from exc
        if not raw.strip():
            return []
        return _decode_snapshot(raw, self._path)

    def save(self, tasks: Iterable[Task]) -> None:
        tasks = list(tasks)
        tmp = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(_encode_snapshot(tasks, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.exception("Failed to write task snapshot %s", self._path)
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StorageError("Failed to save tasks") from exc
        logger.debug("Saved task snapshot: %d tasks to %s", len(tasks), self._path)


class MemoryTaskStore:
    """
    In-process snapshot store.

    Holds the serialized snapshot string the way a key/value browser storage
    would, so every load() hands out fresh Task objects.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self._raw: str | None = None
        if tasks is not None:
            self.save(tasks)

    def load(self) -> list[Task]:
        if self._raw is None:
            return []
        return _decode_snapshot(self._raw, "<memory>")

    def save(self, tasks: Iterable[Task]) -> None:
        self._raw = _encode_snapshot(tasks, indent=None)


class JsonViewStateStore:
    """
    Persisted search/filter/sort state, kept apart from the task snapshot.

    Best-effort on both sides: a broken file only costs the saved view.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self) -> ViewParams:
        if not self._path.exists():
            return ViewParams()
        try:
            data = json.loads(self._path.read_text("utf-8"))
            if not isinstance(data, dict):
                return ViewParams()
            view = ViewParams.from_dict(data)
            logger.info("Loaded view state from %s", self._path)
            return view
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, TaskError):
            logger.exception("Failed to load view state from %s", self._path)
            return ViewParams()

    def save(self, view: ViewParams) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(view.to_dict(), ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError:
            logger.exception("Failed to save view state to %s", self._path)
