# src/taskdeck/tasks/task_errors.py

"""
Task error taxonomy.

Every failure a repository call can produce is a TaskError subclass carrying
the HTTP status the API layer answers with. The HTTP client maps statuses back
to the same classes, so callers handle one hierarchy regardless of transport.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for user-visible task failures."""

    http_status: int = 500
    default_message: str = "Task operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskError):
    """Missing or malformed input."""

    http_status = 400
    default_message = "Invalid task data"


class NotFound(TaskError):
    """Target task id is absent at mutation time."""

    http_status = 404
    default_message = "Task not found"


class StorageError(TaskError):
    """Reading or writing the task snapshot failed."""

    http_status = 500
    default_message = "Task storage failure"


class NetworkError(TaskError):
    """Transport failure between client and API."""

    http_status = 503
    default_message = "Task service unreachable"


_BY_STATUS: dict[int, type[TaskError]] = {
    400: ValidationError,
    404: NotFound,
    422: ValidationError,
}


def error_for_status(status_code: int, message: str | None = None) -> TaskError:
    """Rebuild a TaskError from an HTTP status (used by the HTTP client)."""
    cls = _BY_STATUS.get(status_code)
    if cls is None:
        cls = NetworkError if status_code in (502, 503, 504) else StorageError
    return cls(message)
