# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_cache import TaskCache
from ..tasks.task_coordinator import OperationCoordinator
from .ports import TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    repo: TaskRepo
    cache: TaskCache
    coordinator: OperationCoordinator

    # Short id prefix -> full id, rebuilt on every /list so users can type prefixes.
    id_aliases: dict[str, str] = field(default_factory=dict)
