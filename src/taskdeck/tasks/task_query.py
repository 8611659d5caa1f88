# src/taskdeck/tasks/task_query.py

"""
View query engine.

One pure function turns (tasks, view params) into the ordered list a user
sees. The repository (server side) and the client cache both call it, so the
two paths cannot drift apart.

Pipeline, always in this order:
- search: case-insensitive substring of name or description
- priority: exact match unless "all"
- status: "all" is unconstrained (deleted tasks included)
- sort: stable, ties keep input order
"""

from __future__ import annotations

from collections.abc import Iterable

from .task_models import SortKey, StatusFilter, Task, ViewParams

PRIORITY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


def matches_search(task: Task, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    return needle in task.name.lower() or needle in task.description.lower()


def matches_priority(task: Task, priority: str) -> bool:
    return priority == "all" or task.priority.value == priority


def matches_status(task: Task, status: StatusFilter) -> bool:
    if status == StatusFilter.COMPLETED:
        return task.completed and not task.deleted
    if status == StatusFilter.PENDING:
        return not task.completed and not task.deleted
    if status == StatusFilter.DELETED:
        return task.deleted
    return True


def sort_tasks(tasks: Iterable[Task], sort: SortKey | str) -> list[Task]:
    key = SortKey.parse(sort)
    if key == SortKey.NEWEST_FIRST:
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)
    if key == SortKey.OLDEST_FIRST:
        return sorted(tasks, key=lambda t: t.created_at)
    if key == SortKey.PRIORITY_LOW_HIGH:
        return sorted(tasks, key=lambda t: PRIORITY_RANK[t.priority.value])
    return sorted(tasks, key=lambda t: PRIORITY_RANK[t.priority.value], reverse=True)


def query(tasks: Iterable[Task], params: ViewParams | None = None) -> list[Task]:
    """Filter and sort `tasks` for display. Never mutates its input."""
    params = params or ViewParams()
    selected = [
        t
        for t in tasks
        if matches_search(t, params.search_term)
        and matches_priority(t, params.priority)
        and matches_status(t, params.status)
    ]
    return sort_tasks(selected, params.sort)
