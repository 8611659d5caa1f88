# src/taskdeck/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import Any

from .task_errors import ValidationError

# Fields a caller may change through update(); everything else is ignored.
MUTABLE_FIELDS: tuple[str, ...] = ("name", "description", "priority", "dueDate", "completed", "deleted")
REQUIRED_CREATE_FIELDS: tuple[str, ...] = ("name", "description", "priority", "dueDate")

DRAFT_NAME_MIN = 2
DRAFT_DESCRIPTION_MIN = 10
DRAFT_MAX_AHEAD = timedelta(days=730)
DUE_SOON_WINDOW = timedelta(days=3)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid priority: {raw!r}") from None


class StatusFilter(StrEnum):
    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"
    DELETED = "deleted"

    @classmethod
    def parse(cls, raw: Any) -> StatusFilter:
        if raw is None or str(raw).strip() == "":
            return cls.ALL
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid status filter: {raw!r}") from None


class SortKey(StrEnum):
    PRIORITY_HIGH_LOW = "priority-high-low"
    PRIORITY_LOW_HIGH = "priority-low-high"
    NEWEST_FIRST = "newest-first"
    OLDEST_FIRST = "oldest-first"

    @classmethod
    def parse(cls, raw: Any) -> SortKey:
        """Unknown keys fall back to the default order instead of failing."""
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.PRIORITY_HIGH_LOW


# ---- timestamps ----


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_ts(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z."""
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_ts(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        dt = raw
    else:
        try:
            dt = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {raw!r}") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def parse_due(raw: Any) -> datetime:
    """Accept a bare date ("2030-01-01") or a full ISO datetime."""
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return datetime(raw.year, raw.month, raw.day, tzinfo=UTC)
    s = str(raw or "").strip()
    if not s:
        raise ValidationError("Due date is required")
    return parse_ts(s)


# ---- entity ----


def _record_flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValidationError(f"Task record has non-boolean {key!r}: {value!r}")
    return value


@dataclass(slots=True)
class Task:
    id: str
    name: str
    description: str
    priority: Priority
    due_date: str
    created_at: datetime
    updated_at: datetime
    completed: bool = False
    deleted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "priority": self.priority.value,
            "dueDate": self.due_date,
            "completed": self.completed,
            "deleted": self.deleted,
            "createdAt": format_ts(self.created_at),
            "updatedAt": format_ts(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        try:
            task_id = str(data["id"])
            created_at = parse_ts(data["createdAt"])
        except KeyError as exc:
            raise ValidationError(f"Task record is missing {exc.args[0]!r}") from None
        # Records written before soft-delete existed carry no "deleted" key.
        updated_at = parse_ts(data.get("updatedAt") or data["createdAt"])
        return cls(
            id=task_id,
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            priority=Priority.parse(data.get("priority")),
            due_date=str(data.get("dueDate") or ""),
            created_at=created_at,
            updated_at=max(updated_at, created_at),
            completed=_record_flag(data, "completed"),
            deleted=_record_flag(data, "deleted"),
        )

    def due_at(self) -> datetime | None:
        try:
            return parse_due(self.due_date)
        except ValidationError:
            return None


def _today(now: datetime | None) -> date:
    return (now or utc_now()).astimezone(UTC).date()


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    """Due day is before today (UTC calendar days)."""
    due = task.due_at()
    if due is None:
        return False
    return due.astimezone(UTC).date() < _today(now)


def is_due_soon(task: Task, now: datetime | None = None) -> bool:
    """Due day falls before today + 3 days; overdue tasks included."""
    due = task.due_at()
    if due is None:
        return False
    return due.astimezone(UTC).date() < _today(now) + DUE_SOON_WINDOW


def changed_fields(task: Task, partial: Mapping[str, Any]) -> dict[str, Any]:
    """Return only the mutable entries of `partial` that differ from `task`."""
    current = task.to_dict()
    out: dict[str, Any] = {}
    for key in MUTABLE_FIELDS:
        if key in partial and partial[key] != current[key]:
            out[key] = partial[key]
    return out


def validate_draft(
    data: Mapping[str, Any], now: datetime | None = None, *, check_due: bool = True
) -> dict[str, Any]:
    """
    Form-level checks applied before a create/update is dispatched.

    Returns a normalized copy of the draft. Raises ValidationError with the
    first failing rule.
    """
    now = now or utc_now()
    name = str(data.get("name") or "").strip()
    description = str(data.get("description") or "").strip()

    if not name:
        raise ValidationError("Task name is required")
    if len(name) < DRAFT_NAME_MIN:
        raise ValidationError(f"Name must be at least {DRAFT_NAME_MIN} characters")
    if not description:
        raise ValidationError("Description is required")
    if len(description) < DRAFT_DESCRIPTION_MIN:
        raise ValidationError(f"Description must be at least {DRAFT_DESCRIPTION_MIN} characters")

    priority = Priority.parse(data.get("priority"))
    due = parse_due(data.get("dueDate"))
    # Edits that keep the stored due date skip the range check.
    if check_due:
        if due.date() < now.date():
            raise ValidationError("Due date must be in the future")
        if due.date() > (now + DRAFT_MAX_AHEAD).date():
            raise ValidationError("Due date must be within 2 years")

    out: dict[str, Any] = {
        "name": name,
        "description": description,
        "priority": priority.value,
        "dueDate": str(data.get("dueDate")).strip(),
    }
    if "completed" in data:
        out["completed"] = bool(data["completed"])
    return out


@dataclass(frozen=True, slots=True)
class ViewParams:
    """Search/filter/sort state driving the visible task list."""

    search_term: str = ""
    priority: str = "all"
    status: StatusFilter = StatusFilter.ALL
    sort: SortKey = SortKey.PRIORITY_HIGH_LOW

    @classmethod
    def build(
        cls,
        *,
        search_term: str | None = None,
        priority: str | None = None,
        status: str | None = None,
        sort: str | None = None,
    ) -> ViewParams:
        prio = (priority or "all").strip().lower()
        if prio != "all":
            prio = Priority.parse(prio).value
        return cls(
            search_term=search_term or "",
            priority=prio,
            status=StatusFilter.parse(status),
            sort=SortKey.parse(sort) if sort else SortKey.PRIORITY_HIGH_LOW,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "searchTerm": self.search_term,
            "filterPriority": self.priority,
            "filterStatus": self.status.value,
            "sortBy": self.sort.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ViewParams:
        return cls.build(
            search_term=str(data.get("searchTerm") or ""),
            priority=str(data.get("filterPriority") or "all"),
            status=str(data.get("filterStatus") or "all"),
            sort=str(data.get("sortBy") or ""),
        )

    def to_query(self) -> dict[str, str]:
        """HTTP query params; defaults are omitted except the sort key."""
        out: dict[str, str] = {}
        if self.search_term.strip():
            out["search"] = self.search_term
        if self.priority != "all":
            out["priority"] = self.priority
        if self.status != StatusFilter.ALL:
            out["status"] = self.status.value
        out["sortBy"] = self.sort.value
        return out
