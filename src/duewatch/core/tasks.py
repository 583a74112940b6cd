"""Pure task domain logic - no I/O dependencies."""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .dates import normalize_due_date, select_due_candidate

NO_DESCRIPTION = "No description"

_MINUTE_PRECISION_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


class ValidationError(ValueError):
    """Raised when a task draft is rejected before it reaches the service."""

    pass


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


PRIORITY_RANK = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}


@dataclass
class Task:
    """A task as served by the task service."""

    id: str | int
    title: str
    priority: str
    completed: bool = False
    due_date_raw: Any = None
    description: str = ""
    created_at: str | None = None

    @property
    def priority_rank(self) -> int:
        """Sort rank, HIGH first. Unknown priorities rank after LOW."""
        return PRIORITY_RANK.get(self.priority, len(PRIORITY_RANK))

    @property
    def description_text(self) -> str:
        return self.description or NO_DESCRIPTION

    @classmethod
    def from_api(cls, data: dict) -> "Task":
        """Create Task from a task service record."""
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            priority=data.get("priority") or "",
            # Only a JSON true marks a task completed
            completed=data.get("completed") is True,
            due_date_raw=select_due_candidate(data),
            description=data.get("description") or "",
            created_at=data.get("createdAt"),
        )


def _complete_seconds(value: str) -> str:
    """Browser-style "YYYY-MM-DDTHH:MM" values get explicit seconds."""
    if _MINUTE_PRECISION_RE.match(value):
        return f"{value}:00"
    return value


@dataclass
class TaskDraft:
    """Input for creating (or fully replacing) a task."""

    title: str
    due_date: str
    priority: str = Priority.MEDIUM.value
    description: str = ""
    completed: bool = False

    def validate(self) -> None:
        """Raise ValidationError if the service would reject this draft."""
        if not self.title or not self.title.strip():
            raise ValidationError("Task title is required!")
        if not self.due_date or not self.due_date.strip():
            raise ValidationError("Due date is required!")

        due = _complete_seconds(self.due_date.strip())
        if "T" not in due:
            raise ValidationError(f"Due date must be an ISO date-time like 2025-03-15T09:30:00, got {self.due_date!r}")
        try:
            parsed = datetime.fromisoformat(due)
        except ValueError:
            raise ValidationError(f"Invalid due date: {self.due_date!r}")
        if parsed.tzinfo is not None:
            raise ValidationError("Due date must be local time without a UTC offset")

        if self.priority not in PRIORITY_RANK:
            raise ValidationError(f"Priority must be one of HIGH, MEDIUM, LOW, got {self.priority!r}")

    def to_payload(self) -> dict:
        """Validated JSON body for the task service."""
        self.validate()
        return {
            "title": self.title.strip(),
            "description": self.description or "",
            "dueDate": _complete_seconds(self.due_date.strip()),
            "priority": self.priority,
            "completed": self.completed,
        }


@dataclass
class TaskPatch:
    """Partial update. Unset fields keep the task's current value."""

    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    priority: str | None = None
    completed: bool | None = None

    def is_empty(self) -> bool:
        return all(
            v is None for v in (self.title, self.description, self.due_date, self.priority, self.completed)
        )

    def apply(self, task: Task) -> TaskDraft:
        """
        Merge this patch onto an existing task.

        The service replaces the whole record on update, so the result is a full
        draft. An existing due date that can't be parsed must be patched.
        """
        due_date = self.due_date
        if due_date is None:
            parsed = normalize_due_date(task)
            if not parsed.is_valid:
                raise ValidationError(f"Task {task.id} has no valid due date; pass a new one")
            due_date = parsed.instant.isoformat(timespec="seconds")

        return TaskDraft(
            title=self.title if self.title is not None else task.title,
            due_date=due_date,
            priority=self.priority if self.priority is not None else task.priority,
            description=self.description if self.description is not None else task.description,
            completed=self.completed if self.completed is not None else task.completed,
        )
