"""Functional core - pure business logic with no I/O."""

from .dates import DueDateStatus, ParsedDueDate, normalize_due_date, parse_due_value, select_due_candidate
from .tasks import Priority, Task, TaskDraft, TaskPatch, ValidationError
from .views import (
    FilterMode,
    SortMode,
    Statistics,
    TaskView,
    UrgencyState,
    ViewRow,
    build_view,
    classify,
    compute_statistics,
    filter_tasks,
    search_tasks,
    sort_tasks,
)
from .reminders import Reminder, ReminderKind, collect_reminders

__all__ = [
    # Dates
    "DueDateStatus",
    "ParsedDueDate",
    "normalize_due_date",
    "parse_due_value",
    "select_due_candidate",
    # Tasks
    "Priority",
    "Task",
    "TaskDraft",
    "TaskPatch",
    "ValidationError",
    # Views
    "FilterMode",
    "SortMode",
    "Statistics",
    "TaskView",
    "UrgencyState",
    "ViewRow",
    "build_view",
    "classify",
    "compute_statistics",
    "filter_tasks",
    "search_tasks",
    "sort_tasks",
    # Reminders
    "Reminder",
    "ReminderKind",
    "collect_reminders",
]
