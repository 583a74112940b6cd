"""Urgency classification and list view derivation - pure, no I/O.

Every function takes the task collection and ``now`` explicitly. Nothing is
cached between calls; a render pass recomputes everything against one ``now``.
"""

import unicodedata
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .dates import ParsedDueDate, normalize_due_date
from .tasks import Task

DUE_SOON_WINDOW = timedelta(hours=24)

# Tasks without a usable due date sort as if due at the epoch origin.
EPOCH_ORIGIN = datetime.fromtimestamp(0)

UnparseableHook = Callable[[Task, ParsedDueDate], None]


class UrgencyState(str, Enum):
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_SOON = "dueSoon"
    NORMAL = "normal"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return URGENCY_LABELS[self]


URGENCY_LABELS = {
    UrgencyState.COMPLETED: "✅ Completed",
    UrgencyState.OVERDUE: "⚠️ Overdue",
    UrgencyState.DUE_SOON: "🔔 Due Soon",
    UrgencyState.NORMAL: "",
    UrgencyState.UNKNOWN: "❓ No valid date",
}


class FilterMode(str, Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_SOON = "dueSoon"


class SortMode(str, Enum):
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    TITLE = "title"

    def next(self) -> "SortMode":
        """Cycle dueDate -> priority -> title -> dueDate."""
        modes = list(SortMode)
        return modes[(modes.index(self) + 1) % len(modes)]


@dataclass(frozen=True)
class Statistics:
    """Aggregate counts over the full collection at one instant."""

    due_soon: int = 0
    overdue: int = 0
    completed: int = 0
    total: int = 0
    pending: int = 0


@dataclass(frozen=True)
class ViewRow:
    task: Task
    urgency: UrgencyState
    formatted_due_date: str
    relative_due_text: str


@dataclass(frozen=True)
class TaskView:
    """Everything one render pass needs."""

    rows: list[ViewRow]
    statistics: Statistics
    now: datetime
    filter_mode: FilterMode = FilterMode.ALL
    sort_mode: SortMode = SortMode.DUE_DATE
    search: str = ""


def urgency_for(due: datetime, now: datetime) -> UrgencyState:
    """Date-based urgency for an incomplete task with a valid due date."""
    remaining = due - now
    if remaining < timedelta(0):
        return UrgencyState.OVERDUE
    if remaining <= DUE_SOON_WINDOW:
        return UrgencyState.DUE_SOON
    return UrgencyState.NORMAL


def classify(
    task: Task,
    now: datetime,
    on_unparseable: UnparseableHook | None = None,
) -> UrgencyState:
    """
    Urgency of a single task at ``now``.

    Completed wins over any date-based state. Incomplete tasks whose due date
    can't be parsed are UNKNOWN, and ``on_unparseable`` is told about them.
    """
    if task.completed:
        return UrgencyState.COMPLETED

    parsed = normalize_due_date(task)
    if not parsed.is_valid:
        if on_unparseable is not None:
            on_unparseable(task, parsed)
        return UrgencyState.UNKNOWN

    return urgency_for(parsed.instant, now)


def filter_tasks(
    tasks: Iterable[Task],
    mode: FilterMode,
    now: datetime,
    on_unparseable: UnparseableHook | None = None,
) -> list[Task]:
    """
    Filter tasks by selector.

    OVERDUE and DUE_SOON are defined through ``classify`` so a task passes the
    filter exactly when it is classified that way.
    """
    mode = FilterMode(mode)
    tasks = list(tasks)

    match mode:
        case FilterMode.ALL:
            return tasks
        case FilterMode.PENDING:
            return [t for t in tasks if not t.completed]
        case FilterMode.COMPLETED:
            return [t for t in tasks if t.completed]
        case FilterMode.OVERDUE:
            return [t for t in tasks if classify(t, now, on_unparseable) is UrgencyState.OVERDUE]
        case FilterMode.DUE_SOON:
            return [t for t in tasks if classify(t, now, on_unparseable) is UrgencyState.DUE_SOON]


def search_tasks(tasks: Iterable[Task], term: str) -> list[Task]:
    """Case-insensitive substring match on title or description."""
    needle = (term or "").strip().casefold()
    if not needle:
        return list(tasks)
    return [
        t
        for t in tasks
        if needle in t.title.casefold() or needle in (t.description or "").casefold()
    ]


def due_sort_key(task: Task) -> datetime:
    parsed = normalize_due_date(task)
    return parsed.instant if parsed.is_valid else EPOCH_ORIGIN


def _collation_key(text: str) -> str:
    """Accent- and case-insensitive form of a title for collation."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def title_sort_key(task: Task) -> tuple[str, str, str]:
    return _collation_key(task.title), task.title.casefold(), task.title


def sort_tasks(tasks: Iterable[Task], mode: SortMode) -> list[Task]:
    """
    Stable sort by the active selector.

    Completed tasks keep their real due date when sorting by due date.
    """
    mode = SortMode(mode)
    if mode is SortMode.DUE_DATE:
        return sorted(tasks, key=due_sort_key)
    if mode is SortMode.PRIORITY:
        return sorted(tasks, key=lambda t: t.priority_rank)
    return sorted(tasks, key=title_sort_key)


def compute_statistics(
    tasks: Iterable[Task],
    now: datetime,
    on_unparseable: UnparseableHook | None = None,
) -> Statistics:
    """Single pass over the full collection, same precedence as classify."""
    tasks = list(tasks)
    counts = Counter(classify(t, now, on_unparseable) for t in tasks)
    return Statistics(
        due_soon=counts[UrgencyState.DUE_SOON],
        overdue=counts[UrgencyState.OVERDUE],
        completed=counts[UrgencyState.COMPLETED],
        total=len(tasks),
        pending=len(tasks) - counts[UrgencyState.COMPLETED],
    )


def format_due_date(parsed: ParsedDueDate) -> str:
    """Display form, e.g. "Mar 15, 2025, 09:30 AM"."""
    if not parsed.is_valid:
        return "Invalid date"
    return parsed.instant.strftime("%b %d, %Y, %I:%M %p")


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def relative_due_text(due: datetime, now: datetime) -> str:
    """Human-readable distance to the due date ("in 3 days", "5 hours overdue")."""
    remaining = due - now
    span = abs(remaining)
    days = span // timedelta(days=1)
    hours = (span % timedelta(days=1)) // timedelta(hours=1)

    if remaining < timedelta(0):
        if days > 0:
            return f"{_plural(days, 'day')} overdue"
        return f"{_plural(hours, 'hour')} overdue"

    if days > 0:
        return f"in {_plural(days, 'day')}"
    return f"in {_plural(hours, 'hour')}"


def make_row(task: Task, now: datetime) -> ViewRow:
    parsed = normalize_due_date(task)
    return ViewRow(
        task=task,
        urgency=classify(task, now),
        formatted_due_date=format_due_date(parsed),
        relative_due_text=relative_due_text(parsed.instant, now) if parsed.is_valid else "",
    )


def build_view(
    tasks: Iterable[Task],
    now: datetime | None = None,
    filter_mode: FilterMode = FilterMode.ALL,
    sort_mode: SortMode = SortMode.DUE_DATE,
    search: str = "",
    on_unparseable: UnparseableHook | None = None,
) -> TaskView:
    """
    Derive the rows and statistics for one render pass.

    Pure function - no I/O. Filter, search and sort are applied in that order;
    statistics always cover the unfiltered collection. ``on_unparseable`` fires
    once per incomplete task with a bad due date.
    """
    now = now or datetime.now()
    tasks = list(tasks)

    visible = filter_tasks(tasks, filter_mode, now)
    visible = search_tasks(visible, search)
    visible = sort_tasks(visible, sort_mode)

    return TaskView(
        rows=[make_row(t, now) for t in visible],
        statistics=compute_statistics(tasks, now, on_unparseable),
        now=now,
        filter_mode=FilterMode(filter_mode),
        sort_mode=SortMode(sort_mode),
        search=search,
    )
