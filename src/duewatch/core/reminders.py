"""Pure reminder selection - no I/O dependencies."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .tasks import Task
from .views import UrgencyState, classify


class ReminderKind(str, Enum):
    DUE_SOON = "dueSoon"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class Reminder:
    task: Task
    kind: ReminderKind
    message: str


def reminder_for(task: Task, now: datetime) -> Reminder | None:
    """Reminder for a single task, or None if it needs no nudge."""
    match classify(task, now):
        case UrgencyState.DUE_SOON:
            return Reminder(task, ReminderKind.DUE_SOON, f"⏰ REMINDER: Task '{task.title}' is due soon!")
        case UrgencyState.OVERDUE:
            return Reminder(task, ReminderKind.OVERDUE, f"🚨 OVERDUE: Task '{task.title}' is overdue!")
        case _:
            return None


def collect_reminders(tasks: Iterable[Task], now: datetime | None = None) -> list[Reminder]:
    """
    Reminders for every pending task that is due soon or overdue.

    Pure function - no I/O. Keeps input order.
    """
    now = now or datetime.now()
    reminders = []
    for task in tasks:
        reminder = reminder_for(task, now)
        if reminder is not None:
            reminders.append(reminder)
    return reminders
