"""Task board session - the last loaded collection plus mutations.

Shared by every CLI command. Mutations go through the repository and are
followed by a full reload. If any step fails the previously loaded collection
stays in place untouched.
"""

import logging
from datetime import datetime

from .core.reminders import Reminder, collect_reminders
from .core.tasks import Task, TaskDraft, TaskPatch, ValidationError
from .core.views import FilterMode, SortMode, TaskView, UnparseableHook, build_view
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)


class TaskNotFoundError(KeyError):
    """Raised when a task id isn't in the loaded collection."""

    def __str__(self) -> str:
        return f"Task {self.args[0]} not found"


class TaskBoard:
    """Holds the last successfully loaded tasks from a TaskRepository."""

    def __init__(self, repo: TaskRepository, on_unparseable: UnparseableHook | None = None):
        self.repo = repo
        self.on_unparseable = on_unparseable
        self.tasks: list[Task] = []

    def refresh(self) -> list[Task]:
        """Reload the collection. On failure the old collection is kept."""
        tasks = self.repo.fetch_all()
        self.tasks = list(tasks)
        logger.debug(f"Loaded {len(self.tasks)} tasks")
        return self.tasks

    def get(self, task_id: str | int) -> Task:
        """Find a loaded task by id (ids compare as strings)."""
        for task in self.tasks:
            if str(task.id) == str(task_id):
                return task
        raise TaskNotFoundError(task_id)

    def create(self, draft: TaskDraft) -> Task:
        draft.validate()
        task = self.repo.create(draft)
        logger.info(f"Created task {task.id}: {task.title}")
        self.refresh()
        return task

    def update(self, task_id: str | int, patch: TaskPatch) -> Task:
        current = self.get(task_id)
        if patch.is_empty():
            raise ValidationError("Nothing to update")
        draft = patch.apply(current)
        draft.validate()
        task = self.repo.update(current.id, draft)
        logger.info(f"Updated task {current.id}")
        self.refresh()
        return task

    def delete(self, task_id: str | int) -> None:
        current = self.get(task_id)
        self.repo.delete(current.id)
        logger.info(f"Deleted task {current.id}")
        self.refresh()

    def set_completed(self, task_id: str | int, completed: bool) -> Task:
        current = self.get(task_id)
        task = self.repo.set_completed(current.id, completed)
        logger.info(f"Task {current.id} marked {'completed' if completed else 'pending'}")
        self.refresh()
        return task

    def toggle(self, task_id: str | int) -> Task:
        """Flip a task between completed and pending."""
        return self.set_completed(task_id, not self.get(task_id).completed)

    def render(
        self,
        now: datetime | None = None,
        filter_mode: FilterMode = FilterMode.ALL,
        sort_mode: SortMode = SortMode.DUE_DATE,
        search: str = "",
    ) -> TaskView:
        """Derive the current view from the loaded collection."""
        return build_view(
            self.tasks,
            now=now,
            filter_mode=filter_mode,
            sort_mode=sort_mode,
            search=search,
            on_unparseable=self.on_unparseable,
        )

    def reminders(self, now: datetime | None = None) -> list[Reminder]:
        return collect_reminders(self.tasks, now)
