"""Task repository interface."""

from typing import Protocol

from duewatch.core.tasks import Task, TaskDraft


class TaskRepository(Protocol):
    """Interface for reading and mutating tasks on any backend."""

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def create(self, draft: TaskDraft) -> Task:
        """Create a task and return it as stored."""
        ...

    def update(self, task_id: str | int, draft: TaskDraft) -> Task:
        """Replace a task's fields."""
        ...

    def delete(self, task_id: str | int) -> None:
        """Delete a task."""
        ...

    def set_completed(self, task_id: str | int, completed: bool) -> Task:
        """Mark a task completed or pending."""
        ...
