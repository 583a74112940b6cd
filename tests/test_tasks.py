"""Tests for core task model and drafts."""

from datetime import datetime

import pytest

from duewatch.core.tasks import (
    NO_DESCRIPTION,
    Task,
    TaskDraft,
    TaskPatch,
    ValidationError,
)


class TestTask:
    def test_from_api(self):
        api_data = {
            "id": 7,
            "title": "Write report",
            "description": "Quarterly numbers",
            "dueDate": "2025-03-15T09:30:00",
            "priority": "HIGH",
            "completed": False,
            "createdAt": "2025-03-01T08:00:00",
        }
        task = Task.from_api(api_data)

        assert task.id == 7
        assert task.title == "Write report"
        assert task.description == "Quarterly numbers"
        assert task.due_date_raw == "2025-03-15T09:30:00"
        assert task.priority == "HIGH"
        assert task.completed is False
        assert task.created_at == "2025-03-01T08:00:00"

    def test_from_api_uses_candidate_precedence(self):
        task = Task.from_api({"id": 1, "title": "T", "formattedDueDate": "bad", "dueDate": "2025-03-15T09:30:00"})
        assert task.due_date_raw == "bad"

    def test_from_api_minimal(self):
        task = Task.from_api({"id": "abc"})
        assert task.title == ""
        assert task.priority == ""
        assert task.completed is False
        assert task.due_date_raw is None
        assert task.description == ""

    @pytest.mark.parametrize("value,expected", [(True, True), (False, False), ("false", False), ("true", False), (1, False)])
    def test_from_api_completed_needs_real_bool(self, value, expected):
        assert Task.from_api({"id": 1, "completed": value}).completed is expected

    def test_description_placeholder(self):
        assert Task(id=1, title="T", priority="LOW").description_text == NO_DESCRIPTION
        assert Task(id=1, title="T", priority="LOW", description="x").description_text == "x"

    def test_priority_rank(self):
        assert Task(id=1, title="T", priority="HIGH").priority_rank == 0
        assert Task(id=1, title="T", priority="MEDIUM").priority_rank == 1
        assert Task(id=1, title="T", priority="LOW").priority_rank == 2

    def test_unknown_priority_ranks_last(self):
        assert Task(id=1, title="T", priority="high").priority_rank == 3
        assert Task(id=1, title="T", priority="").priority_rank == 3


class TestTaskDraft:
    def test_payload(self):
        draft = TaskDraft(title=" Write report ", due_date="2025-03-15T09:30:00", priority="HIGH")
        assert draft.to_payload() == {
            "title": "Write report",
            "description": "",
            "dueDate": "2025-03-15T09:30:00",
            "priority": "HIGH",
            "completed": False,
        }

    def test_minute_precision_gets_seconds(self):
        draft = TaskDraft(title="T", due_date="2025-03-15T09:30")
        assert draft.to_payload()["dueDate"] == "2025-03-15T09:30:00"

    def test_default_priority(self):
        assert TaskDraft(title="T", due_date="2025-03-15T09:30").priority == "MEDIUM"

    @pytest.mark.parametrize("title", ["", "   "])
    def test_title_required(self, title):
        with pytest.raises(ValidationError, match="title is required"):
            TaskDraft(title=title, due_date="2025-03-15T09:30").validate()

    def test_due_date_required(self):
        with pytest.raises(ValidationError, match="Due date is required"):
            TaskDraft(title="T", due_date="").validate()

    def test_date_only_rejected(self):
        with pytest.raises(ValidationError, match="ISO date-time"):
            TaskDraft(title="T", due_date="2025-03-15").validate()

    def test_malformed_date_rejected(self):
        with pytest.raises(ValidationError, match="Invalid due date"):
            TaskDraft(title="T", due_date="2025-13-15T09:30").validate()

    def test_offset_rejected(self):
        with pytest.raises(ValidationError, match="UTC offset"):
            TaskDraft(title="T", due_date="2025-03-15T09:30:00+02:00").validate()

    def test_priority_checked(self):
        with pytest.raises(ValidationError, match="Priority"):
            TaskDraft(title="T", due_date="2025-03-15T09:30", priority="URGENT").validate()


class TestTaskPatch:
    @pytest.fixture
    def task(self):
        return Task(
            id=3,
            title="Old",
            priority="LOW",
            completed=True,
            due_date_raw=[2025, 3, 15, 9, 30],
            description="desc",
        )

    def test_apply_keeps_unset_fields(self, task):
        draft = TaskPatch(title="New").apply(task)
        assert draft == TaskDraft(
            title="New",
            due_date="2025-03-15T09:30:00",
            priority="LOW",
            description="desc",
            completed=True,
        )

    def test_apply_overrides(self, task):
        draft = TaskPatch(due_date="2025-04-01T10:00", priority="HIGH", description="").apply(task)
        assert draft.due_date == "2025-04-01T10:00"
        assert draft.priority == "HIGH"
        assert draft.description == ""

    def test_unparseable_existing_date_must_be_patched(self):
        task = Task(id=3, title="Old", priority="LOW", due_date_raw="garbage")
        with pytest.raises(ValidationError, match="no valid due date"):
            TaskPatch(title="New").apply(task)
        draft = TaskPatch(due_date="2025-04-01T10:00").apply(task)
        assert draft.due_date == "2025-04-01T10:00"

    def test_is_empty(self):
        assert TaskPatch().is_empty()
        assert not TaskPatch(completed=False).is_empty()

    def test_round_trips_instant(self, task):
        draft = TaskPatch(title="x").apply(task)
        assert datetime.fromisoformat(draft.due_date) == datetime(2025, 3, 15, 9, 30)
