"""Tests for the duewatch command line."""

import json
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from duewatch.adapters.rest_api import TransportError
from duewatch.board import TaskBoard
from duewatch.cli import _check_reminders, main
from duewatch.config import Config
from duewatch.core.tasks import Task


def _tasks():
    now = datetime.now()
    return [
        Task(id=1, title="Report", priority="HIGH", due_date_raw=(now + timedelta(hours=2)).isoformat()),
        Task(id=2, title="Groceries", priority="LOW", description="milk",
             due_date_raw=(now - timedelta(days=2)).isoformat()),
        Task(id=3, title="Taxes", priority="MEDIUM", completed=True,
             due_date_raw=(now + timedelta(days=10)).isoformat()),
    ]


@pytest.fixture
def adapter():
    adapter = MagicMock()
    adapter.fetch_all.return_value = _tasks()
    return adapter


@pytest.fixture
def run(adapter):
    runner = CliRunner()

    def invoke(*args, input=None):
        with patch("duewatch.cli.load_config", return_value=Config()), \
             patch("duewatch.cli.RestTaskAdapter", return_value=adapter):
            return runner.invoke(main, list(args), input=input)

    return invoke


class TestList:
    def test_text_output(self, run):
        result = run("list")

        assert result.exit_code == 0
        assert "#1 Report [HIGH]" in result.output
        assert "⚠️ Overdue" in result.output
        assert "🔔 Due Soon" in result.output
        assert "No description" in result.output
        assert "3 tasks, 2 pending | Due soon: 1 | Overdue: 1 | Completed: 1" in result.output

    def test_json_output(self, run):
        result = run("list", "--filter", "pending", "--sort", "title", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["filter"] == "pending"
        assert data["sort"] == "title"
        assert [t["title"] for t in data["tasks"]] == ["Groceries", "Report"]
        assert data["tasks"][0]["urgency"] == "overdue"
        assert data["statistics"]["total"] == 3

    def test_search(self, run):
        result = run("list", "--search", "MILK", "--json")

        assert [t["id"] for t in json.loads(result.output)["tasks"]] == [2]

    def test_empty_collection(self, run, adapter):
        adapter.fetch_all.return_value = []

        result = run("list")

        assert "No tasks yet" in result.output

    def test_nothing_matches(self, run):
        result = run("list", "--search", "zzz")

        assert "No tasks match." in result.output

    def test_transport_error(self, run, adapter):
        adapter.fetch_all.side_effect = TransportError("Could not reach task service at http://x")

        result = run("list")

        assert result.exit_code == 1
        assert "Error: Could not reach task service" in result.output


class TestStats:
    def test_json(self, run):
        result = run("stats", "--json")

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "due_soon": 1,
            "overdue": 1,
            "completed": 1,
            "total": 3,
            "pending": 2,
        }


class TestAdd:
    def test_creates_task(self, run, adapter):
        adapter.create.return_value = Task(id=7, title="New", priority="HIGH")

        result = run("add", "-t", "New", "-d", "2030-01-01T09:00", "-p", "HIGH")

        assert result.exit_code == 0
        assert "Task created successfully! (#7)" in result.output
        draft = adapter.create.call_args[0][0]
        assert draft.title == "New"
        assert draft.priority == "HIGH"

    def test_missing_title(self, run, adapter):
        result = run("add", "-d", "2030-01-01T09:00")

        assert result.exit_code == 1
        assert "Task title is required!" in result.output
        adapter.create.assert_not_called()

    def test_missing_due_date(self, run, adapter):
        result = run("add", "-t", "New")

        assert result.exit_code == 1
        assert "Due date is required!" in result.output
        adapter.create.assert_not_called()


class TestMutations:
    def test_edit(self, run, adapter):
        adapter.update.return_value = Task(id=1, title="Final", priority="HIGH")

        result = run("edit", "1", "--title", "Final")

        assert result.exit_code == 0
        assert "Task #1 updated." in result.output
        task_id, draft = adapter.update.call_args[0]
        assert task_id == 1
        assert draft.title == "Final"

    def test_edit_unknown_task(self, run, adapter):
        result = run("edit", "42", "--title", "x")

        assert result.exit_code == 1
        assert "Task 42 not found" in result.output
        adapter.update.assert_not_called()

    def test_done(self, run, adapter):
        adapter.set_completed.return_value = Task(id=1, title="Report", priority="HIGH", completed=True)

        result = run("done", "1")

        assert result.exit_code == 0
        assert "Task completed!" in result.output
        adapter.set_completed.assert_called_once_with(1, True)

    def test_toggle_completed_task(self, run, adapter):
        adapter.set_completed.return_value = Task(id=3, title="Taxes", priority="MEDIUM", completed=False)

        result = run("toggle", "3")

        assert "Task marked as pending!" in result.output
        adapter.set_completed.assert_called_once_with(3, False)

    def test_delete_with_yes(self, run, adapter):
        result = run("delete", "2", "--yes")

        assert result.exit_code == 0
        assert "Task deleted successfully!" in result.output
        adapter.delete.assert_called_once_with(2)

    def test_delete_declined(self, run, adapter):
        result = run("delete", "2", input="n\n")

        assert result.exit_code == 0
        adapter.delete.assert_not_called()


class TestHealth:
    def test_ok(self, run, adapter):
        adapter.health.return_value = {"success": True, "message": "Task Scheduler API is running"}

        result = run("health")

        assert result.exit_code == 0
        assert "OK: Task Scheduler API is running" in result.output

    def test_down(self, run, adapter):
        adapter.health.side_effect = TransportError("Could not reach task service")

        result = run("health")

        assert result.exit_code == 1


class TestDates:
    def test_shows_field_and_result(self, run, adapter):
        adapter.fetch_all_raw.return_value = [
            {"id": 1, "title": "A", "dueDate": [2025, 3, 15, 9, 30]},
            {"id": 2, "title": "B", "dueDate": "garbage"},
            {"id": 3, "title": "C"},
        ]

        result = run("dates")

        lines = result.output.splitlines()
        assert lines[0] == "#1 A: dueDate=[2025, 3, 15, 9, 30] -> 2025-03-15T09:30:00"
        assert lines[1] == "#2 B: dueDate='garbage' -> INVALID"
        assert lines[2] == "#3 C: no due date field -> ABSENT"

    def test_reports_non_object_records(self, run, adapter):
        adapter.fetch_all_raw.return_value = ["oops", {"id": 1, "title": "A", "dueDate": "2025-03-15T09:30:00"}]

        result = run("dates")

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "Unexpected task record: 'oops'"
        assert lines[1] == "#1 A: dueDate='2025-03-15T09:30:00' -> 2025-03-15T09:30:00"


class TestWatch:
    def test_schedules_reminder_job(self, run):
        with patch("duewatch.cli.BlockingScheduler") as scheduler_cls:
            result = run("watch", "--interval", "5")

        assert result.exit_code == 0
        scheduler = scheduler_cls.return_value
        scheduler.add_job.assert_called_once()
        assert scheduler.add_job.call_args.kwargs["id"] == "reminders"
        scheduler.start.assert_called_once()
        assert "every 5s" in result.output


class TestCheckReminders:
    def test_prints_reminders(self, adapter, capsys):
        board = TaskBoard(adapter)

        reminders = _check_reminders(board)

        assert [r.task.id for r in reminders] == [1, 2]
        out = capsys.readouterr().out
        assert "⏰ REMINDER: Task 'Report' is due soon!" in out
        assert "🚨 OVERDUE: Task 'Groceries' is overdue!" in out

    def test_failed_reload_uses_last_tasks(self, adapter, capsys):
        board = TaskBoard(adapter)
        board.refresh()
        adapter.fetch_all.side_effect = TransportError("down")

        reminders = _check_reminders(board)

        assert [r.task.id for r in reminders] == [1, 2]
