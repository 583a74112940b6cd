"""duewatch CLI - task list viewer for a remote task service."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import NoReturn

import click
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters.rest_api import RestTaskAdapter, TransportError
from .board import TaskBoard, TaskNotFoundError
from .config import Config, load_config
from .core.dates import ParsedDueDate, find_due_candidate, parse_due_value
from .core.reminders import Reminder
from .core.tasks import Priority, Task, TaskDraft, TaskPatch, ValidationError
from .core.views import FilterMode, SortMode, Statistics, TaskView, ViewRow

logger = logging.getLogger(__name__)


def _fail(e: Exception) -> NoReturn:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _log_unparseable(task: Task, parsed: ParsedDueDate) -> None:
    if parsed.raw is None:
        logger.warning(f"Task {task.id} ({task.title!r}) has no due date")
    else:
        logger.warning(f"Task {task.id} ({task.title!r}) has an unparseable due date: {parsed.raw!r}")


def _resolve_mode(enum_cls: type[Enum], value: str | None, default: str) -> Enum:
    """Mode from the command line, else config, else the first member."""
    for candidate in (value, default):
        if not candidate:
            continue
        try:
            return enum_cls(candidate)
        except ValueError:
            logger.warning(f"Unknown {enum_cls.__name__} {candidate!r}, ignoring")
    return next(iter(enum_cls))


def _make_board(ctx: click.Context) -> TaskBoard:
    config: Config = ctx.obj["config"]
    hook = _log_unparseable if ctx.obj["verbose"] else None
    return TaskBoard(RestTaskAdapter(config), on_unparseable=hook)


def _load_board(ctx: click.Context) -> TaskBoard:
    board = _make_board(ctx)
    try:
        board.refresh()
    except TransportError as e:
        _fail(e)
    return board


def _format_row(row: ViewRow) -> str:
    task = row.task
    check = "x" if task.completed else " "
    status = f"  {row.urgency.label}" if row.urgency.label else ""
    relative = f" ({row.relative_due_text})" if row.relative_due_text else ""
    return (
        f"[{check}] #{task.id} {task.title} [{task.priority or '?'}]{status}\n"
        f"      Due: {row.formatted_due_date}{relative}\n"
        f"      {task.description_text}"
    )


def _format_counts(stats: Statistics) -> str:
    tasks_word = "task" if stats.total == 1 else "tasks"
    return (
        f"{stats.total} {tasks_word}, {stats.pending} pending | "
        f"Due soon: {stats.due_soon} | Overdue: {stats.overdue} | Completed: {stats.completed}"
    )


def _row_dict(row: ViewRow) -> dict:
    return {
        "id": row.task.id,
        "title": row.task.title,
        "description": row.task.description,
        "priority": row.task.priority,
        "completed": row.task.completed,
        "urgency": row.urgency.value,
        "due": row.formatted_due_date,
        "relative_due": row.relative_due_text,
    }


def _show_view(view: TaskView, as_json: bool) -> None:
    """Shared list display logic."""
    if as_json:
        click.echo(
            json.dumps(
                {
                    "filter": view.filter_mode.value,
                    "sort": view.sort_mode.value,
                    "search": view.search,
                    "tasks": [_row_dict(r) for r in view.rows],
                    "statistics": asdict(view.statistics),
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    if not view.rows:
        if view.statistics.total == 0:
            click.echo("No tasks yet. Add your first task with 'duewatch add'.")
        else:
            click.echo("No tasks match.")
    else:
        for row in view.rows:
            click.echo(_format_row(row))

    click.echo()
    click.echo(_format_counts(view.statistics))
    click.echo(f"Filter: {view.filter_mode.value} | Sorted by {view.sort_mode.value}")


def _check_reminders(board: TaskBoard) -> list[Reminder]:
    """One reminder pass. A failed reload keeps the last loaded tasks."""
    try:
        board.refresh()
    except TransportError as e:
        logger.error(f"Reminder check could not reload tasks: {e}")
    reminders = board.reminders()
    for reminder in reminders:
        click.echo(reminder.message)
    return reminders


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging and due-date diagnostics")
@click.version_option()
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """duewatch - task list viewer."""
    if verbose:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = load_config()


@main.command("list")
@click.option("--filter", "filter_mode", type=click.Choice([m.value for m in FilterMode]), default=None,
              help="Which tasks to show")
@click.option("--sort", "sort_mode", type=click.Choice([m.value for m in SortMode]), default=None,
              help="Sort order")
@click.option("--search", "-s", default="", help="Only tasks whose title or description contains this")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_tasks(ctx: click.Context, filter_mode: str | None, sort_mode: str | None, search: str, as_json: bool):
    """List tasks with urgency and counts."""
    config: Config = ctx.obj["config"]
    board = _load_board(ctx)
    view = board.render(
        filter_mode=_resolve_mode(FilterMode, filter_mode, config.default_filter),
        sort_mode=_resolve_mode(SortMode, sort_mode, config.default_sort),
        search=search,
    )
    _show_view(view, as_json)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show due-soon, overdue and completed counts."""
    board = _load_board(ctx)
    statistics = board.render().statistics

    if as_json:
        click.echo(json.dumps(asdict(statistics), indent=2))
    else:
        click.echo(f"Due soon:  {statistics.due_soon}")
        click.echo(f"Overdue:   {statistics.overdue}")
        click.echo(f"Completed: {statistics.completed}")
        click.echo(f"Pending:   {statistics.pending}")
        click.echo(f"Total:     {statistics.total}")


@main.command()
@click.option("--title", "-t", default="", help="Task title")
@click.option("--due", "-d", "due_date", default="", help="Due date-time, e.g. 2025-03-15T09:30")
@click.option("--priority", "-p", type=click.Choice([p.value for p in Priority]), default=Priority.MEDIUM.value)
@click.option("--description", default="", help="Optional description")
@click.pass_context
def add(ctx: click.Context, title: str, due_date: str, priority: str, description: str):
    """Create a task."""
    draft = TaskDraft(title=title, due_date=due_date, priority=priority, description=description)
    try:
        draft.validate()
        task = _make_board(ctx).create(draft)
    except (ValidationError, TransportError) as e:
        _fail(e)
    click.echo(f"Task created successfully! (#{task.id})")


@main.command()
@click.argument("task_id")
@click.option("--title", "-t", default=None)
@click.option("--due", "-d", "due_date", default=None, help="Due date-time, e.g. 2025-03-15T09:30")
@click.option("--priority", "-p", type=click.Choice([p.value for p in Priority]), default=None)
@click.option("--description", default=None)
@click.pass_context
def edit(ctx: click.Context, task_id: str, title: str | None, due_date: str | None,
         priority: str | None, description: str | None):
    """Update fields of a task."""
    board = _load_board(ctx)
    patch = TaskPatch(title=title, description=description, due_date=due_date, priority=priority)
    try:
        board.update(task_id, patch)
    except (TaskNotFoundError, ValidationError, TransportError) as e:
        _fail(e)
    click.echo(f"Task #{task_id} updated.")


def _set_completed(ctx: click.Context, task_id: str, completed: bool | None) -> None:
    board = _load_board(ctx)
    try:
        if completed is None:
            task = board.toggle(task_id)
        else:
            task = board.set_completed(task_id, completed)
    except (TaskNotFoundError, TransportError) as e:
        _fail(e)
    click.echo(f"Task {'completed' if task.completed else 'marked as pending'}!")


@main.command()
@click.argument("task_id")
@click.pass_context
def done(ctx: click.Context, task_id: str):
    """Mark a task completed."""
    _set_completed(ctx, task_id, True)


@main.command()
@click.argument("task_id")
@click.pass_context
def undo(ctx: click.Context, task_id: str):
    """Mark a task pending again."""
    _set_completed(ctx, task_id, False)


@main.command()
@click.argument("task_id")
@click.pass_context
def toggle(ctx: click.Context, task_id: str):
    """Flip a task between completed and pending."""
    _set_completed(ctx, task_id, None)


@main.command()
@click.argument("task_id")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, task_id: str, yes: bool):
    """Delete a task."""
    board = _load_board(ctx)
    try:
        task = board.get(task_id)
    except TaskNotFoundError as e:
        _fail(e)

    if not yes and not click.confirm(f"Delete '{task.title}'?"):
        return

    try:
        board.delete(task_id)
    except TransportError as e:
        _fail(e)
    click.echo("Task deleted successfully!")


@main.command()
@click.pass_context
def health(ctx: click.Context):
    """Check that the task service is up."""
    adapter = RestTaskAdapter(ctx.obj["config"])
    try:
        data = adapter.health()
    except TransportError as e:
        _fail(e)
    click.echo(f"OK: {data.get('message', 'task service is running')}")


@main.command()
@click.option("--interval", "-i", type=int, default=None, help="Seconds between checks")
@click.pass_context
def watch(ctx: click.Context, interval: int | None):
    """Print reminders for due-soon and overdue tasks on an interval."""
    config: Config = ctx.obj["config"]
    interval = interval or config.reminder_interval
    board = _make_board(ctx)

    scheduler = BlockingScheduler()
    scheduler.add_job(
        _check_reminders,
        IntervalTrigger(seconds=interval),
        args=[board],
        id="reminders",
        next_run_time=datetime.now(),
    )
    logger.info(f"Scheduled reminder check every {interval}s")

    click.echo(f"Watching {config.api_base_url} every {interval}s")
    click.echo("Press Ctrl+C to stop")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        click.echo("\nStopped.")


@main.command("dates")
@click.pass_context
def dates(ctx: click.Context):
    """Show how each task's due date is read, for debugging bad data."""
    adapter = RestTaskAdapter(ctx.obj["config"])
    try:
        records = adapter.fetch_all_raw()
    except TransportError as e:
        _fail(e)

    if not records:
        click.echo("No tasks.")
        return

    for record in records:
        if not isinstance(record, dict):
            click.echo(f"Unexpected task record: {record!r}")
            continue
        field_name, value = find_due_candidate(record)
        parsed = parse_due_value(value)
        result = parsed.instant.isoformat() if parsed.is_valid else parsed.status.value.upper()
        source = f"{field_name}={value!r}" if field_name else "no due date field"
        click.echo(f"#{record.get('id')} {record.get('title', '')}: {source} -> {result}")
