"""
Command Line Interface for todograph.
"""

import functools
import sys
from datetime import date
from pathlib import Path

import click

from . import bulk, graph, hierarchy
from .data import DEFAULT_WORKSPACE, ProjectRegistry, TaskFile
from .errors import ParseError, TodoGraphError
from .filters import FilterBuilder, categories as list_categories, filter_tasks, search as search_tasks, sort_tasks, statistics
from .ids import resolve_targets
from .models import Priority, Recurrence, SortBy, SortOrder, Task
from .store import TaskStore
from .version import VERSION

PRIORITY_SYMBOLS = {Priority.LOW: "▼", Priority.MEDIUM: "■", Priority.HIGH: "▲"}


def reports_errors(fn):
    """Print todograph errors as a one-line message and exit with status 1."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except TodoGraphError as e:
            click.echo(f"❌ {e}")
            sys.exit(1)
    return wrapper


def parse_date(text: str):
    """ISO date, or ``none`` to clear."""
    if text.strip().lower() == "none":
        return None
    try:
        return date.fromisoformat(text.strip())
    except ValueError as e:
        raise ParseError(f"Invalid date: '{text}'. Use YYYY-MM-DD") from e


def format_task(store: TaskStore, task: Task, today: date = None) -> str:
    check = "✓" if task.is_completed() else " "
    line = f"{task.id:>3}. [{check}] {PRIORITY_SYMBOLS[task.priority]} {task.description}"
    if task.category:
        line += f" #{task.category}"
    if task.due_date:
        line += f" 📅 {task.due_date.isoformat()}"
        if task.is_overdue(today):
            line += " (overdue)"
    if task.recurrence is not None:
        line += f" 🔄 {task.recurrence.value}"
    progress = hierarchy.progress(store, task.id)
    if progress is not None:
        line += f" [{progress}]"
    if task.parent_id is not None:
        line += f" ↳ {task.parent_id}"
    if task.depends_on:
        line += f" ⛓ {', '.join(str(i) for i in sorted(task.depends_on))}"
    return line


def report_bulk(result: bulk.BulkResult, verb: str) -> None:
    icon = "✅" if result.ok else "⚠️ "
    summary = result.summary(verb)
    click.echo(f"{icon} {summary[0].upper()}{summary[1:]}")
    for task_id, error in result.failures:
        click.echo(f"   • {task_id}: {error}")
    for outcome in result.outcomes:
        for parent_id in outcome.auto_completed:
            click.echo(f"🎉 Task {parent_id} auto-completed")
        for deferred in outcome.deferred:
            blocking = ", ".join(str(i) for i in deferred.blocking)
            click.echo(f"⏳ Task {deferred.parent_id} has all subtasks done but waits on: {blocking}")
        if outcome.recurred_as is not None:
            click.echo(f"🔄 Task {outcome.task_id} recurs as task {outcome.recurred_as}")


def run_targets(data_file: Path, targets: str, verb: str, operation, *args) -> None:
    with TaskFile(data_file) as store:
        ids = resolve_targets(store, targets)
        result = bulk.run_bulk(store, ids, operation, *args)
    report_bulk(result, verb)
    if not result.ok:
        sys.exit(1)


@click.group()
@click.version_option(version=VERSION, prog_name="tdg")
@click.option('-w', '--workspace', envvar='TODOGRAPH_HOME', default=str(DEFAULT_WORKSPACE),
              show_default=True, type=click.Path(file_okay=False, path_type=Path),
              help='Directory holding the projects and their task files')
@click.option('-f', '--file', 'data_file', envvar='TODOGRAPH_FILE', default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help='Task data file (.yml or .json); bypasses the current project')
@click.pass_context
@reports_errors
def main(ctx, workspace, data_file):
    """
    todograph - tasks with dependencies, subtasks and bulk commands.

    TARGETS accept single ids, ranges and lists (e.g. "1-3,7,9-11") or "all".
    """
    ctx.ensure_object(dict)
    ctx.obj['workspace'] = workspace
    ctx.obj['data_file'] = data_file or ProjectRegistry(workspace).file_for()


@main.command()
@click.argument('description', nargs=-1, required=True)
@click.option('-p', '--priority', default='medium', help='high, medium or low')
@click.option('-c', '--category', default=None, help='Category label')
@click.option('--due', default=None, help='Due date (YYYY-MM-DD)')
@click.option('-r', '--recur', default=None, help='daily, weekly or monthly')
@click.pass_context
@reports_errors
def add(ctx, description, priority, category, due, recur):
    """Add a new task."""
    priority = Priority.parse(priority)
    due_date = parse_date(due) if due else None
    recurrence = Recurrence.parse(recur) if recur else None
    with TaskFile(ctx.obj['data_file']) as store:
        task_id = store.create(" ".join(description), priority, category=category,
                               due_date=due_date, recurrence=recurrence)
    click.echo(f"✅ Added task {task_id}")


@main.command()
@click.argument('parent_id', type=int)
@click.argument('description', nargs=-1, required=True)
@click.option('-p', '--priority', default='medium', help='high, medium or low')
@click.pass_context
@reports_errors
def sub(ctx, parent_id, description, priority):
    """Add a subtask under PARENT_ID."""
    priority = Priority.parse(priority)
    with TaskFile(ctx.obj['data_file']) as store:
        child_id = hierarchy.add_subtask(store, parent_id, " ".join(description), priority)
    click.echo(f"✅ Added subtask {child_id} to task {parent_id}")


@main.command(name='list')
@click.argument('filters', nargs=-1)
@click.option('--sort', 'sort_by', default='id', help='id, priority, due, category or status')
@click.option('--desc', is_flag=True, help='Sort in descending order')
@click.pass_context
@reports_errors
def list_cmd(ctx, filters, sort_by, desc):
    """List tasks, optionally filtered (done, todo, high, medium, low, overdue, cat:NAME)."""
    task_filter = FilterBuilder().parse_arguments(filters).build()
    order = SortOrder.DESCENDING if desc else SortOrder.ASCENDING
    by = SortBy.parse(sort_by)
    with TaskFile(ctx.obj['data_file'], read_only=True) as store:
        tasks = sort_tasks(filter_tasks(store, task_filter), by, order)
        if not tasks:
            click.echo("📭 No tasks found")
            return
        today = date.today()
        for task in tasks:
            click.echo(format_task(store, task, today))


@main.command()
@click.argument('keyword')
@click.pass_context
@reports_errors
def search(ctx, keyword):
    """Find tasks whose description contains KEYWORD."""
    with TaskFile(ctx.obj['data_file'], read_only=True) as store:
        found = list(search_tasks(store, keyword))
        if not found:
            click.echo(f"📭 No tasks matching '{keyword}'")
            return
        for task in found:
            click.echo(format_task(store, task))


@main.command()
@click.argument('task_id', type=int)
@click.pass_context
@reports_errors
def show(ctx, task_id):
    """Show one task with its relations."""
    with TaskFile(ctx.obj['data_file'], read_only=True) as store:
        task = store.require(task_id)
        click.echo(format_task(store, task))
        blocking = graph.incomplete_dependencies(store, task_id)
        if blocking:
            click.echo(f"   ⛔ Blocked by: {', '.join(str(i) for i in blocking)}")
        waiting = graph.dependents(store, task_id)
        if waiting:
            click.echo(f"   ⏳ Needed by: {', '.join(str(i) for i in waiting)}")
        for child in hierarchy.children(store, task_id):
            click.echo(f"   {format_task(store, child)}")


@main.command()
@click.argument('targets')
@click.pass_context
@reports_errors
def done(ctx, targets):
    """Complete TARGETS."""
    run_targets(ctx.obj['data_file'], targets, "completed", bulk.complete)


@main.command()
@click.argument('targets')
@click.pass_context
@reports_errors
def undo(ctx, targets):
    """Mark TARGETS as pending again."""
    run_targets(ctx.obj['data_file'], targets, "reopened", bulk.uncomplete)


@main.command()
@click.argument('targets')
@click.pass_context
@reports_errors
def toggle(ctx, targets):
    """Toggle completion of TARGETS."""
    run_targets(ctx.obj['data_file'], targets, "toggled", bulk.toggle)


@main.command()
@click.argument('targets')
@click.pass_context
@reports_errors
def rm(ctx, targets):
    """Remove TARGETS. Subtasks of a removed task are kept and detached."""
    run_targets(ctx.obj['data_file'], targets, "removed", bulk.remove)


@main.command()
@click.argument('targets')
@click.argument('level')
@click.pass_context
@reports_errors
def priority(ctx, targets, level):
    """Set the priority of TARGETS to LEVEL."""
    run_targets(ctx.obj['data_file'], targets, "updated", bulk.set_priority, Priority.parse(level))


@main.command()
@click.argument('targets')
@click.argument('name', required=False)
@click.pass_context
@reports_errors
def category(ctx, targets, name):
    """Set the category of TARGETS, or clear it when NAME is omitted."""
    run_targets(ctx.obj['data_file'], targets, "updated", bulk.set_category, name)


@main.command()
@click.argument('task_id', type=int)
@click.argument('when', default='none')
@click.pass_context
@reports_errors
def due(ctx, task_id, when):
    """Set the due date (YYYY-MM-DD) of a task, or clear it."""
    due_date = parse_date(when)
    with TaskFile(ctx.obj['data_file']) as store:
        store.set_due_date(task_id, due_date)
    click.echo(f"✅ Task {task_id} due {due_date.isoformat() if due_date else 'date cleared'}")


@main.command()
@click.argument('task_id', type=int)
@click.argument('pattern', default='none')
@click.pass_context
@reports_errors
def recur(ctx, task_id, pattern):
    """Make a task repeat daily, weekly or monthly, or stop it with "none"."""
    recurrence = None if pattern.strip().lower() == 'none' else Recurrence.parse(pattern)
    with TaskFile(ctx.obj['data_file']) as store:
        store.set_recurrence(task_id, recurrence)
    if recurrence is None:
        click.echo(f"✅ Task {task_id} no longer repeats")
    else:
        click.echo(f"✅ Task {task_id} repeats {recurrence.value}")


@main.command()
@click.argument('task_id', type=int)
@click.argument('description', nargs=-1, required=True)
@click.pass_context
@reports_errors
def edit(ctx, task_id, description):
    """Replace the description of a task."""
    with TaskFile(ctx.obj['data_file']) as store:
        store.edit_description(task_id, " ".join(description))
    click.echo(f"✅ Task {task_id} updated")


@main.command()
@click.argument('task_id', type=int)
@click.argument('parent_id', default='none')
@click.pass_context
@reports_errors
def parent(ctx, task_id, parent_id):
    """Move a task under PARENT_ID, or detach it with "none"."""
    new_parent = None if parent_id.lower() == 'none' else _task_id(parent_id)
    with TaskFile(ctx.obj['data_file']) as store:
        hierarchy.set_parent(store, task_id, new_parent)
    if new_parent is None:
        click.echo(f"✅ Task {task_id} detached")
    else:
        click.echo(f"✅ Task {task_id} is now a subtask of {new_parent}")


def _task_id(text: str) -> int:
    if not text.isdigit():
        raise ParseError(f"Invalid task ID: '{text}'")
    return int(text)


@main.group()
def dep():
    """Manage task dependencies."""
    pass


@dep.command(name='add')
@click.argument('task_id', type=int)
@click.argument('depends_on_id', type=int)
@click.pass_context
@reports_errors
def dep_add(ctx, task_id, depends_on_id):
    """Make TASK_ID wait for DEPENDS_ON_ID."""
    with TaskFile(ctx.obj['data_file']) as store:
        graph.add_dependency(store, task_id, depends_on_id)
    click.echo(f"✅ Task {task_id} now depends on task {depends_on_id}")


@dep.command(name='rm')
@click.argument('task_id', type=int)
@click.argument('depends_on_id', type=int)
@click.pass_context
@reports_errors
def dep_rm(ctx, task_id, depends_on_id):
    """Remove the dependency of TASK_ID on DEPENDS_ON_ID."""
    with TaskFile(ctx.obj['data_file']) as store:
        graph.remove_dependency(store, task_id, depends_on_id)
    click.echo(f"✅ Task {task_id} no longer depends on task {depends_on_id}")


@main.group()
def project():
    """Manage projects: separate task lists in one workspace."""
    pass


@project.command(name='list')
@click.pass_context
@reports_errors
def project_list(ctx):
    """List projects, marking the current one."""
    registry = ProjectRegistry(ctx.obj['workspace'])
    for name in registry.names():
        marker = "👉" if name == registry.current else "  "
        click.echo(f"{marker} {name}")


@project.command(name='new')
@click.argument('name', nargs=-1, required=True)
@click.pass_context
@reports_errors
def project_new(ctx, name):
    """Create a project."""
    name = " ".join(name)
    ProjectRegistry(ctx.obj['workspace']).create(name)
    click.echo(f"✅ Created project '{name}'")


@project.command(name='switch')
@click.argument('name', nargs=-1, required=True)
@click.pass_context
@reports_errors
def project_switch(ctx, name):
    """Make a project the current one."""
    name = " ".join(name)
    ProjectRegistry(ctx.obj['workspace']).switch(name)
    click.echo(f"✅ Switched to project '{name}'")


@project.command(name='rename')
@click.argument('old_name')
@click.argument('new_name')
@click.pass_context
@reports_errors
def project_rename(ctx, old_name, new_name):
    """Rename a project (quote names containing spaces)."""
    ProjectRegistry(ctx.obj['workspace']).rename(old_name, new_name)
    click.echo(f"✅ Renamed project '{old_name}' to '{new_name}'")


@project.command(name='rm')
@click.argument('name', nargs=-1, required=True)
@click.pass_context
@reports_errors
def project_rm(ctx, name):
    """Delete a project and its tasks."""
    name = " ".join(name)
    ProjectRegistry(ctx.obj['workspace']).delete(name)
    click.echo(f"🗑️  Deleted project '{name}'")


@main.command()
@click.pass_context
@reports_errors
def categories(ctx):
    """List the categories in use."""
    with TaskFile(ctx.obj['data_file'], read_only=True) as store:
        names = list_categories(store)
    if not names:
        click.echo("📭 No categories")
        return
    for name in names:
        click.echo(f"🏷️  {name}")


@main.command()
@click.pass_context
@reports_errors
def stats(ctx):
    """Show task statistics."""
    with TaskFile(ctx.obj['data_file'], read_only=True) as store:
        s = statistics(store)
    click.echo(f"📋 Total: {s.total}")
    click.echo(f"✅ Completed: {s.completed} ({s.completion_percentage:.1f}%)")
    click.echo(f"⏳ Pending: {s.pending}")
    click.echo(f"⚠️  Overdue: {s.overdue}")
    click.echo(f"▲ High: {s.high_priority}  ■ Medium: {s.medium_priority}  ▼ Low: {s.low_priority}")


if __name__ == "__main__":
    main()
