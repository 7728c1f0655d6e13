"""Tests for the tdg command line."""

import pytest
from click.testing import CliRunner

from todograph.cli import main
from todograph.data import load_store


@pytest.fixture
def tdg(tmp_path):
    """Invoke the CLI against a throwaway data file."""
    runner = CliRunner()
    data_file = tmp_path / "tasks.yml"

    def invoke(*args):
        return runner.invoke(main, ["--file", str(data_file), *args])

    invoke.data_file = data_file
    return invoke


class TestCommands:
    """Test the main command flows."""

    def test_add_and_list(self, tdg):
        result = tdg("add", "Write", "report", "-p", "high", "-c", "Work", "--due", "2026-11-01")
        assert result.exit_code == 0, result.output
        assert "Added task 1" in result.output

        result = tdg("list")
        assert result.exit_code == 0
        assert "Write report" in result.output
        assert "#Work" in result.output

    def test_invalid_priority(self, tdg):
        result = tdg("add", "thing", "-p", "urgent")
        assert result.exit_code == 1
        assert "Invalid priority" in result.output

    def test_list_filters(self, tdg):
        tdg("add", "alpha", "-p", "high")
        tdg("add", "beta", "-p", "low")
        result = tdg("list", "todo", "high")
        assert "alpha" in result.output
        assert "beta" not in result.output

    def test_list_empty(self, tdg):
        result = tdg("list")
        assert result.exit_code == 0
        assert "No tasks found" in result.output
        assert not tdg.data_file.exists()

    def test_bulk_done_reports_partial_failure(self, tdg):
        for name in ("one", "two", "three"):
            tdg("add", name)
        assert tdg("dep", "add", "2", "3").exit_code == 0

        result = tdg("done", "1,2,999")
        assert result.exit_code == 1
        assert "Completed 1 of 3 tasks" in result.output
        assert "blocked by dependencies: 2" in result.output
        assert "not found: 999" in result.output

        store = load_store(tdg.data_file)
        assert store.get(1).is_completed()
        assert not store.get(2).is_completed()

    def test_circular_dependency_rejected(self, tdg):
        tdg("add", "a")
        tdg("add", "b")
        tdg("dep", "add", "1", "2")
        result = tdg("dep", "add", "2", "1")
        assert result.exit_code == 1
        assert "already depends on" in result.output

    def test_subtasks_auto_complete_parent(self, tdg):
        tdg("add", "parent")
        tdg("sub", "1", "child")
        result = tdg("done", "2")
        assert result.exit_code == 0
        assert "Task 1 auto-completed" in result.output
        assert load_store(tdg.data_file).get(1).is_completed()

    def test_rm_all(self, tdg):
        tdg("add", "a")
        tdg("add", "b")
        result = tdg("rm", "all")
        assert result.exit_code == 0
        assert "Removed 2 of 2 tasks" in result.output
        assert load_store(tdg.data_file).is_empty()

    def test_invalid_range(self, tdg):
        tdg("add", "a")
        result = tdg("done", "3-1")
        assert result.exit_code == 1
        assert "Invalid range" in result.output

    def test_due_edit_and_parent(self, tdg):
        tdg("add", "a")
        tdg("add", "b")
        assert tdg("due", "1", "2026-12-01").exit_code == 0
        assert tdg("edit", "1", "renamed").exit_code == 0
        assert tdg("parent", "2", "1").exit_code == 0
        assert tdg("parent", "1", "2").exit_code == 1

        store = load_store(tdg.data_file)
        assert store.get(1).description == "renamed"
        assert store.get(1).due_date.isoformat() == "2026-12-01"
        assert store.get(2).parent_id == 1

    def test_stats_and_categories(self, tdg):
        tdg("add", "a", "-c", "Home")
        tdg("add", "b", "-c", "Work")
        tdg("done", "1")
        result = tdg("stats")
        assert "Total: 2" in result.output
        assert "Completed: 1 (50.0%)" in result.output
        result = tdg("categories")
        assert "Home" in result.output and "Work" in result.output

    def test_recurring_task_schedules_next(self, tdg):
        result = tdg("add", "Pay", "rent", "--due", "2026-10-01", "-r", "monthly")
        assert result.exit_code == 0, result.output
        result = tdg("done", "1")
        assert result.exit_code == 0
        assert "Task 1 recurs as task 2" in result.output

        store = load_store(tdg.data_file)
        assert store.get(2).due_date.isoformat() == "2026-11-01"
        assert "🔄 monthly" in tdg("list", "todo").output

    def test_recur_command(self, tdg):
        tdg("add", "Standup")
        assert tdg("recur", "1", "d").exit_code == 0
        assert load_store(tdg.data_file).get(1).recurrence.value == "daily"
        assert tdg("recur", "1").exit_code == 0
        assert load_store(tdg.data_file).get(1).recurrence is None
        result = tdg("recur", "1", "yearly")
        assert result.exit_code == 1
        assert "Invalid recurrence" in result.output


@pytest.fixture
def tdg_ws(tmp_path):
    """Invoke the CLI against a throwaway workspace, without --file."""
    runner = CliRunner()
    workspace = tmp_path / "ws"

    def invoke(*args):
        return runner.invoke(main, ["--workspace", str(workspace), *args], env={"TODOGRAPH_FILE": None})

    invoke.workspace = workspace
    return invoke


class TestProjects:
    """Test the project commands."""

    def test_tasks_follow_current_project(self, tdg_ws):
        assert tdg_ws("add", "home chore").exit_code == 0
        assert tdg_ws("project", "new", "Work").exit_code == 0
        result = tdg_ws("project", "switch", "Work")
        assert result.exit_code == 0
        assert "Switched to project 'Work'" in result.output

        tdg_ws("add", "write report")
        listing = tdg_ws("list").output
        assert "write report" in listing
        assert "home chore" not in listing
        assert load_store(tdg_ws.workspace / "work.yml").get(1).description == "write report"
        assert load_store(tdg_ws.workspace / "tasks.yml").get(1).description == "home chore"

    def test_project_list_marks_current(self, tdg_ws):
        tdg_ws("project", "new", "Work")
        output = tdg_ws("project", "list").output
        assert "👉 default" in output
        assert "Work" in output

    def test_rename_and_delete(self, tdg_ws):
        tdg_ws("project", "new", "Old")
        assert tdg_ws("project", "rename", "Old", "New").exit_code == 0
        result = tdg_ws("project", "rm", "default")
        assert result.exit_code == 1
        assert "Cannot delete the current project" in result.output
        assert tdg_ws("project", "rm", "New").exit_code == 0
        assert "New" not in tdg_ws("project", "list").output

    def test_switch_to_missing_project(self, tdg_ws):
        result = tdg_ws("project", "switch", "nowhere")
        assert result.exit_code == 1
        assert "Project 'nowhere' not found" in result.output
