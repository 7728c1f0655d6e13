"""Unit tests for snapshot persistence."""

import json
import pytest
import yaml
from datetime import date
from pathlib import Path

from todograph import graph, hierarchy
from todograph.data import TaskFile, load_store, save_store, snapshot_schema
from todograph.errors import CorruptionError, MigrationNeededError
from todograph.models import Priority, Recurrence, TaskStatus
from todograph.store import TaskStore


def _populated():
    store = TaskStore()
    parent = store.create("Release 1.0", Priority.HIGH, category="Work", due_date=date(2026, 11, 30))
    hierarchy.add_subtask(store, parent, "Write changelog")
    other = store.create("Tag the build", recurrence=Recurrence.WEEKLY)
    graph.add_dependency(store, parent, other)
    gone = store.create("Scratch")
    store.remove(gone)
    store.set_status(other, TaskStatus.COMPLETED)
    return store


class TestSaveLoad:
    """Test round trips through YAML and JSON files."""

    @pytest.mark.parametrize("name", ["tasks.yml", "tasks.json"])
    def test_round_trip(self, tmp_path, name):
        store = _populated()
        path = save_store(store, tmp_path / "nested" / name)
        loaded = load_store(path)

        assert [t.model_dump() for t in loaded.tasks()] == [t.model_dump() for t in store.tasks()]
        assert loaded.next_id == store.next_id == 5
        assert loaded.create("new") == 5

    def test_json_file_is_json(self, tmp_path):
        path = save_store(_populated(), tmp_path / "tasks.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["tasks"][0]["depends_on"] == [3]
        assert data["tasks"][0]["due_date"] == "2026-11-30"

    def test_missing_file_gives_empty_store(self, tmp_path):
        store = load_store(tmp_path / "absent.yml")
        assert store.is_empty()
        assert store.next_id == 1

    def test_empty_file_gives_empty_store(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text("", encoding="utf-8")
        assert load_store(path).is_empty()

    def test_unquoted_yaml_dates(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text(
            "next_id: 2\n"
            "tasks:\n"
            "- id: 1\n"
            "  description: Pay rent\n"
            "  due_date: 2026-11-01\n",
            encoding="utf-8",
        )
        store = load_store(path)
        assert store.get(1).due_date == date(2026, 11, 1)

    def test_older_schema_without_recurrence(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text(
            "schema_version: 0.3.0\n"
            "next_id: 3\n"
            "tasks:\n"
            "- id: 2\n"
            "  description: Old task\n"
            "  status: completed\n",
            encoding="utf-8",
        )
        task = load_store(path).get(2)
        assert task.recurrence is None
        assert not task.auto_complete_deferred
        assert task.is_completed()

    def test_deferral_flag_persists(self, tmp_path):
        store = TaskStore()
        parent = store.create("parent")
        hierarchy.add_subtask(store, parent, "child")
        blocker = store.create("blocker")
        graph.add_dependency(store, parent, blocker)
        hierarchy.complete(store, 2)

        loaded = load_store(save_store(store, tmp_path / "tasks.yml"))
        assert loaded.get(parent).auto_complete_deferred
        assert hierarchy.complete(loaded, blocker).auto_completed == [parent]

    def test_no_temp_files_left_behind(self, tmp_path):
        save_store(_populated(), tmp_path / "tasks.yml")
        assert [p.name for p in tmp_path.iterdir()] == ["tasks.yml"]


class TestCorruptData:
    """Test rejection of bad files."""

    def test_yaml_syntax_error(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text("tasks: [unclosed", encoding="utf-8")
        with pytest.raises(CorruptionError, match="Syntax error"):
            load_store(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(CorruptionError, match="invalid data structure"):
            load_store(path)

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": [{"id": "one", "description": "x"}]}), encoding="utf-8")
        with pytest.raises(CorruptionError, match="not a valid task snapshot"):
            load_store(path)

    def test_model_violation(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": [{"id": 1, "description": "x", "depends_on": [1]}]}), encoding="utf-8")
        with pytest.raises(CorruptionError):
            load_store(path)

    def test_newer_schema_version(self, tmp_path):
        path = tmp_path / "tasks.yml"
        path.write_text(yaml.safe_dump({"schema_version": "99.0.0", "tasks": []}), encoding="utf-8")
        with pytest.raises(MigrationNeededError):
            load_store(path)

    def test_schema_is_generated_from_models(self):
        schema = snapshot_schema()
        assert "tasks" in schema["properties"]
        assert schema["$schema"].endswith("2020-12/schema")


class TestTaskFile:
    """Test the load/save context manager."""

    def test_saves_on_exit(self, tmp_path):
        path = tmp_path / "tasks.yml"
        with TaskFile(path) as store:
            store.create("persisted")
        assert load_store(path).get(1).description == "persisted"

    def test_does_not_save_when_block_raises(self, tmp_path):
        path = tmp_path / "tasks.yml"
        with TaskFile(path) as store:
            store.create("first")

        with pytest.raises(RuntimeError):
            with TaskFile(path) as store:
                store.create("second")
                raise RuntimeError("boom")

        assert load_store(path).ids() == [1]

    def test_read_only_never_writes(self, tmp_path):
        path = tmp_path / "tasks.yml"
        with TaskFile(path, read_only=True) as store:
            store.create("ignored")
        assert not Path(path).exists()
