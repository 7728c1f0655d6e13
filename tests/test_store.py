"""Unit tests for TaskStore."""

import pytest
from datetime import date

from todograph.errors import CorruptionError, NotFoundError, ParseError
from todograph.models import Priority, Recurrence, Task, TaskStatus
from todograph.store import TaskStore


class TestCreate:
    """Test task creation and id allocation."""

    def test_ids_are_sequential(self, store):
        assert store.create("first") == 1
        assert store.create("second") == 2
        assert len(store) == 2

    def test_new_task_is_pending(self, store):
        tid = store.create("Write docs", Priority.HIGH, category="Work", due_date=date(2026, 11, 1))
        task = store.get(tid)
        assert task.status == TaskStatus.PENDING
        assert task.priority == Priority.HIGH
        assert task.category == "Work"
        assert task.due_date == date(2026, 11, 1)

    def test_ids_never_reused_after_removal(self, store):
        store.create("a")
        second = store.create("b")
        store.remove(second)
        assert store.create("c") == 3

    def test_empty_description_rejected(self, store):
        with pytest.raises(ParseError):
            store.create("   ")
        assert store.is_empty()
        assert store.create("real") == 1

    def test_blank_category_stored_as_none(self, store):
        tid = store.create("errand", category="   ")
        assert store.get(tid).category is None
        store.set_category(tid, "   ")
        assert store.get(tid).category is None

    def test_create_recurring(self, store):
        tid = store.create("Standup", recurrence=Recurrence.DAILY)
        assert store.get(tid).recurrence == Recurrence.DAILY
        store.set_recurrence(tid, None)
        assert store.get(tid).recurrence is None

    def test_create_with_missing_parent(self, store):
        with pytest.raises(NotFoundError):
            store.create("orphan", parent_id=42)

    def test_independent_stores_have_own_counters(self):
        one, two = TaskStore(), TaskStore()
        one.create("a")
        one.create("b")
        assert two.create("c") == 1


class TestLookupAndUpdate:
    """Test get, require, update and field setters."""

    def test_get_missing_returns_none(self, store):
        assert store.get(7) is None

    def test_require_missing_raises(self, store):
        with pytest.raises(NotFoundError) as exc:
            store.require(7)
        assert exc.value.task_id == 7
        assert exc.value.kind == "NotFound"

    def test_update_applies_mutation(self, store):
        tid = store.create("task")
        store.update(tid, lambda t: setattr(t, "category", "home"))
        assert store.get(tid).category == "home"

    def test_update_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.update(1, lambda t: None)

    def test_setters(self, store):
        tid = store.create("task")
        store.set_priority(tid, Priority.LOW)
        store.set_category(tid, "Errands")
        store.set_due_date(tid, date(2026, 12, 24))
        store.edit_description(tid, "renamed")
        store.set_status(tid, TaskStatus.COMPLETED)

        task = store.get(tid)
        assert task.priority == Priority.LOW
        assert task.category == "Errands"
        assert task.due_date == date(2026, 12, 24)
        assert task.description == "renamed"
        assert task.is_completed()

        store.set_category(tid, None)
        store.set_due_date(tid, None)
        assert task.category is None
        assert task.due_date is None

    def test_edit_description_rejects_empty(self, store):
        tid = store.create("keep me")
        with pytest.raises(ParseError):
            store.edit_description(tid, "")
        assert store.get(tid).description == "keep me"

    def test_iteration_in_id_order(self, store):
        for name in ("a", "b", "c"):
            store.create(name)
        assert [t.id for t in store] == [1, 2, 3]
        assert store.ids() == [1, 2, 3]
        assert 2 in store
        assert 9 not in store


class TestRemove:
    """Test removal side effects."""

    def test_remove_returns_task(self, store):
        tid = store.create("gone")
        removed = store.remove(tid)
        assert removed.description == "gone"
        assert store.get(tid) is None

    def test_remove_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.remove(99)

    def test_remove_severs_inbound_dependencies(self, chain_store):
        chain_store.get(3).depends_on.add(1)
        chain_store.remove(1)
        assert chain_store.get(2).depends_on == set()
        assert chain_store.get(3).depends_on == {2}

    def test_remove_parent_detaches_children(self, store):
        parent = store.create("parent")
        kid_a = store.create("a", parent_id=parent)
        kid_b = store.create("b", parent_id=parent)
        store.remove(parent)
        assert store.get(kid_a).parent_id is None
        assert store.get(kid_b).parent_id is None
        assert len(store) == 2


class TestSnapshot:
    """Test snapshot export and bulk load."""

    def test_snapshot_keeps_counter(self, store):
        store.create("a")
        store.create("b")
        store.remove(2)
        snapshot = store.snapshot()
        assert snapshot.next_id == 3
        assert [t.id for t in snapshot.tasks] == [1]

    def test_snapshot_is_a_copy(self, store):
        tid = store.create("a")
        snapshot = store.snapshot()
        store.edit_description(tid, "changed")
        assert snapshot.tasks[0].description == "a"

    def test_load_sets_counter_above_max_id(self):
        tasks = [Task(id=4, description="four"), Task(id=9, description="nine")]
        store = TaskStore.load(tasks)
        assert store.ids() == [4, 9]
        assert store.create("next") == 10

    def test_load_honours_saved_counter(self):
        store = TaskStore.load([Task(id=2, description="two")], next_id=8)
        assert store.create("next") == 8

    def test_load_rejects_duplicate_ids(self):
        with pytest.raises(CorruptionError):
            TaskStore.load([Task(id=1, description="a"), Task(id=1, description="b")])

    def test_load_prunes_dangling_edges(self):
        tasks = [
            Task(id=1, description="a", depends_on={2, 5}),
            Task(id=2, description="b", parent_id=7),
        ]
        store = TaskStore.load(tasks)
        assert store.get(1).depends_on == {2}
        assert store.get(2).parent_id is None

    def test_load_trusts_cycles(self):
        """Stored edges are not re-checked for cycles."""
        tasks = [
            Task(id=1, description="a", depends_on={2}),
            Task(id=2, description="b", depends_on={1}),
        ]
        store = TaskStore.load(tasks)
        assert store.get(1).depends_on == {2}
        assert store.get(2).depends_on == {1}
