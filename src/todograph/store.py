"""
TaskStore - owner of every task record.

Relations between tasks (dependencies, parentage) are plain ids stored on
each Task and resolved through the store, so the store is the only place
task state lives.
"""
from datetime import date
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .errors import CorruptionError, NotFoundError, ParseError
from .logs import get_logger
from .models import Priority, Recurrence, Task, TaskSnapshot, TaskStatus

log = get_logger("store")

class TaskStore:
    """In-memory task collection with a per-store id counter."""

    def __init__(self):
        self._tasks: Dict[int, Task] = {}
        self.next_id: int = 1

    # -------------------- identity --------------------
    def _allocate_id(self) -> int:
        tid = self.next_id
        self.next_id += 1
        return tid

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: int) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks())

    def ids(self) -> List[int]:
        return sorted(self._tasks)

    def tasks(self) -> List[Task]:
        """All tasks in ascending id order."""
        return [self._tasks[tid] for tid in self.ids()]

    def is_empty(self) -> bool:
        return not self._tasks

    # -------------------- CRUD --------------------
    def create(self, description: str, priority: Priority = Priority.MEDIUM, *,
               category: Optional[str] = None, due_date: Optional[date] = None,
               parent_id: Optional[int] = None, recurrence: Optional[Recurrence] = None) -> int:
        """Insert a new pending task and return its id."""
        if parent_id is not None:
            self.require(parent_id)
        _check_description(description)
        task = Task(
            id=self.next_id,
            description=description,
            priority=priority,
            category=_clean_category(category),
            due_date=due_date,
            parent_id=parent_id,
            recurrence=recurrence,
        )
        self._allocate_id()
        self._tasks[task.id] = task
        log.debug(f"Created task {task.id} (parent={parent_id}, priority={priority.value})")
        return task.id

    def get(self, task_id: int) -> Optional[Task]:
        return self._tasks.get(task_id)

    def require(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def remove(self, task_id: int) -> Task:
        """
        Delete a task.

        Every inbound dependency edge is severed and the task's subtasks are
        detached (their parent_id is cleared), never deleted.
        """
        task = self._tasks.pop(task_id, None)
        if task is None:
            raise NotFoundError(task_id)

        for other in self._tasks.values():
            if task_id in other.depends_on:
                other.depends_on.discard(task_id)
                log.debug(f"Dropped dependency {other.id} -> {task_id}")
            if other.parent_id == task_id:
                other.parent_id = None
                log.debug(f"Detached subtask {other.id} from removed parent {task_id}")

        log.debug(f"Removed task {task_id}")
        return task

    def update(self, task_id: int, fn: Callable[[Task], None]) -> Task:
        """Apply a mutation to an existing task."""
        task = self.require(task_id)
        fn(task)
        return task

    # -------------------- field setters --------------------
    def set_priority(self, task_id: int, priority: Priority) -> Task:
        return self.update(task_id, lambda t: setattr(t, 'priority', priority))

    def set_category(self, task_id: int, category: Optional[str]) -> Task:
        category = _clean_category(category)
        return self.update(task_id, lambda t: setattr(t, 'category', category))

    def set_recurrence(self, task_id: int, recurrence: Optional[Recurrence]) -> Task:
        return self.update(task_id, lambda t: setattr(t, 'recurrence', recurrence))

    def set_due_date(self, task_id: int, due_date: Optional[date]) -> Task:
        return self.update(task_id, lambda t: setattr(t, 'due_date', due_date))

    def edit_description(self, task_id: int, description: str) -> Task:
        self.require(task_id)
        _check_description(description)
        return self.update(task_id, lambda t: setattr(t, 'description', description))

    def set_status(self, task_id: int, status: TaskStatus) -> Task:
        """Set the status directly. Any pending deferred auto-completion is dropped."""
        def apply(task: Task) -> None:
            task.status = status
            task.auto_complete_deferred = False
        return self.update(task_id, apply)

    # -------------------- snapshots --------------------
    def snapshot(self) -> TaskSnapshot:
        return TaskSnapshot(next_id=self.next_id, tasks=[t.model_copy(deep=True) for t in self.tasks()])

    @classmethod
    def load(cls, tasks: Iterable[Task], next_id: Optional[int] = None) -> 'TaskStore':
        """
        Rebuild a store from trusted, previously saved tasks.

        Dependency and parent edges are not re-checked for cycles. Edges that
        point at tasks missing from the input are pruned.
        """
        store = cls()
        for task in tasks:
            if task.id in store._tasks:
                raise CorruptionError(f"Duplicate task id {task.id} in snapshot")
            store._tasks[task.id] = task.model_copy(deep=True)

        for task in store._tasks.values():
            dangling = {tid for tid in task.depends_on if tid not in store._tasks}
            if dangling:
                log.warning(f"Task {task.id}: pruning dependencies on missing tasks {sorted(dangling)}")
                task.depends_on -= dangling
            if task.parent_id is not None and task.parent_id not in store._tasks:
                log.warning(f"Task {task.id}: parent {task.parent_id} is missing, detaching")
                task.parent_id = None

        highest = max(store._tasks, default=0)
        store.next_id = max(next_id or 1, highest + 1)
        log.info(f"Loaded {len(store)} tasks, next id {store.next_id}")
        return store

    @classmethod
    def from_snapshot(cls, snapshot: TaskSnapshot) -> 'TaskStore':
        return cls.load(snapshot.tasks, snapshot.next_id)

def _check_description(description: str) -> None:
    if not description or not description.strip():
        raise ParseError("Task description cannot be empty")

def _clean_category(category: Optional[str]) -> Optional[str]:
    # Blank labels mean no category
    if category is None or not category.strip():
        return None
    return category
