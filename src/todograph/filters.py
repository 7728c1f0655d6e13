"""
Read-only views over a TaskStore: filtering, search, sorting and statistics.
"""
from datetime import date
from typing import Iterable, Iterator, List, Optional

from .errors import ParseError
from .models import Priority, SortBy, SortOrder, Task, TaskFilter, TaskStatistics, TaskStatus
from .store import TaskStore

def matches(task: Task, task_filter: Optional[TaskFilter], today: Optional[date] = None) -> bool:
    """True when every constraint present on the filter holds for the task."""
    if task_filter is None:
        return True
    if task_filter.status is not None and task.status != task_filter.status:
        return False
    if task_filter.priority is not None and task.priority != task_filter.priority:
        return False
    if task_filter.category is not None and task.category != task_filter.category:
        return False
    if task_filter.overdue is not None and task.is_overdue(today) != task_filter.overdue:
        return False
    if task_filter.keyword and task_filter.keyword.lower() not in task.description.lower():
        return False
    return True

class TaskView:
    """
    Lazy, restartable sequence of the tasks matching a filter, in id order.

    Every iteration reads the store afresh, so a view reflects mutations made
    between iterations.
    """

    def __init__(self, store: TaskStore, task_filter: Optional[TaskFilter] = None, today: Optional[date] = None):
        self.store = store
        self.task_filter = task_filter
        self.today = today

    def __iter__(self) -> Iterator[Task]:
        today = self.today or date.today()
        for task in self.store.tasks():
            if matches(task, self.task_filter, today):
                yield task

    def ids(self) -> List[int]:
        return [t.id for t in self]

    def count(self) -> int:
        return sum(1 for _ in self)

def filter_tasks(store: TaskStore, task_filter: Optional[TaskFilter] = None, today: Optional[date] = None) -> TaskView:
    return TaskView(store, task_filter, today)

def search(store: TaskStore, keyword: str) -> TaskView:
    """Case-insensitive substring search over descriptions."""
    return TaskView(store, TaskFilter(keyword=keyword))

def categories(store: TaskStore) -> List[str]:
    return sorted({t.category for t in store.tasks() if t.category is not None})

def statistics(store: TaskStore, today: Optional[date] = None) -> TaskStatistics:
    today = today or date.today()
    tasks = store.tasks()
    total = len(tasks)
    completed = sum(1 for t in tasks if t.is_completed())
    return TaskStatistics(
        total=total,
        completed=completed,
        pending=total - completed,
        completion_percentage=(completed / total * 100.0) if total else 0.0,
        high_priority=sum(1 for t in tasks if t.priority == Priority.HIGH),
        medium_priority=sum(1 for t in tasks if t.priority == Priority.MEDIUM),
        low_priority=sum(1 for t in tasks if t.priority == Priority.LOW),
        overdue=sum(1 for t in tasks if t.is_overdue(today)),
    )

# -------------------- sorting --------------------
def _sort_value(task: Task, by: SortBy):
    if by == SortBy.PRIORITY:
        return task.priority.rank
    if by == SortBy.DUE_DATE:
        return task.due_date
    if by == SortBy.CATEGORY:
        return task.category.lower() if task.category is not None else None
    if by == SortBy.STATUS:
        return 1 if task.is_completed() else 0
    return task.id

def sort_tasks(tasks: Iterable[Task], by: SortBy = SortBy.ID, order: SortOrder = SortOrder.ASCENDING) -> List[Task]:
    """
    Sort tasks by one key, ties broken by ascending id.

    Tasks without a value for the key (no due date, no category) always
    come last, whatever the order.
    """
    ordered = sorted(tasks, key=lambda t: t.id)
    present = [t for t in ordered if _sort_value(t, by) is not None]
    missing = [t for t in ordered if _sort_value(t, by) is None]
    present.sort(key=lambda t: _sort_value(t, by), reverse=(order == SortOrder.DESCENDING))
    return present + missing

# -------------------- textual filters --------------------
class FilterBuilder:
    """Build a TaskFilter from list arguments such as ``todo high cat:work``."""

    VALID_FILTERS = "done, todo, high, medium, low, overdue, category:name"
    PRIORITY_WORDS = ("high", "h", "medium", "med", "m", "low", "l")

    def __init__(self):
        self.status: Optional[TaskStatus] = None
        self.priority: Optional[Priority] = None
        self.category: Optional[str] = None
        self.overdue: Optional[bool] = None

    def with_status(self, status: TaskStatus) -> 'FilterBuilder':
        if self.status is not None:
            raise ParseError("Cannot specify multiple status filters (done/todo).")
        self.status = status
        return self

    def with_priority(self, priority: Priority) -> 'FilterBuilder':
        if self.priority is not None:
            raise ParseError("Cannot specify multiple priority filters (high/medium/low).")
        self.priority = priority
        return self

    def with_category(self, category: str) -> 'FilterBuilder':
        if self.category is not None:
            raise ParseError("Cannot specify multiple category filters.")
        if not category.strip():
            raise ParseError("Category name cannot be empty. Use: list category:name")
        self.category = category
        return self

    def with_overdue(self) -> 'FilterBuilder':
        self.overdue = True
        return self

    def parse_argument(self, arg: str) -> 'FilterBuilder':
        lowered = arg.lower()
        for prefix in ("category:", "cat:"):
            if lowered.startswith(prefix):
                return self.with_category(arg[len(prefix):])

        if lowered in ("completed", "done"):
            return self.with_status(TaskStatus.COMPLETED)
        if lowered in ("pending", "todo"):
            return self.with_status(TaskStatus.PENDING)
        if lowered == "overdue":
            return self.with_overdue()
        if lowered in self.PRIORITY_WORDS:
            return self.with_priority(Priority.parse(lowered))
        raise ParseError(f"Unknown filter: '{arg}'. Valid filters: {self.VALID_FILTERS}")

    def parse_arguments(self, args: Iterable[str]) -> 'FilterBuilder':
        for arg in args:
            self.parse_argument(arg)
        return self

    def build(self) -> Optional[TaskFilter]:
        if self.status is None and self.priority is None and self.category is None and self.overdue is None:
            return None
        return TaskFilter(status=self.status, priority=self.priority,
                          category=self.category, overdue=self.overdue)
