"""
Bulk mutation over resolved id sets.

Single-id commands and bulk commands go through the same per-id
primitives; a bulk run is a fold over ids with partial-failure reporting.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type

from . import hierarchy
from .errors import (
    BlockedByDependenciesError,
    NotFoundError,
    TaskError,
)
from .hierarchy import CompletionOutcome
from .logs import get_logger
from .models import Priority
from .store import TaskStore

log = get_logger("bulk")

# Per-id primitives. Each raises a TaskError on rejection.
def complete(store: TaskStore, task_id: int) -> CompletionOutcome:
    return hierarchy.complete(store, task_id)

def uncomplete(store: TaskStore, task_id: int) -> None:
    hierarchy.uncomplete(store, task_id)

def toggle(store: TaskStore, task_id: int) -> Optional[CompletionOutcome]:
    return hierarchy.toggle(store, task_id)

def remove(store: TaskStore, task_id: int) -> None:
    store.remove(task_id)

def set_priority(store: TaskStore, task_id: int, priority: Priority) -> None:
    store.set_priority(task_id, priority)

def set_category(store: TaskStore, task_id: int, category: Optional[str]) -> None:
    store.set_category(task_id, category)

_FAILURE_LABELS: Dict[str, str] = {
    NotFoundError.kind: "not found",
    BlockedByDependenciesError.kind: "blocked by dependencies",
}

@dataclass
class BulkResult:
    """Aggregate outcome of one operation applied to many ids."""
    succeeded: List[int] = field(default_factory=list)
    failures: List[Tuple[int, TaskError]] = field(default_factory=list)
    outcomes: List[CompletionOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failed_ids(self, kind: Optional[Type[TaskError]] = None) -> List[int]:
        return [tid for tid, err in self.failures if kind is None or isinstance(err, kind)]

    @property
    def auto_completed(self) -> List[int]:
        return [tid for o in self.outcomes for tid in o.auto_completed]

    def summary(self, verb: str) -> str:
        """E.g. ``completed 4 of 6 tasks; 2 blocked by dependencies: 7, 9``."""
        noun = "task" if self.attempted == 1 else "tasks"
        text = f"{verb} {self.success_count} of {self.attempted} {noun}"
        groups: Dict[str, List[int]] = {}
        for tid, err in self.failures:
            groups.setdefault(_FAILURE_LABELS.get(err.kind, err.kind), []).append(tid)
        for label, ids in groups.items():
            text += f"; {len(ids)} {label}: {', '.join(str(i) for i in ids)}"
        return text

def run_bulk(store: TaskStore, ids: Iterable[int], operation: Callable, *args) -> BulkResult:
    """
    Apply ``operation(store, id, *args)`` to every id in ascending order.

    A failing id is recorded and the run continues with the next one.
    """
    result = BulkResult()
    for task_id in sorted(set(ids)):
        try:
            value = operation(store, task_id, *args)
        except TaskError as e:
            result.failures.append((task_id, e))
            log.debug(f"{operation.__name__} failed for task {task_id}: {e}")
            continue
        result.succeeded.append(task_id)
        if isinstance(value, CompletionOutcome):
            result.outcomes.append(value)
    log.info(f"{operation.__name__}: {result.success_count} of {result.attempted} succeeded")
    return result

def complete_many(store: TaskStore, ids: Iterable[int]) -> BulkResult:
    return run_bulk(store, ids, complete)

def uncomplete_many(store: TaskStore, ids: Iterable[int]) -> BulkResult:
    return run_bulk(store, ids, uncomplete)

def toggle_many(store: TaskStore, ids: Iterable[int]) -> BulkResult:
    return run_bulk(store, ids, toggle)

def remove_many(store: TaskStore, ids: Iterable[int]) -> BulkResult:
    return run_bulk(store, ids, remove)

def set_priority_many(store: TaskStore, ids: Iterable[int], priority: Priority) -> BulkResult:
    return run_bulk(store, ids, set_priority, priority)

def set_category_many(store: TaskStore, ids: Iterable[int], category: Optional[str]) -> BulkResult:
    return run_bulk(store, ids, set_category, category)
