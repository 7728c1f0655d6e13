"""
Parent/subtask hierarchy, progress aggregation and completion.

Completion lives here because completing a task can complete its parent:
when the last pending subtask completes, the parent completes too, unless
the parent is still waiting on its own dependencies. In that case the
parent stays pending and the outcome reports the deferral. The parent is
flagged so that completing its last blocker completes it as well.
"""
from collections import deque
from datetime import date
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .errors import CyclicParentageError
from .graph import check_completion_gate, dependents, incomplete_dependencies
from .logs import get_logger
from .models import Priority, Progress, Task, TaskStatus
from .store import TaskStore

log = get_logger("hierarchy")

@dataclass
class DeferredCompletion:
    """A parent whose subtasks are all done but whose dependencies are not."""
    parent_id: int
    blocking: List[int]

@dataclass
class CompletionOutcome:
    task_id: int
    already_completed: bool = False
    auto_completed: List[int] = field(default_factory=list)
    deferred: List[DeferredCompletion] = field(default_factory=list)
    recurred_as: Optional[int] = None

# -------------------- structure --------------------
def add_subtask(store: TaskStore, parent_id: int, description: str,
                priority: Priority = Priority.MEDIUM) -> int:
    store.require(parent_id)
    child_id = store.create(description, priority, parent_id=parent_id)
    log.debug(f"Added subtask {child_id} under {parent_id}")
    return child_id

def ancestors(store: TaskStore, task_id: int) -> List[int]:
    """Parent chain of the task, nearest first."""
    chain: List[int] = []
    seen: Set[int] = {task_id}
    current = store.require(task_id).parent_id
    while current is not None and current not in seen:
        chain.append(current)
        seen.add(current)
        parent = store.get(current)
        current = parent.parent_id if parent is not None else None
    return chain

def set_parent(store: TaskStore, task_id: int, parent_id: Optional[int]) -> Task:
    """Move a task under a new parent, or detach it when parent_id is None."""
    task = store.require(task_id)
    if parent_id is not None:
        store.require(parent_id)
        if parent_id == task_id or task_id in ancestors(store, parent_id):
            raise CyclicParentageError(task_id, parent_id)
    task.parent_id = parent_id
    log.debug(f"Task {task_id} parent set to {parent_id}")
    return task

def children(store: TaskStore, parent_id: int) -> List[Task]:
    store.require(parent_id)
    return [t for t in store.tasks() if t.parent_id == parent_id]

def progress(store: TaskStore, parent_id: int) -> Optional[Progress]:
    """Completed/total over direct subtasks, or None for a task without subtasks."""
    kids = children(store, parent_id)
    if not kids:
        return None
    return Progress(completed=sum(1 for t in kids if t.is_completed()), total=len(kids))

# -------------------- completion --------------------
def complete(store: TaskStore, task_id: int, today: Optional[date] = None) -> CompletionOutcome:
    """
    Complete a task behind the dependency gate and propagate auto-completion.

    Completing a parent with pending subtasks is allowed. A recurring task
    schedules its next occurrence once propagation has run.
    """
    task = store.require(task_id)
    outcome = CompletionOutcome(task_id=task_id)
    if task.is_completed():
        outcome.already_completed = True
        return outcome

    check_completion_gate(store, task_id)
    store.set_status(task_id, TaskStatus.COMPLETED)
    log.debug(f"Completed task {task_id}")
    _propagate(store, task_id, outcome)
    if task.recurrence is not None:
        outcome.recurred_as = _schedule_next(store, task_id, today)
    return outcome

def _propagate(store: TaskStore, task_id: int, outcome: CompletionOutcome) -> None:
    queue = deque([task_id])
    while queue:
        done = store.require(queue.popleft())
        # The parent of a completed task, and any task that was waiting on it
        candidates = [(done.parent_id, True)] if done.parent_id is not None else []
        candidates.extend((tid, False) for tid in dependents(store, done.id))

        for candidate_id, via_subtask in candidates:
            candidate = store.get(candidate_id)
            if candidate is None or candidate.is_completed():
                continue
            # A blocker finishing only releases completions it was holding back
            if not via_subtask and not candidate.auto_complete_deferred:
                continue
            parent_progress = progress(store, candidate_id)
            if parent_progress is None or not parent_progress.is_complete:
                continue

            blocking = incomplete_dependencies(store, candidate_id)
            if blocking:
                if via_subtask and all(d.parent_id != candidate_id for d in outcome.deferred):
                    candidate.auto_complete_deferred = True
                    outcome.deferred.append(DeferredCompletion(candidate_id, blocking))
                    log.info(f"Auto-completion of task {candidate_id} deferred, blocked by {blocking}")
                continue

            store.set_status(candidate_id, TaskStatus.COMPLETED)
            outcome.auto_completed.append(candidate_id)
            outcome.deferred = [d for d in outcome.deferred if d.parent_id != candidate_id]
            log.info(f"Auto-completed task {candidate_id}")
            queue.append(candidate_id)

def _schedule_next(store: TaskStore, task_id: int, today: Optional[date] = None) -> int:
    """
    Create the next occurrence of a recurring task and return its id.

    The copy keeps description, priority, category, parent and pattern; its
    due date is one period after the old due date (or after today when the
    task had none). Direct subtasks are recreated as pending subtasks.
    Dependencies are not copied.
    """
    task = store.require(task_id)
    due = task.recurrence.next_date(task.due_date or today or date.today())
    next_id = store.create(
        task.description,
        task.priority,
        category=task.category,
        due_date=due,
        parent_id=task.parent_id,
        recurrence=task.recurrence,
    )
    for child in children(store, task_id):
        add_subtask(store, next_id, child.description, child.priority)
    log.info(f"Task {task_id} recurs {task.recurrence.value} as task {next_id}, due {due.isoformat()}")
    return next_id

def uncomplete(store: TaskStore, task_id: int) -> Task:
    """Mark a task pending again. Parents are left as they are."""
    return store.set_status(task_id, TaskStatus.PENDING)

def toggle(store: TaskStore, task_id: int, today: Optional[date] = None) -> Optional[CompletionOutcome]:
    """Complete a pending task or reopen a completed one. Returns the outcome when completing."""
    task = store.require(task_id)
    if task.is_completed():
        uncomplete(store, task_id)
        return None
    return complete(store, task_id, today)
