"""
Dependency graph over task ids.

Edges live in each task's ``depends_on`` set: ``a.depends_on = {b}`` means
task a cannot complete until task b has completed. The relation is kept
acyclic at all times.
"""
from typing import List, Set

from .errors import BlockedByDependenciesError, CircularDependencyError, SelfDependencyError
from .logs import get_logger
from .store import TaskStore

log = get_logger("graph")

def depends_transitively(store: TaskStore, source: int, target: int) -> bool:
    """True if ``target`` is reachable from ``source`` along depends_on edges."""
    visited: Set[int] = set()
    stack = [source]
    while stack:
        current = stack.pop()
        if current == target:
            return True
        if current in visited:
            continue
        visited.add(current)
        task = store.get(current)
        if task is None:
            continue
        stack.extend(tid for tid in task.depends_on if tid not in visited)
    return False

def add_dependency(store: TaskStore, task_id: int, depends_on_id: int) -> None:
    """Make ``task_id`` wait for ``depends_on_id``. Adding an existing edge is a no-op."""
    task = store.require(task_id)
    store.require(depends_on_id)

    if task_id == depends_on_id:
        raise SelfDependencyError(task_id)
    if depends_on_id in task.depends_on:
        return
    if depends_transitively(store, depends_on_id, task_id):
        raise CircularDependencyError(task_id, depends_on_id)

    task.depends_on.add(depends_on_id)
    log.debug(f"Added dependency {task_id} -> {depends_on_id}")

def remove_dependency(store: TaskStore, task_id: int, depends_on_id: int) -> None:
    """Drop the edge if present. Removing an absent edge is a no-op."""
    task = store.require(task_id)
    if depends_on_id in task.depends_on:
        task.depends_on.discard(depends_on_id)
        log.debug(f"Removed dependency {task_id} -> {depends_on_id}")

def incomplete_dependencies(store: TaskStore, task_id: int) -> List[int]:
    """Direct dependencies of the task that are not yet completed."""
    task = store.require(task_id)
    blocking = []
    for tid in sorted(task.depends_on):
        dep = store.get(tid)
        if dep is not None and not dep.is_completed():
            blocking.append(tid)
    return blocking

def dependents(store: TaskStore, task_id: int) -> List[int]:
    """Ids of tasks that directly depend on ``task_id``."""
    return [t.id for t in store.tasks() if task_id in t.depends_on]

def check_completion_gate(store: TaskStore, task_id: int) -> None:
    """
    Raise BlockedByDependenciesError unless every direct dependency is completed.

    Transitive dependencies need no check: a completed dependency passed
    this same gate when it completed.
    """
    blocking = incomplete_dependencies(store, task_id)
    if blocking:
        raise BlockedByDependenciesError(task_id, blocking)

def is_acyclic(store: TaskStore) -> bool:
    """Verify the whole dependency relation has no cycle."""
    # 0 = unvisited, 1 = on the current path, 2 = finished
    state = {tid: 0 for tid in store.ids()}
    for root in store.ids():
        if state[root]:
            continue
        stack = [(root, iter(sorted(store.require(root).depends_on)))]
        state[root] = 1
        while stack:
            node, edges = stack[-1]
            nxt = next(edges, None)
            if nxt is None:
                state[node] = 2
                stack.pop()
                continue
            if nxt not in state:
                continue
            if state[nxt] == 1:
                return False
            if state[nxt] == 0:
                state[nxt] = 1
                stack.append((nxt, iter(sorted(store.require(nxt).depends_on))))
    return True
