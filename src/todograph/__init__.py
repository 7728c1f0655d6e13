"""
todograph - a task manager with dependencies, subtasks and bulk commands.

The core is an in-memory TaskStore with:
Range resolution → Filters → Dependency graph → Subtask hierarchy → Bulk executor
"""

from .version import VERSION, APP_SCHEMA_VERSION
from .models import (
    TaskStatus,
    Priority,
    Recurrence,
    SortBy,
    SortOrder,
    Task,
    TaskFilter,
    Progress,
    TaskStatistics,
    TaskSnapshot,
)
from .store import TaskStore
from .ids import parse_ids, resolve_targets
from .bulk import BulkResult, run_bulk

__version__ = VERSION

__all__ = [
    "VERSION",
    "APP_SCHEMA_VERSION",
    "TaskStatus",
    "Priority",
    "Recurrence",
    "SortBy",
    "SortOrder",
    "Task",
    "TaskFilter",
    "Progress",
    "TaskStatistics",
    "TaskSnapshot",
    "TaskStore",
    "parse_ids",
    "resolve_targets",
    "BulkResult",
    "run_bulk",
]
