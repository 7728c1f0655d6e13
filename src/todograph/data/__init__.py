"""
Data management submodule: snapshot files for the task store and the
project index that maps project names to them.
"""

from .core import DEFAULT_DATA_FILE, TaskFile, load_store, save_store
from .projects import DEFAULT_WORKSPACE, ProjectRegistry
from .validate import snapshot_schema, validate_snapshot_data

__all__ = [
    'DEFAULT_DATA_FILE',
    'DEFAULT_WORKSPACE',
    'ProjectRegistry',
    'TaskFile',
    'load_store',
    'save_store',
    'snapshot_schema',
    'validate_snapshot_data',
]
