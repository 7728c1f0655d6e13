"""
Snapshot persistence for a TaskStore.

Loads and saves the whole store at once. The store itself never touches the
disk; this module is the only bridge between files and the in-memory core.
"""
from pathlib import Path
from typing import Union

from todograph.errors import CorruptionError
from todograph.graph import is_acyclic
from todograph.logs import get_logger
from todograph.models import DEFAULT_PROJECT_FILE, TaskSnapshot
from todograph.store import TaskStore
from .io import atomic_write, data_type_for, load_data_file
from .validate import validate_snapshot_data

log = get_logger("data")

DEFAULT_DATA_FILE = Path(".todograph") / DEFAULT_PROJECT_FILE

def save_store(store: TaskStore, file_path: Union[Path, str] = DEFAULT_DATA_FILE) -> Path:
    """Write the store snapshot to YAML or JSON (by extension) atomically."""
    file_path = Path(file_path)
    data = store.snapshot().model_dump(mode="json")
    atomic_write(data_type_for(file_path), file_path, data, create_dirs=True)
    log.info(f"Saved {len(store)} tasks to {file_path}")
    return file_path

def load_store(file_path: Union[Path, str] = DEFAULT_DATA_FILE) -> TaskStore:
    """Load a store from a snapshot file. A missing file gives an empty store."""
    file_path = Path(file_path)
    data = load_data_file(file_path)
    if data is None:
        log.debug(f"No data file at {file_path}, starting empty")
        return TaskStore()

    validate_snapshot_data(data, str(file_path))
    try:
        snapshot = TaskSnapshot.model_validate(data)
    except ValueError as e:
        raise CorruptionError(f"Invalid task data in {file_path}: {e}") from e

    store = TaskStore.from_snapshot(snapshot)
    if not is_acyclic(store):
        log.warning(f"Dependency cycle found in {file_path}; completion of the tasks involved is blocked")
    return store

class TaskFile:
    """
    Context manager giving access to the store kept in one data file.

    The store is saved on exit unless the block raised or the file was
    opened read only.
    """

    def __init__(self, file_path: Union[Path, str] = DEFAULT_DATA_FILE, read_only: bool = False):
        self.file_path = Path(file_path)
        self.read_only = read_only
        self.store: TaskStore = None

    def __enter__(self) -> TaskStore:
        self.store = load_store(self.file_path)
        return self.store

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            log.debug(f"Not saving {self.file_path}: {exc_type.__name__}")
        elif not self.read_only:
            self.save()
        return False

    def save(self) -> Path:
        return save_store(self.store, self.file_path)
