from typing import Iterable, List, Optional


class TodoGraphError(Exception):
    """Base exception for all todograph errors."""
    pass

class RecoverableError(TodoGraphError):
    """An error that can be recovered from without data loss."""
    pass

class FatalError(TodoGraphError):
    """An error that requires application termination or major intervention."""
    pass

class CorruptionError(FatalError):
    """Corrupted Data Error - from syntax errors in data formats, to just unknown data"""
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass

class MigrationNeededError(RecoverableError):
    """ Data is valid, but was written by a newer schema version """
    pass


class TaskError(RecoverableError):
    """
    A rejected task operation.

    Local to the operation that raised it: the store is left unchanged.
    Bulk commands collect these per id instead of propagating them.
    """
    kind = "TaskError"
    task_id: Optional[int] = None

    @property
    def reason(self) -> str:
        return str(self)


class NotFoundError(TaskError):
    kind = "NotFound"

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class ParseError(TaskError):
    kind = "ParseError"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class InvalidRangeError(ParseError):
    kind = "InvalidRange"

    def __init__(self, start: int, end: int):
        self.start = start
        self.end = end
        super().__init__(f"Invalid range: {start}-{end}. Start must be less than or equal to end")


class SelfDependencyError(TaskError):
    kind = "SelfDependency"

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} cannot depend on itself")


class CircularDependencyError(TaskError):
    kind = "CircularDependency"

    def __init__(self, task_id: int, depends_on_id: int):
        self.task_id = task_id
        self.depends_on_id = depends_on_id
        super().__init__(
            f"Task {task_id} cannot depend on task {depends_on_id}: "
            f"task {depends_on_id} already depends on task {task_id}"
        )


class BlockedByDependenciesError(TaskError):
    kind = "BlockedByDependencies"

    def __init__(self, task_id: int, blocking: Iterable[int]):
        self.task_id = task_id
        self.blocking: List[int] = sorted(blocking)
        ids = ", ".join(str(i) for i in self.blocking)
        super().__init__(f"Task {task_id} is blocked by incomplete dependencies: {ids}")


class CyclicParentageError(TaskError):
    kind = "CyclicParentage"

    def __init__(self, task_id: int, parent_id: int):
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(f"Task {parent_id} cannot become the parent of task {task_id}: it is the task itself or one of its subtasks")


class ProjectError(RecoverableError):
    """A rejected project operation. The project index is left unchanged."""
    pass


class ProjectNotFoundError(ProjectError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Project '{name}' not found")


class ProjectExistsError(ProjectError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Project '{name}' already exists")


class ActiveProjectError(ProjectError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot delete the current project '{name}'; switch to another project first")
