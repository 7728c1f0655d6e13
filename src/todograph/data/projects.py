"""
Projects: independent task lists kept side by side in one workspace.

The workspace directory holds ``projects.yml`` (project names, their task
files and the current project) next to one snapshot file per project. The
default project uses ``tasks.yml``, so a workspace written before projects
existed opens as its default project.
"""
import os
import re
from pathlib import Path
from typing import List, Optional, Union

from todograph.errors import (
    ActiveProjectError,
    CorruptionError,
    FileOperationError,
    ParseError,
    ProjectExistsError,
    ProjectNotFoundError,
)
from todograph.logs import get_logger
from todograph.models import ProjectIndex
from todograph.version import APP_SCHEMA_VERSION
from .io import DATA_YAML, atomic_write, load_data_file
from .validate import check_schema_version

log = get_logger("data.projects")

DEFAULT_WORKSPACE = Path(".todograph")
INDEX_FILE = "projects.yml"

SLUG_PATTERN = re.compile(r'[^a-z0-9]+')

def _clean_name(name: str) -> str:
    if name is None or not name.strip():
        raise ParseError("Project name cannot be empty")
    return name.strip()

class ProjectRegistry:
    """
    Project index of one workspace.

    Every mutation is written back to ``projects.yml`` immediately. Task
    files are never touched except by ``delete``, which removes the file of
    the deleted project.
    """

    def __init__(self, workspace: Union[Path, str] = DEFAULT_WORKSPACE):
        self.workspace = Path(workspace)
        self.index = self._load()

    @property
    def index_path(self) -> Path:
        return self.workspace / INDEX_FILE

    @property
    def current(self) -> str:
        return self.index.current

    def _load(self) -> ProjectIndex:
        data = load_data_file(self.index_path)
        if data is None:
            log.debug(f"No project index at {self.index_path}, using the default project")
            return ProjectIndex()

        check_schema_version(data.get("schema_version", APP_SCHEMA_VERSION), str(self.index_path))
        try:
            return ProjectIndex.model_validate(data)
        except ValueError as e:
            raise CorruptionError(f"Invalid project index {self.index_path}: {e}") from e

    def save(self) -> Path:
        self.index.schema_version = APP_SCHEMA_VERSION
        atomic_write(DATA_YAML, self.index_path, self.index.model_dump(mode="json"), create_dirs=True)
        log.debug(f"Saved project index {self.index_path}")
        return self.index_path

    def names(self) -> List[str]:
        return sorted(self.index.projects)

    def __contains__(self, name: str) -> bool:
        return name in self.index.projects

    def file_for(self, name: Optional[str] = None) -> Path:
        """Task file of a project, the current one by default."""
        name = self.current if name is None else name
        file_name = self.index.projects.get(name)
        if file_name is None:
            raise ProjectNotFoundError(name)
        return self.workspace / file_name

    def create(self, name: str) -> Path:
        name = _clean_name(name)
        if name in self:
            raise ProjectExistsError(name)
        self.index.projects[name] = self._new_file_name(name)
        self.save()
        log.info(f"Created project '{name}'")
        return self.file_for(name)

    def switch(self, name: str) -> None:
        name = _clean_name(name)
        if name not in self:
            raise ProjectNotFoundError(name)
        self.index.current = name
        self.save()
        log.info(f"Switched to project '{name}'")

    def rename(self, old_name: str, new_name: str) -> None:
        """Rename a project. Its task file keeps its name."""
        old_name = _clean_name(old_name)
        new_name = _clean_name(new_name)
        if old_name not in self:
            raise ProjectNotFoundError(old_name)
        if new_name in self:
            raise ProjectExistsError(new_name)

        self.index.projects[new_name] = self.index.projects.pop(old_name)
        if self.index.current == old_name:
            self.index.current = new_name
        self.save()
        log.info(f"Renamed project '{old_name}' to '{new_name}'")

    def delete(self, name: str) -> None:
        """Delete a project and its task file. The current project cannot be deleted."""
        name = _clean_name(name)
        if name not in self:
            raise ProjectNotFoundError(name)
        if name == self.current:
            raise ActiveProjectError(name)

        file_path = self.file_for(name)
        if file_path.exists():
            try:
                os.unlink(file_path)
            except OSError as e:
                raise FileOperationError(f"Cannot delete task file {file_path}: {e}") from e

        del self.index.projects[name]
        self.save()
        log.info(f"Deleted project '{name}'")

    def _new_file_name(self, name: str) -> str:
        slug = SLUG_PATTERN.sub('-', name.lower()).strip('-') or "project"
        taken = set(self.index.projects.values()) | {INDEX_FILE}
        candidate = f"{slug}.yml"
        n = 2
        while candidate in taken:
            candidate = f"{slug}-{n}.yml"
            n += 1
        return candidate
