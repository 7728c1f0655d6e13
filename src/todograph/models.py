import calendar
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Optional, List, Set

from .errors import ParseError
from .version import APP_SCHEMA_VERSION

class TaskStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"

class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, text: str) -> 'Priority':
        """Parse a priority name or its short alias (h, m, med, l)."""
        value = _PRIORITY_ALIASES.get(text.strip().lower())
        if value is None:
            raise ParseError(f"Invalid priority: '{text}'. Valid priorities: high, medium, low")
        return value

_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}
_PRIORITY_ALIASES = {
    "low": Priority.LOW, "l": Priority.LOW,
    "medium": Priority.MEDIUM, "med": Priority.MEDIUM, "m": Priority.MEDIUM,
    "high": Priority.HIGH, "h": Priority.HIGH,
}

class SortBy(Enum):
    ID = "id"
    PRIORITY = "priority"
    DUE_DATE = "due"
    CATEGORY = "category"
    STATUS = "status"

    @classmethod
    def parse(cls, text: str) -> 'SortBy':
        aliases = {
            "id": cls.ID,
            "priority": cls.PRIORITY, "pri": cls.PRIORITY,
            "due": cls.DUE_DATE, "due-date": cls.DUE_DATE, "duedate": cls.DUE_DATE,
            "category": cls.CATEGORY, "cat": cls.CATEGORY,
            "status": cls.STATUS,
        }
        value = aliases.get(text.strip().lower())
        if value is None:
            raise ParseError(f"Invalid sort option: '{text}'. Valid options: id, priority, due, category, status")
        return value

class SortOrder(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def parse(cls, text: str) -> 'SortOrder':
        key = text.strip().lower()
        if key in ("asc", "ascending"):
            return cls.ASCENDING
        if key in ("desc", "descending"):
            return cls.DESCENDING
        raise ParseError(f"Invalid sort order: '{text}'. Valid orders: asc, desc")

class Recurrence(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, text: str) -> 'Recurrence':
        """Parse a recurrence name or its one-letter alias (d, w, m)."""
        aliases = {
            "daily": cls.DAILY, "d": cls.DAILY,
            "weekly": cls.WEEKLY, "w": cls.WEEKLY,
            "monthly": cls.MONTHLY, "m": cls.MONTHLY,
        }
        value = aliases.get(text.strip().lower())
        if value is None:
            raise ParseError(f"Invalid recurrence: '{text}'. Valid patterns: daily, weekly, monthly")
        return value

    def next_date(self, after: date) -> date:
        """
        Due date of the next occurrence.

        Monthly repeats keep the day of month, clamped to the length of the
        target month (Jan 31 -> Feb 28/29).
        """
        if self is Recurrence.DAILY:
            return after + timedelta(days=1)
        if self is Recurrence.WEEKLY:
            return after + timedelta(weeks=1)
        year, month = (after.year + 1, 1) if after.month == 12 else (after.year, after.month + 1)
        return after.replace(year=year, month=month, day=min(after.day, calendar.monthrange(year, month)[1]))

class Task(BaseModel):
    """A single task record. Relations to other tasks are stored as ids."""

    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(gt=0, description="Unique identifier, never reused within a store")
    description: str = Field(description="What needs to be done")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current status of the task")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority level of the task")
    category: Optional[str] = Field(default=None, description="Free-form, case-preserved category label")
    due_date: Optional[date] = Field(default=None, description="Calendar date the task is due")
    depends_on: Set[int] = Field(default_factory=set, description="Ids of tasks that must complete first")
    parent_id: Optional[int] = Field(default=None, description="Id of the owning parent task")
    recurrence: Optional[Recurrence] = Field(default=None, description="Repeat pattern; completing the task schedules the next one")
    auto_complete_deferred: bool = Field(
        default=False,
        description="All subtasks completed while dependencies were still pending; completes with its last blocker"
    )

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Task description cannot be empty")
        return v

    @model_validator(mode='after')
    def validate_relations(self):
        if self.id in self.depends_on:
            raise ValueError(f"Task {self.id} cannot depend on itself")
        if self.parent_id is not None and self.parent_id == self.id:
            raise ValueError(f"Task {self.id} cannot be its own parent")
        return self

    @field_serializer('depends_on')
    def serialize_depends_on(self, depends_on: Set[int]) -> List[int]:
        return sorted(depends_on)

    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """A pending task whose due date has passed. Completed tasks are never overdue."""
        if self.due_date is None or self.is_completed():
            return False
        return self.due_date < (today or date.today())

class TaskFilter(BaseModel):
    """Conjunctive predicate over tasks. Absent fields impose no constraint."""

    model_config = ConfigDict(frozen=True)

    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    overdue: Optional[bool] = None
    keyword: Optional[str] = None

    def is_empty(self) -> bool:
        return (self.status is None and self.priority is None and self.category is None
                and self.overdue is None and not self.keyword)

class Progress(BaseModel):
    """Completion progress of a parent task's direct children."""

    completed: int = Field(ge=0)
    total: int = Field(gt=0)

    @property
    def fraction(self) -> float:
        return self.completed / self.total

    @property
    def is_complete(self) -> bool:
        return self.completed == self.total

    def __str__(self) -> str:
        return f"{self.completed}/{self.total}"

class TaskStatistics(BaseModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    completion_percentage: float = 0.0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0
    overdue: int = 0

class TaskSnapshot(BaseModel):
    """Serialized form of a whole task store."""

    schema_version: str = Field(default=APP_SCHEMA_VERSION, description="Schema version the snapshot was written with")
    next_id: int = Field(default=1, ge=1, description="Next id the store will allocate")
    tasks: List[Task] = Field(
        default_factory=list,
        description="Tasks in ascending id order"
    )

DEFAULT_PROJECT = "default"
DEFAULT_PROJECT_FILE = "tasks.yml"

class ProjectIndex(BaseModel):
    """Named task lists of one workspace and which of them is current."""

    schema_version: str = Field(default=APP_SCHEMA_VERSION, description="Schema version the index was written with")
    current: str = Field(default=DEFAULT_PROJECT, description="Name of the project commands act on")
    projects: Dict[str, str] = Field(
        default_factory=lambda: {DEFAULT_PROJECT: DEFAULT_PROJECT_FILE},
        description="Project name to task file name, relative to the workspace"
    )

    @model_validator(mode='after')
    def validate_projects(self):
        if self.current not in self.projects:
            raise ValueError(f"Current project '{self.current}' is not in the project list")
        if len(set(self.projects.values())) != len(self.projects):
            raise ValueError("Two projects share the same task file")
        return self
