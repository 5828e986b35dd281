"""Domain models and DTOs."""

from src.domain.create_models import (
    BatchRequest,
    CheckInCreate,
    CompletionRequest,
    ProjectCreate,
    SessionLog,
    TaskCreate,
)
from src.domain.project import Project, ProjectCategory, dump_project, parse_project
from src.domain.task import (
    CheckInEntry,
    CheckInTask,
    Frequency,
    Recurrence,
    Task,
    TaskPriority,
    TaskStatus,
    TaskType,
    TodoTask,
    dump_task,
    parse_task,
)
from src.domain.update_models import BulkProjectUpdate, BulkTaskUpdate, ProjectUpdate, SchedulerAction, TaskUpdate


__all__ = [
    "BatchRequest",
    "BulkProjectUpdate",
    "BulkTaskUpdate",
    "CheckInCreate",
    "CheckInEntry",
    "CheckInTask",
    "CompletionRequest",
    "Frequency",
    "Project",
    "ProjectCategory",
    "ProjectCreate",
    "ProjectUpdate",
    "Recurrence",
    "SchedulerAction",
    "SessionLog",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    "TodoTask",
    "TaskUpdate",
    "dump_project",
    "dump_task",
    "parse_project",
    "parse_task",
]
