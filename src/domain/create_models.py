"""Pydantic models for request payloads that create or append task and project data."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.dates import parse_date
from src.domain.project import ProjectCategory
from src.domain.task import Recurrence, TaskPriority, TaskStatus, TaskType


_PLANNED_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_planned_time(v: str | None) -> str | None:
    """Validate a planned time of day is HH:MM (24h)."""
    if v is None or v == "":
        return None
    if not _PLANNED_TIME_PATTERN.match(v):
        msg = "plannedTime must be in HH:MM format"
        raise ValueError(msg)
    return v


def validate_calendar_date(v: str) -> str:
    """Validate a calendar date is a real YYYY-MM-DD date."""
    if not _DATE_PATTERN.match(v):
        msg = "date must be in YYYY-MM-DD format"
        raise ValueError(msg)
    parse_date(v)
    return v


def validate_start_time(v: str) -> str:
    """Validate a project start time is HH:MM (24h)."""
    if not _PLANNED_TIME_PATTERN.match(v):
        msg = "time must be in HH:MM format"
        raise ValueError(msg)
    return v


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: TaskType = Field(default=TaskType.TODO, description="todo or check-in")
    title: str = Field(..., min_length=1, description="Task title")
    user_id: str | None = Field(default=None, alias="userId")
    content: list[str] | str = Field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    planned_time: str | None = Field(default=None, alias="plannedTime")
    due_date: str | None = Field(default=None, alias="dueDate")
    estimated_duration: int | None = Field(default=None, alias="estimatedDuration", gt=0)
    recurrence: Recurrence | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Reject whitespace-only titles."""
        if not v.strip():
            msg = "title must not be blank"
            raise ValueError(msg)
        return v.strip()

    @field_validator("planned_time")
    @classmethod
    def check_planned_time(cls, v: str | None) -> str | None:
        return validate_planned_time(v)

    def to_record(self, *, task_id: str, user_id: str, now: str) -> dict[str, Any]:
        """Build the stored camelCase record for a new task."""
        content = [self.content] if isinstance(self.content, str) else list(self.content)
        record: dict[str, Any] = {
            "_id": task_id,
            "userId": self.user_id or user_id,
            "type": self.type.value,
            "title": self.title,
            "content": content,
            "status": self.status.value,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "createdAt": now,
            "updatedAt": now,
            "completedAt": [],
            "plannedTime": self.planned_time,
        }
        if self.type == TaskType.TODO:
            record["dueDate"] = self.due_date
            if self.estimated_duration is not None:
                record["estimatedDuration"] = self.estimated_duration
            record["dailyTimeStats"] = {}
        else:
            record["checkInHistory"] = []
            if self.recurrence is not None:
                record["recurrence"] = self.recurrence.model_dump(by_alias=True, mode="json")
        return record


class SessionLog(BaseModel):
    """A finished focus session to add to today's ledger."""

    model_config = ConfigDict(populate_by_name=True)

    duration: float = Field(..., allow_inf_nan=False, description="Session length in seconds")
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")


class CompletionRequest(BaseModel):
    """Mark or unmark a task as completed today, optionally logging a final session."""

    completed: bool = True
    duration: float | None = Field(default=None, ge=0, allow_inf_nan=False, description="Final session seconds to log")


class CheckInCreate(BaseModel):
    """Record a check-in for today."""

    note: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)


class BatchRequest(BaseModel):
    """List of task IDs for the batch endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    task_ids: list[str] = Field(..., alias="taskIds")


class ProjectCreate(BaseModel):
    """Payload for creating a project."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str | None = Field(default=None, alias="userId")
    date: str = Field(..., description="Calendar date (YYYY-MM-DD)")
    time: str = Field(..., description="Start time of day (HH:MM)")
    title: str = Field(..., min_length=1)
    duration_minutes: int = Field(default=0, alias="durationMinutes", ge=0)
    icon: str = ""
    icon_color: str = Field(default="", alias="iconColor")
    category: ProjectCategory = ProjectCategory.TASK
    completed: bool = False
    details: list[str] | None = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return validate_calendar_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return validate_start_time(v)

    def to_record(self, *, project_id: str, user_id: str) -> dict[str, Any]:
        """Build the stored camelCase record for a new project."""
        record = self.model_dump(by_alias=True, mode="json", exclude={"user_id"})
        if record.get("details") is None:
            record.pop("details", None)
        return {"id": project_id, "userId": self.user_id or user_id, **record}
