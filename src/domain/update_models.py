"""Update models for task and project edits and scheduler control."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.create_models import validate_calendar_date, validate_planned_time, validate_start_time
from src.domain.project import ProjectCategory
from src.domain.task import Recurrence, TaskPriority, TaskStatus


class TaskUpdate(BaseModel):
    """Partial update for a task; only fields present in the payload are applied."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = Field(default=None, min_length=1)
    content: list[str] | str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    tags: list[str] | None = None
    planned_time: str | None = Field(default=None, alias="plannedTime")
    due_date: str | None = Field(default=None, alias="dueDate")
    estimated_duration: int | None = Field(default=None, alias="estimatedDuration", gt=0)
    recurrence: Recurrence | None = None
    completed_at: list[str] | str | None = Field(
        default=None,
        alias="completedAt",
        description="null removes today, a date string adds it, a list replaces the dates",
    )

    @field_validator("planned_time")
    @classmethod
    def check_planned_time(cls, v: str | None) -> str | None:
        return validate_planned_time(v)

    def changes(self) -> dict[str, Any]:
        """Return the fields sent by the client, keyed by their stored camelCase names."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class BulkTaskUpdate(TaskUpdate):
    """One entry of a bulk update request."""

    id: str = Field(..., alias="_id")

    def changes(self) -> dict[str, Any]:
        data = super().changes()
        data.pop("_id", None)
        return data


class ProjectUpdate(BaseModel):
    """Partial update for a project; only fields present in the payload are applied."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str | None = None
    time: str | None = None
    title: str | None = Field(default=None, min_length=1)
    duration_minutes: int | None = Field(default=None, alias="durationMinutes", ge=0)
    icon: str | None = None
    icon_color: str | None = Field(default=None, alias="iconColor")
    category: ProjectCategory | None = None
    completed: bool | None = None
    details: list[str] | None = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str | None) -> str | None:
        return None if v is None else validate_calendar_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str | None) -> str | None:
        return None if v is None else validate_start_time(v)

    def changes(self) -> dict[str, Any]:
        """Return the fields sent by the client, keyed by their stored camelCase names."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class BulkProjectUpdate(ProjectUpdate):
    """One entry of a bulk project update request."""

    id: str

    def changes(self) -> dict[str, Any]:
        data = super().changes()
        data.pop("id", None)
        return data


class SchedulerAction(BaseModel):
    """Body of POST /scheduler."""

    action: str = Field(..., description="start, stop, or reset-now")
