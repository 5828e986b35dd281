"""Project domain model: a dated block of time on the user's calendar."""

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectCategory(StrEnum):
    """Kind of activity a project stands for."""

    HABIT = "habit"
    TASK = "task"
    FOCUS = "focus"
    EXERCISE = "exercise"


class Project(BaseModel):
    """A stored project record.

    Parsing is lenient so hand-edited records still load: unknown categories
    fall back to task, bad durations to zero.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., description="Sequence number and creation time, e.g. 3-1709251200000")
    user_id: str = Field(default="user_001", alias="userId")
    date: str = Field(default="", description="Calendar date (YYYY-MM-DD)")
    time: str = Field(default="", description="Start time of day (HH:MM)")
    title: str = ""
    duration_minutes: int = Field(default=0, alias="durationMinutes")
    icon: str = ""
    icon_color: str = Field(default="", alias="iconColor")
    category: ProjectCategory = ProjectCategory.TASK
    completed: bool = False
    details: list[str] | None = None

    @field_validator("date", "time", "title", "icon", "icon_color", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def coerce_duration(cls, v: Any) -> int:
        """Treat missing, negative, or non-numeric durations as zero."""
        if isinstance(v, bool) or not isinstance(v, int | float) or not math.isfinite(v) or v < 0:
            return 0
        return int(v)

    @field_validator("category", mode="before")
    @classmethod
    def known_category(cls, v: Any) -> ProjectCategory:
        try:
            return ProjectCategory(v)
        except ValueError:
            return ProjectCategory.TASK

    @field_validator("details", mode="before")
    @classmethod
    def coerce_details(cls, v: Any) -> list[str] | None:
        """Accept a bare string; drop anything that is not a list."""
        if isinstance(v, str):
            return [v]
        if not isinstance(v, list):
            return None
        return [str(item) for item in v if item is not None]


def parse_project(raw: dict[str, Any]) -> Project:
    """Parse a stored record into a Project.

    Raises:
        pydantic.ValidationError: If the record has no usable ID
    """
    return Project.model_validate(raw)


def dump_project(project: Project) -> dict[str, Any]:
    """Serialize a project back into its stored camelCase JSON form."""
    data = project.model_dump(by_alias=True, mode="json")
    if data.get("details") is None:
        data.pop("details", None)
    return data
