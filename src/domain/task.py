"""Task domain models: a tagged union of TODO and check-in tasks.

Records are stored as camelCase JSON documents. Models accept both the JSON
aliases and the Python field names, keep unknown fields on round-trip, and
parse time data leniently so partially migrated legacy records still load.
"""

import math
from datetime import date
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from src.core.config import Constants
from src.core.dates import date_prefix


class TaskType(StrEnum):
    """Discriminator for the task union."""

    TODO = "todo"
    CHECK_IN = "check-in"


class TaskStatus(StrEnum):
    """Persisted task status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskPriority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Frequency(StrEnum):
    """Check-in recurrence frequency."""

    DAILY = "daily"
    WEEKLY = "weekly"


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


class TimeLogEntry(BaseModel):
    """Deprecated per-session log entry kept for legacy records."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    duration: int = Field(default=0, description="Session length in seconds")

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, v: Any) -> int:
        """Treat malformed or negative durations as zero."""
        if not _is_number(v) or v < 0:
            return 0
        return int(v)


class CheckInEntry(BaseModel):
    """One entry of a check-in task's history."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    date: str = Field(..., description="Calendar date (YYYY-MM-DD) or ISO timestamp of the check-in")
    note: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)

    @field_validator("rating", mode="before")
    @classmethod
    def drop_invalid_rating(cls, v: Any) -> int | None:
        """Treat ratings outside 1-5 or of the wrong type as missing."""
        if not _is_number(v) or v != int(v) or not 1 <= v <= 5:
            return None
        return int(v)


class Recurrence(BaseModel):
    """Schedule descriptor for check-in tasks."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    frequency: Frequency = Frequency.DAILY
    days_of_week: list[int] = Field(
        default_factory=list, alias="daysOfWeek", description="Weekday indices, 0 = Sunday"
    )

    @field_validator("days_of_week", mode="before")
    @classmethod
    def keep_valid_weekdays(cls, v: Any) -> list[int]:
        """Drop entries that are not weekday indices 0-6."""
        if not isinstance(v, list):
            return []
        return sorted({d for d in v if isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6})

    def applies_on(self, day: date) -> bool:
        """Return True if the check-in is scheduled on the given day."""
        if self.frequency == Frequency.DAILY:
            return True
        # Python weekday() is Monday=0; stored indices are Sunday=0
        return (day.weekday() + 1) % 7 in self.days_of_week


class TaskBase(BaseModel):
    """Fields shared by every task type."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., alias="_id", description="Unique task ID")
    user_id: str = Field(default="user_001", alias="userId")
    title: str = ""
    content: list[str] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    completed_at: list[str] = Field(
        default_factory=list, alias="completedAt", description="Dates (YYYY-MM-DD) the task was completed"
    )
    planned_time: str | None = Field(default=None, alias="plannedTime", description="Planned time of day (HH:MM)")

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, v: Any) -> list[str]:
        """Accept a bare string or null for content."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        if isinstance(v, list):
            return [str(item) for item in v if item is not None]
        return []

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> list[str]:
        """Accept null for tags."""
        if not isinstance(v, list):
            return []
        return [str(tag) for tag in v if tag is not None]

    @field_validator("completed_at", mode="before")
    @classmethod
    def coerce_completed_at(cls, v: Any) -> list[str]:
        """Normalize completedAt to a de-duplicated list of date strings.

        Legacy records store null or a single ISO timestamp instead of a list.
        """
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            return []
        dates: list[str] = []
        for item in v:
            day = date_prefix(item)
            if day and day not in dates:
                dates.append(day)
        return dates

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v: Any) -> Any:
        return TaskStatus.PENDING if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: Any) -> Any:
        return TaskPriority.MEDIUM if v is None else v

    def is_completed_on(self, day: str) -> bool:
        """Return True if completedAt records the given date."""
        return day in self.completed_at


class TodoTask(TaskBase):
    """A task with an estimate and a per-day execution time ledger."""

    type: Literal["todo"] = "todo"
    due_date: str | None = Field(default=None, alias="dueDate")
    estimated_duration: int = Field(
        default=Constants.DEFAULT_ESTIMATED_DURATION_SECONDS,
        alias="estimatedDuration",
        description="Estimated seconds of work per day",
    )
    daily_time_stats: dict[str, int] | None = Field(
        default=None, alias="dailyTimeStats", description="Date (YYYY-MM-DD) -> executed seconds"
    )
    time_log: list[TimeLogEntry] = Field(default_factory=list, alias="timeLog")

    @field_validator("estimated_duration", mode="before")
    @classmethod
    def default_estimate(cls, v: Any) -> int:
        """Missing, zero, negative, or malformed estimates fall back to one pomodoro."""
        if not _is_number(v) or v <= 0:
            return Constants.DEFAULT_ESTIMATED_DURATION_SECONDS
        return int(v)

    @field_validator("daily_time_stats", mode="before")
    @classmethod
    def clean_daily_time_stats(cls, v: Any) -> dict[str, int] | None:
        """Drop ledger entries that are not non-negative numbers keyed by a date.

        Keys holding full timestamps are merged into their calendar day.
        """
        if v is None:
            return None
        if not isinstance(v, dict):
            return {}
        stats: dict[str, int] = {}
        for key, seconds in v.items():
            day = date_prefix(key)
            if day is None or not _is_number(seconds) or seconds < 0:
                continue
            stats[day] = stats.get(day, 0) + int(seconds)
        return stats

    @field_validator("time_log", mode="before")
    @classmethod
    def clean_time_log(cls, v: Any) -> list[Any]:
        """Drop log entries that are not objects."""
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, dict | TimeLogEntry)]


class CheckInTask(TaskBase):
    """A habit task completed by checking in."""

    type: Literal["check-in"] = "check-in"
    check_in_history: list[CheckInEntry] = Field(default_factory=list, alias="checkInHistory")
    recurrence: Recurrence | None = None

    @field_validator("check_in_history", mode="before")
    @classmethod
    def clean_history(cls, v: Any) -> list[Any]:
        """Drop history entries without a date string."""
        if not isinstance(v, list):
            return []
        return [
            entry
            for entry in v
            if isinstance(entry, CheckInEntry) or (isinstance(entry, dict) and isinstance(entry.get("date"), str))
        ]

    def has_check_in_on(self, day: str) -> bool:
        """Return True if the history holds an entry dated day."""
        return any(date_prefix(entry.date) == day for entry in self.check_in_history)


Task = Annotated[TodoTask | CheckInTask, Field(discriminator="type")]

_task_adapter: TypeAdapter[TodoTask | CheckInTask] = TypeAdapter(Task)


def normalize_time_data(raw: dict[str, Any]) -> dict[str, Any]:
    """Build dailyTimeStats from a legacy timeLog when the ledger is absent.

    Runs once when a stored record is loaded so the rest of the code only deals
    with the per-day ledger. Entries without a usable start date or duration
    contribute nothing. The input dict is not modified.
    """
    if raw.get("type") != TaskType.TODO or raw.get("dailyTimeStats") is not None:
        return raw
    time_log = raw.get("timeLog")
    if not isinstance(time_log, list) or not time_log:
        return raw

    stats: dict[str, int] = {}
    for entry in time_log:
        if not isinstance(entry, dict):
            continue
        day = date_prefix(entry.get("startTime"))
        duration = entry.get("duration")
        if day is None or not _is_number(duration) or duration <= 0:
            continue
        stats[day] = stats.get(day, 0) + int(duration)

    return {**raw, "dailyTimeStats": stats}


def parse_task(raw: dict[str, Any]) -> TodoTask | CheckInTask:
    """Parse a stored record into a task model.

    Raises:
        pydantic.ValidationError: If the record has no usable type or ID
    """
    return _task_adapter.validate_python(normalize_time_data(raw))


def dump_task(task: TodoTask | CheckInTask) -> dict[str, Any]:
    """Serialize a task back into its stored camelCase JSON form."""
    data = task.model_dump(by_alias=True, mode="json")
    if not data.get("timeLog") and "timeLog" in data:
        del data["timeLog"]
    if data.get("dailyTimeStats") is None:
        data.pop("dailyTimeStats", None)
    if data.get("recurrence") is None:
        data.pop("recurrence", None)
    return data
