"""Pydantic models for service layer return types.

These models give the service boundaries typed results and define the JSON
shapes the API returns. Field aliases carry the camelCase wire names.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """Base for response models serialized with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class DayDuration(ApiModel):
    """Executed time for one calendar day."""

    date: str
    duration: int = Field(..., description="Seconds")
    minutes: int


class ExecutionSession(ApiModel):
    """Legacy session log entry returned with today's progress."""

    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    duration: int


class TaskProgress(ApiModel):
    """Today's progress of a TODO task."""

    task_id: str = Field(..., alias="taskId")
    total_executed_time: int = Field(..., alias="totalExecutedTime", description="Seconds executed today")
    estimated_duration: int = Field(..., alias="estimatedDuration")
    progress_percentage: int = Field(..., alias="progressPercentage")
    is_completed: bool = Field(..., alias="isCompleted")
    execution_sessions: list[ExecutionSession] = Field(default_factory=list, alias="executionSessions")
    daily_progress: list[DayDuration] = Field(default_factory=list, alias="dailyProgress")
    today_progress: DayDuration = Field(..., alias="todayProgress")
    today_only: bool = Field(default=True, alias="todayOnly")


class TaskRemaining(ApiModel):
    """Today's executed and remaining time of a TODO task."""

    task_id: str = Field(..., alias="taskId")
    estimated_minutes: int = Field(..., alias="estimatedMinutes")
    executed_minutes: int = Field(..., alias="executedMinutes")
    remaining_minutes: int = Field(..., alias="remainingMinutes")
    estimated_seconds: int = Field(..., alias="estimatedSeconds")
    executed_seconds: int = Field(..., alias="executedSeconds")
    remaining_seconds: int = Field(..., alias="remainingSeconds")
    progress_percentage: int = Field(..., alias="progressPercentage")
    is_completed: bool = Field(..., alias="isCompleted")
    date: str
    today_only: bool = Field(default=True, alias="todayOnly")


class BatchCount(ApiModel):
    """Counts reported by batch endpoints."""

    requested: int
    successful: int
    failed: int


class BatchResult(ApiModel):
    """Partial-success result of a batch request."""

    success: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
    count: BatchCount
    timestamp: str


class ResetDetails(ApiModel):
    """Per-change counters of a daily reset run."""

    status_resets: int = Field(default=0, alias="statusResets")
    completed_at_resets: int = Field(default=0, alias="completedAtResets")
    time_stats_resets: int = Field(default=0, alias="timeStatsResets")
    time_log_resets: int = Field(default=0, alias="timeLogResets")


class ResetResult(ApiModel):
    """Outcome of one DailyResetExecutor run."""

    reset_count: int = Field(..., alias="resetCount")
    total_tasks: int = Field(..., alias="totalTasks")
    reset_date: str = Field(..., alias="resetDate")
    timestamp: str
    details: ResetDetails = Field(default_factory=ResetDetails)
    reset_task_ids: list[str] = Field(default_factory=list, alias="resetTaskIds")


class ResetStatus(ApiModel):
    """What a daily reset would change right now."""

    total_tasks: int = Field(..., alias="totalTasks")
    completed_tasks: int = Field(..., alias="completedTasks")
    completed_check_ins: int = Field(..., alias="completedCheckIns")
    completed_todos: int = Field(..., alias="completedTodos")
    todos_with_progress: int = Field(..., alias="todosWithProgress")
    can_reset: bool = Field(..., alias="canReset")
    date: str


class SchedulerStatus(ApiModel):
    """State of the daily reset scheduler."""

    is_running: bool = Field(..., alias="isRunning")
    next_run: str | None = Field(default=None, alias="nextRun")
    cron: str
    timezone: str


class TodayStats(ApiModel):
    """Counters shown above today's task list."""

    total: int
    completed: int
    pending: int
    in_progress: int = Field(..., alias="inProgress")
    todos: int
    check_ins: int = Field(..., alias="checkIns")


class TodayTasks(ApiModel):
    """Today's task list with the logical reset applied."""

    tasks: list[dict[str, Any]]
    stats: TodayStats
    date: str
    day_of_week: int = Field(..., alias="dayOfWeek", description="0 = Sunday")


class DayStats(ApiModel):
    """Aggregated activity for one calendar day."""

    date: str
    day_label: str = Field(..., alias="dayLabel")
    total_duration: int = Field(..., alias="totalDuration", description="Minutes")
    todo_time: int = Field(..., alias="todoTime", description="Minutes")
    check_in_time: int = Field(default=0, alias="checkInTime")
    task_count: int = Field(..., alias="taskCount")
    completed_count: int = Field(..., alias="completedCount")
    is_today: bool = Field(..., alias="isToday")


class StatsSummary(ApiModel):
    """Totals over a statistics period."""

    total_duration: int = Field(..., alias="totalDuration", description="Minutes")
    total_tasks: int = Field(..., alias="totalTasks")
    total_completed: int = Field(..., alias="totalCompleted")
    average_daily_time: int = Field(..., alias="averageDailyTime", description="Minutes")
    most_productive_day: str | None = Field(default=None, alias="mostProductiveDay")


class PeriodStats(ApiModel):
    """Per-day statistics over a date range."""

    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    year: int | None = None
    month: int | None = None
    daily_stats: list[DayStats] = Field(..., alias="dailyStats")
    summary: StatsSummary


class DateRangeTasks(ApiModel):
    """Tasks relevant to each day of a date range."""

    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    tasks_by_date: dict[str, list[dict[str, Any]]] = Field(..., alias="tasksByDate")
    total_tasks: int = Field(..., alias="totalTasks")
