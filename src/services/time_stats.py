"""Today's executed time, remaining time and progress for TODO tasks.

All functions are pure: they only look at the parsed task and the date string
passed in, never touch storage, and never raise on malformed time data
(malformed entries were already dropped when the record was parsed).
"""

import math

from src.core.config import Constants
from src.core.dates import date_prefix
from src.domain.task import TodoTask
from src.models.service_models import DayDuration, ExecutionSession, TaskProgress, TaskRemaining


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return math.floor(value + 0.5)


def effective_estimate(task: TodoTask) -> int:
    """Return the estimate in seconds, never zero."""
    if task.estimated_duration > 0:
        return task.estimated_duration
    return Constants.DEFAULT_ESTIMATED_DURATION_SECONDS


def today_executed_seconds(task: TodoTask, today: str) -> int:
    """Seconds executed on the given day.

    The dailyTimeStats ledger wins when present; otherwise legacy log entries
    whose startTime date prefix equals today are summed.
    """
    if task.daily_time_stats is not None:
        return task.daily_time_stats.get(today, 0)
    return sum(entry.duration for entry in task.time_log if date_prefix(entry.start_time) == today)


def remaining_seconds(task: TodoTask, today: str) -> int:
    """Seconds left of today's estimate, never negative."""
    return max(0, effective_estimate(task) - today_executed_seconds(task, today))


def progress_percentage(task: TodoTask, today: str) -> int:
    """Share of today's estimate already executed, capped at 100."""
    executed = today_executed_seconds(task, today)
    return min(100, round_half_up(100 * executed / effective_estimate(task)))


def to_minutes(seconds: int) -> int:
    """Whole minutes, rounded down so executed time is never over-reported."""
    return max(0, seconds) // 60


def daily_progress(task: TodoTask) -> list[DayDuration]:
    """The whole ledger as per-day entries sorted by date."""
    stats = task.daily_time_stats or {}
    return [DayDuration(date=day, duration=seconds, minutes=to_minutes(seconds)) for day, seconds in sorted(stats.items())]


def execution_sessions(task: TodoTask, today: str) -> list[ExecutionSession]:
    """Legacy session log entries started today."""
    return [
        ExecutionSession(start_time=entry.start_time, end_time=entry.end_time, duration=entry.duration)
        for entry in task.time_log
        if date_prefix(entry.start_time) == today
    ]


def build_progress(task: TodoTask, today: str, *, is_completed: bool) -> TaskProgress:
    """Assemble the progress response for one task."""
    executed = today_executed_seconds(task, today)
    return TaskProgress(
        task_id=task.id,
        total_executed_time=executed,
        estimated_duration=effective_estimate(task),
        progress_percentage=progress_percentage(task, today),
        is_completed=is_completed,
        execution_sessions=execution_sessions(task, today),
        daily_progress=daily_progress(task),
        today_progress=DayDuration(date=today, duration=executed, minutes=to_minutes(executed)),
    )


def build_remaining(task: TodoTask, today: str, *, is_completed: bool) -> TaskRemaining:
    """Assemble the remaining-time response for one task."""
    executed = today_executed_seconds(task, today)
    estimate = effective_estimate(task)
    remaining = remaining_seconds(task, today)
    return TaskRemaining(
        task_id=task.id,
        estimated_minutes=to_minutes(estimate),
        executed_minutes=to_minutes(executed),
        remaining_minutes=to_minutes(remaining),
        estimated_seconds=estimate,
        executed_seconds=executed,
        remaining_seconds=remaining,
        progress_percentage=progress_percentage(task, today),
        is_completed=is_completed,
        date=today,
    )
