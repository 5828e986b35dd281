"""Read-time view of task completion for the current calendar day.

A task whose last activity happened before today is shown as not done today
even when the stored record still says completed. The stored record is only
changed later by the daily reset job (see daily_reset.py).
"""

from src.core.dates import date_prefix
from src.domain.task import CheckInTask, TaskStatus, TodoTask


AnyTask = TodoTask | CheckInTask


def _has_activity_today(task: AnyTask, today: str) -> bool:
    if date_prefix(task.updated_at) == today:
        return True
    if task.is_completed_on(today):
        return True
    if isinstance(task, TodoTask):
        if task.daily_time_stats and task.daily_time_stats.get(today, 0) > 0:
            return True
        return any(date_prefix(entry.start_time) == today for entry in task.time_log)
    return task.has_check_in_on(today)


def should_show_reset_state(task: AnyTask, today: str) -> bool:
    """Return True when the displayed state must be reset for a new day.

    The persisted state is kept when the task was updated today, completed
    today, has time logged today (TODO), or has a check-in dated today.
    """
    return not _has_activity_today(task, today)


def apply_logical_reset(task: AnyTask, today: str) -> AnyTask:
    """Return the task as it should be displayed today.

    The input is never modified. When a reset applies, the returned copy is
    pending instead of completed, holds no completion or time for today, and
    keeps its history for earlier days.
    """
    if not should_show_reset_state(task, today):
        return task

    view = task.model_copy(deep=True)
    if view.status == TaskStatus.COMPLETED:
        view.status = TaskStatus.PENDING
    view.completed_at = [day for day in view.completed_at if day != today]
    if isinstance(view, TodoTask):
        if view.daily_time_stats is not None:
            view.daily_time_stats.pop(today, None)
        view.time_log = [entry for entry in view.time_log if date_prefix(entry.start_time) != today]
    return view


def is_completed_today(task: AnyTask, today: str) -> bool:
    """Completion as displayed today, after the logical reset."""
    view = apply_logical_reset(task, today)
    return view.status == TaskStatus.COMPLETED or view.is_completed_on(today)
