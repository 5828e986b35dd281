"""Analytics service for weekly, monthly and date-range task statistics.

Key Concepts:
- Executed time comes from the per-day dailyTimeStats ledger, which the daily
  reset never erases for past days.
- A TODO task is relevant for a day if it has time logged that day, was
  completed that day, or is due that day.
- A check-in task is relevant for a day if it was checked in or completed that
  day, or its recurrence schedules it on that weekday.
- Durations in the results are whole minutes.
"""

import calendar
import logging
from datetime import date, timedelta

from src.core.config import Constants, settings
from src.core.dates import date_prefix, date_range, format_date, parse_date, parse_query_date, today_string
from src.core.errors import InvalidTaskInputError
from src.core.logging import span
from src.core.task_store import TaskStore
from src.domain.task import CheckInTask, TodoTask, dump_task
from src.models.service_models import DateRangeTasks, DayStats, PeriodStats, StatsSummary
from src.services.task_service import parse_records
from src.services.time_stats import round_half_up


logger = logging.getLogger(__name__)

AnyTask = TodoTask | CheckInTask

MAX_RANGE_DAYS = 366


def _seconds_on(task: TodoTask, day: str) -> int:
    return (task.daily_time_stats or {}).get(day, 0)


def _completed_on(task: AnyTask, day: str) -> bool:
    if task.is_completed_on(day):
        return True
    return isinstance(task, CheckInTask) and task.has_check_in_on(day)


def is_relevant_on(task: AnyTask, day: date) -> bool:
    """Return True if the task belongs on the given day's list."""
    day_str = format_date(day)
    if _completed_on(task, day_str):
        return True
    if isinstance(task, TodoTask):
        return _seconds_on(task, day_str) > 0 or date_prefix(task.due_date) == day_str
    if task.recurrence is None:
        return False
    return task.recurrence.applies_on(day)


def _day_label(day: date) -> str:
    return f"{day.month}/{day.day}"


def _weekly_day(tasks: list[AnyTask], day: date, today: str) -> DayStats:
    day_str = format_date(day)
    todo_seconds = 0
    task_count = 0
    completed = 0
    for task in tasks:
        if isinstance(task, TodoTask):
            todo_seconds += _seconds_on(task, day_str)
        if _completed_on(task, day_str):
            completed += 1
        if is_relevant_on(task, day):
            task_count += 1

    return DayStats(
        date=day_str,
        day_label=_day_label(day),
        total_duration=round_half_up(todo_seconds / 60),
        todo_time=round_half_up(todo_seconds / 60),
        check_in_time=0,
        task_count=task_count,
        completed_count=completed,
        is_today=day_str == today,
    )


def _monthly_day(tasks: list[AnyTask], day: date, today: str) -> DayStats:
    day_str = format_date(day)
    todo_minutes = 0
    task_count = 0
    completed = 0
    for task in tasks:
        done = _completed_on(task, day_str)
        if done:
            completed += 1
        if isinstance(task, TodoTask):
            seconds = _seconds_on(task, day_str)
            if seconds > 0:
                todo_minutes += round_half_up(seconds / 60)
                task_count += 1
        elif done:
            task_count += 1

    return DayStats(
        date=day_str,
        day_label=_day_label(day),
        total_duration=todo_minutes,
        todo_time=todo_minutes,
        check_in_time=0,
        task_count=task_count,
        completed_count=completed,
        is_today=day_str == today,
    )


def _summarize(days: list[DayStats]) -> StatsSummary:
    total_duration = sum(d.total_duration for d in days)
    most_productive = None
    best = 0
    for d in days:
        if d.total_duration > best:
            best = d.total_duration
            most_productive = d.day_label
    return StatsSummary(
        total_duration=total_duration,
        total_tasks=sum(d.task_count for d in days),
        total_completed=sum(d.completed_count for d in days),
        average_daily_time=round_half_up(total_duration / len(days)) if days else 0,
        most_productive_day=most_productive,
    )


async def get_weekly_stats(
    store: TaskStore,
    *,
    user_id: str | None = None,
    days: int = Constants.WEEKLY_STATS_DEFAULT_DAYS,
    end_date: str | None = None,
    today: str | None = None,
) -> PeriodStats:
    """Per-day statistics for the last N days ending at end_date.

    Args:
        store: Task store
        user_id: Owner of the tasks
        days: Number of days, 1 to 30
        end_date: Last day of the window (YYYY-MM-DD), defaults to today
        today: Today's date, defaults to today in the reporting timezone

    Raises:
        InvalidTaskInputError: If days is out of range or end_date is malformed
    """
    if days < 1 or days > Constants.WEEKLY_STATS_MAX_DAYS:
        raise InvalidTaskInputError(f"days must be between 1 and {Constants.WEEKLY_STATS_MAX_DAYS}")
    current_day = today or today_string()
    end = parse_query_date(end_date, "endDate") if end_date else parse_date(current_day)
    try:
        start = end - timedelta(days=days - 1)
    except OverflowError as e:
        raise InvalidTaskInputError("endDate is too early for the requested number of days") from e

    with span("analytics_service.get_weekly_stats"):
        tasks = parse_records(await store.read_tasks(), user_id=user_id or settings.default_user_id)
        daily = [_weekly_day(tasks, day, current_day) for day in date_range(start, end)]

    return PeriodStats(
        start_date=format_date(start),
        end_date=format_date(end),
        daily_stats=daily,
        summary=_summarize(daily),
    )


async def get_monthly_stats(
    store: TaskStore,
    *,
    user_id: str | None = None,
    year: int | None = None,
    month: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    today: str | None = None,
) -> PeriodStats:
    """Per-day statistics for a calendar month or an explicit date range.

    An explicit startDate/endDate pair (used for calendar grids that spill into
    neighbouring months) takes precedence over year/month.

    Raises:
        InvalidTaskInputError: If year or month is out of range or the range is invalid
    """
    current_day = today or today_string()
    current = parse_date(current_day)
    year = year or current.year
    month = month or current.month
    if month < 1 or month > 12:
        raise InvalidTaskInputError("month must be between 1 and 12")
    if year < date.min.year or year > date.max.year:
        raise InvalidTaskInputError(f"year must be between {date.min.year} and {date.max.year}")

    if start_date and end_date:
        start = parse_query_date(start_date, "startDate")
        end = parse_query_date(end_date, "endDate")
    else:
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])
    _check_range(start, end)

    with span("analytics_service.get_monthly_stats"):
        tasks = parse_records(await store.read_tasks(), user_id=user_id or settings.default_user_id)
        daily = [_monthly_day(tasks, day, current_day) for day in date_range(start, end)]

    summary = _summarize(daily)
    logger.info(
        "monthly_stats_computed",
        extra={"year": year, "month": month, "total_minutes": summary.total_duration},
    )
    return PeriodStats(
        start_date=format_date(start),
        end_date=format_date(end),
        year=year,
        month=month,
        daily_stats=daily,
        summary=summary,
    )


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise InvalidTaskInputError("endDate must not be before startDate")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise InvalidTaskInputError(f"Date range must not exceed {MAX_RANGE_DAYS} days")


async def get_tasks_by_date(
    store: TaskStore,
    *,
    start_date: str,
    end_date: str,
    user_id: str | None = None,
) -> DateRangeTasks:
    """Group a user's tasks by each day of a date range they are relevant to."""
    start = parse_query_date(start_date, "startDate")
    end = parse_query_date(end_date, "endDate")
    _check_range(start, end)

    with span("analytics_service.get_tasks_by_date"):
        tasks = parse_records(await store.read_tasks(), user_id=user_id or settings.default_user_id)
        grouped = {
            format_date(day): [dump_task(task) for task in tasks if is_relevant_on(task, day)]
            for day in date_range(start, end)
        }

    return DateRangeTasks(
        start_date=format_date(start),
        end_date=format_date(end),
        tasks_by_date=grouped,
        total_tasks=len({t["_id"] for day_tasks in grouped.values() for t in day_tasks}),
    )
