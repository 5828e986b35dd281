"""REST endpoints for tasks, time tracking, statistics and the daily reset."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from src.core.config import Constants, settings
from src.core.dates import today_string
from src.core.task_store import TaskStore
from src.domain.create_models import BatchRequest, CheckInCreate, CompletionRequest, SessionLog, TaskCreate
from src.domain.update_models import BulkTaskUpdate, TaskUpdate
from src.interface.dependencies import get_reset_executor, get_store, raise_http_error
from src.models.service_models import (
    BatchResult,
    DateRangeTasks,
    PeriodStats,
    ResetStatus,
    TaskProgress,
    TaskRemaining,
    TodayTasks,
)
from src.services import analytics_service, progress_service, task_service
from src.services.daily_reset import DailyResetExecutor, get_reset_status


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


# Collection routes. Fixed paths are registered before /{task_id} so they are
# never captured as task IDs.


@router.get("")
async def list_tasks(
    user_id: str | None = Query(default=None, alias="userId"),
    store: TaskStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """List a user's tasks as displayed today."""
    try:
        return await task_service.list_tasks(store, user_id=user_id)
    except Exception as e:
        raise_http_error(e)


@router.post("")
async def create_task(payload: TaskCreate, store: TaskStore = Depends(get_store)) -> dict[str, str]:
    """Create a task and return its ID."""
    try:
        task_id = await task_service.create_task(store, payload)
    except Exception as e:
        raise_http_error(e)
    return {"id": task_id}


@router.put("")
async def bulk_update_tasks(
    updates: list[BulkTaskUpdate], store: TaskStore = Depends(get_store)
) -> dict[str, Any]:
    """Apply partial updates to several tasks at once."""
    try:
        updated = await task_service.bulk_update_tasks(store, updates)
    except Exception as e:
        raise_http_error(e)
    return {"success": True, "updated": updated}


@router.get("/today")
async def get_today_tasks(
    user_id: str | None = Query(default=None, alias="userId"),
    date: str | None = Query(default=None, description="Day to show (YYYY-MM-DD)"),
    scheduled_only: bool = Query(default=False, alias="scheduledOnly"),
    store: TaskStore = Depends(get_store),
) -> TodayTasks:
    """Today's non-archived tasks, sorted for display."""
    try:
        return await task_service.get_today_tasks(store, user_id=user_id, today=date, scheduled_only=scheduled_only)
    except Exception as e:
        raise_http_error(e)


@router.get("/weekly-stats")
async def get_weekly_stats(
    user_id: str | None = Query(default=None, alias="userId"),
    days: int = Query(default=Constants.WEEKLY_STATS_DEFAULT_DAYS),
    end_date: str | None = Query(default=None, alias="endDate"),
    store: TaskStore = Depends(get_store),
) -> PeriodStats:
    """Per-day statistics for the last N days (1-30)."""
    try:
        return await analytics_service.get_weekly_stats(store, user_id=user_id, days=days, end_date=end_date)
    except Exception as e:
        raise_http_error(e)


@router.get("/monthly-stats")
async def get_monthly_stats(
    user_id: str | None = Query(default=None, alias="userId"),
    year: int | None = Query(default=None),
    month: int | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    store: TaskStore = Depends(get_store),
) -> PeriodStats:
    """Per-day statistics for a month or an explicit date range."""
    try:
        return await analytics_service.get_monthly_stats(
            store, user_id=user_id, year=year, month=month, start_date=start_date, end_date=end_date
        )
    except Exception as e:
        raise_http_error(e)


@router.get("/date-range")
async def get_date_range(
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    user_id: str | None = Query(default=None, alias="userId"),
    store: TaskStore = Depends(get_store),
) -> DateRangeTasks:
    """Tasks grouped by the days of a range they are relevant to."""
    try:
        return await analytics_service.get_tasks_by_date(
            store, start_date=start_date, end_date=end_date, user_id=user_id
        )
    except Exception as e:
        raise_http_error(e)


@router.get("/reset-daily")
async def get_daily_reset_status(
    user_id: str | None = Query(default=None, alias="userId"),
    store: TaskStore = Depends(get_store),
) -> ResetStatus:
    """Report what a daily reset would change for a user."""
    try:
        tasks = await store.read_tasks()
    except Exception as e:
        raise_http_error(e)
    return get_reset_status(tasks, today=today_string(), user_id=user_id or settings.default_user_id)


@router.post("/reset-daily")
async def run_daily_reset(
    user_id: str | None = Query(default=None, alias="userId"),
    executor: DailyResetExecutor = Depends(get_reset_executor),
) -> dict[str, Any]:
    """Run the daily reset now for one user's tasks."""
    try:
        result = await executor.run(user_id=user_id or settings.default_user_id)
    except Exception as e:
        raise_http_error(e)
    message = f"Reset {result.reset_count} tasks" if result.reset_count else "No tasks needed a reset"
    return {"success": True, "message": message, **result.model_dump(by_alias=True)}


async def _batch(kind: str, request: BatchRequest, store: TaskStore) -> BatchResult:
    try:
        return await progress_service.get_batch(store, request.task_ids, kind=kind)
    except Exception as e:
        raise_http_error(e)


@router.post("/batch/progress")
async def batch_progress(request: BatchRequest, store: TaskStore = Depends(get_store)) -> BatchResult:
    """Today's progress for up to 50 tasks."""
    return await _batch("progress", request, store)


@router.post("/batch/remaining")
async def batch_remaining(request: BatchRequest, store: TaskStore = Depends(get_store)) -> BatchResult:
    """Today's remaining time for up to 50 tasks."""
    return await _batch("remaining", request, store)


@router.post("/batch/info")
async def batch_info(request: BatchRequest, store: TaskStore = Depends(get_store)) -> BatchResult:
    """Basic info plus progress and remaining time for up to 50 tasks."""
    return await _batch("info", request, store)


# Single-task routes


@router.get("/{task_id}")
async def get_task(task_id: str, store: TaskStore = Depends(get_store)) -> dict[str, Any]:
    """Fetch one task as displayed today."""
    try:
        return await task_service.get_task(store, task_id)
    except Exception as e:
        raise_http_error(e)


@router.put("/{task_id}")
async def update_task(task_id: str, payload: TaskUpdate, store: TaskStore = Depends(get_store)) -> dict[str, Any]:
    """Apply a partial update to one task."""
    try:
        return await task_service.update_task(store, task_id, payload)
    except Exception as e:
        raise_http_error(e)


@router.delete("/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_store)) -> dict[str, Any]:
    """Delete a task permanently."""
    try:
        removed = await task_service.delete_task(store, task_id)
    except Exception as e:
        raise_http_error(e)
    return {"success": True, "task": removed}


@router.get("/{task_id}/progress")
async def get_task_progress(task_id: str, store: TaskStore = Depends(get_store)) -> TaskProgress:
    """Today's progress of a TODO task."""
    try:
        return await progress_service.get_task_progress(store, task_id)
    except Exception as e:
        raise_http_error(e)


@router.get("/{task_id}/remaining")
async def get_task_remaining(task_id: str, store: TaskStore = Depends(get_store)) -> TaskRemaining:
    """Today's executed and remaining time of a TODO task."""
    try:
        return await progress_service.get_task_remaining(store, task_id)
    except Exception as e:
        raise_http_error(e)


@router.post("/{task_id}/session")
async def log_session(task_id: str, session: SessionLog, store: TaskStore = Depends(get_store)) -> dict[str, Any]:
    """Add a finished focus session to today's time."""
    try:
        return await task_service.log_session(store, task_id, session)
    except Exception as e:
        raise_http_error(e)


@router.post("/{task_id}/complete")
async def complete_task(
    task_id: str, request: CompletionRequest, store: TaskStore = Depends(get_store)
) -> dict[str, Any]:
    """Mark or unmark a task as completed today."""
    try:
        return await task_service.set_completion(store, task_id, request)
    except Exception as e:
        raise_http_error(e)


@router.post("/{task_id}/check-in")
async def check_in(task_id: str, entry: CheckInCreate, store: TaskStore = Depends(get_store)) -> dict[str, Any]:
    """Record today's check-in for a check-in task."""
    try:
        return await task_service.check_in(store, task_id, entry)
    except Exception as e:
        raise_http_error(e)
