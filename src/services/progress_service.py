"""Progress and remaining-time queries for single tasks and batches."""

import logging
from typing import Any

from pydantic import ValidationError

from src.core.config import Constants
from src.core.dates import iso_now, today_string
from src.core.errors import BatchSizeError, TaskNotFoundError, UnsupportedTaskTypeError
from src.core.logging import span
from src.core.task_store import TaskStore
from src.domain.task import CheckInTask, TodoTask, parse_task
from src.models.service_models import BatchCount, BatchResult, TaskProgress, TaskRemaining
from src.services.logical_reset import is_completed_today
from src.services.task_service import find_task
from src.services.time_stats import build_progress, build_remaining


logger = logging.getLogger(__name__)

AnyTask = TodoTask | CheckInTask

NOT_FOUND_MESSAGE = "Task not found"
NO_PROGRESS_MESSAGE = "Only TODO tasks have progress"
NO_REMAINING_MESSAGE = "Only TODO tasks have remaining time"


def validate_batch(task_ids: list[str]) -> None:
    """Reject empty batches and batches above the size limit.

    Raises:
        BatchSizeError: If the batch is empty or too large
    """
    if not task_ids:
        raise BatchSizeError("taskIds must be a non-empty array")
    if len(task_ids) > Constants.MAX_BATCH_SIZE:
        raise BatchSizeError(f"Maximum {Constants.MAX_BATCH_SIZE} tasks per batch request")


def _require_todo(task: AnyTask, message: str) -> TodoTask:
    if not isinstance(task, TodoTask):
        raise UnsupportedTaskTypeError(message)
    return task


async def get_task_progress(store: TaskStore, task_id: str, *, today: str | None = None) -> TaskProgress:
    """Today's progress of one TODO task.

    Raises:
        TaskNotFoundError: If no task has the ID
        UnsupportedTaskTypeError: If the task is not a TODO task
    """
    day = today or today_string()
    with span("progress_service.get_task_progress"):
        task = _require_todo(await find_task(store, task_id), NO_PROGRESS_MESSAGE)
        return build_progress(task, day, is_completed=is_completed_today(task, day))


async def get_task_remaining(store: TaskStore, task_id: str, *, today: str | None = None) -> TaskRemaining:
    """Today's executed and remaining time of one TODO task.

    Raises:
        TaskNotFoundError: If no task has the ID
        UnsupportedTaskTypeError: If the task is not a TODO task
    """
    day = today or today_string()
    with span("progress_service.get_task_remaining"):
        task = _require_todo(await find_task(store, task_id), NO_REMAINING_MESSAGE)
        return build_remaining(task, day, is_completed=is_completed_today(task, day))


def _basic_info(task: AnyTask) -> dict[str, Any]:
    return {
        "_id": task.id,
        "title": task.title,
        "status": task.status.value,
        "type": task.type,
        "priority": task.priority.value,
        "tags": task.tags,
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
    }


def _progress_entry(task: AnyTask, day: str) -> dict[str, Any]:
    todo = _require_todo(task, NO_PROGRESS_MESSAGE)
    return build_progress(todo, day, is_completed=is_completed_today(todo, day)).model_dump(by_alias=True)


def _remaining_entry(task: AnyTask, day: str) -> dict[str, Any]:
    todo = _require_todo(task, NO_REMAINING_MESSAGE)
    return build_remaining(todo, day, is_completed=is_completed_today(todo, day)).model_dump(by_alias=True)


def _info_entry(task: AnyTask, day: str) -> dict[str, Any]:
    info = _basic_info(task)
    if isinstance(task, TodoTask):
        completed = is_completed_today(task, day)
        progress = build_progress(task, day, is_completed=completed)
        remaining = build_remaining(task, day, is_completed=completed)
        info["progress"] = progress.model_dump(
            by_alias=True, include={"total_executed_time", "estimated_duration", "progress_percentage",
                                    "is_completed", "today_progress"}
        )
        info["remaining"] = remaining.model_dump(
            by_alias=True, include={"executed_minutes", "remaining_minutes", "estimated_minutes",
                                    "executed_seconds", "remaining_seconds", "estimated_seconds"}
        )
    return info


_BATCH_BUILDERS = {
    "progress": _progress_entry,
    "remaining": _remaining_entry,
    "info": _info_entry,
}


async def get_batch(store: TaskStore, task_ids: list[str], *, kind: str, today: str | None = None) -> BatchResult:
    """Build progress, remaining, or info entries for many tasks from one read.

    Unknown IDs and tasks of the wrong type go to errors; the others to success.

    Args:
        store: Task store
        task_ids: Requested IDs (1 to 50)
        kind: "progress", "remaining", or "info"
        today: Day to compute for, defaults to today

    Raises:
        BatchSizeError: If the batch is empty or too large (nothing is processed)
    """
    validate_batch(task_ids)
    build = _BATCH_BUILDERS[kind]
    day = today or today_string()

    with span(f"progress_service.batch_{kind}"):
        records = {raw.get("_id"): raw for raw in await store.read_tasks() if isinstance(raw, dict)}

        success: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for task_id in task_ids:
            try:
                raw = records.get(task_id)
                if raw is None:
                    raise TaskNotFoundError(task_id)
                success[task_id] = build(parse_task(raw), day)
            except TaskNotFoundError:
                errors[task_id] = NOT_FOUND_MESSAGE
            except UnsupportedTaskTypeError as e:
                errors[task_id] = str(e)
            except ValidationError:
                logger.warning("batch_invalid_task_record", extra={"task_id": task_id})
                errors[task_id] = "Internal processing error"

    logger.info(
        "batch_processed",
        extra={"kind": kind, "requested": len(task_ids), "successful": len(success), "failed": len(errors)},
    )
    return BatchResult(
        success=success,
        errors=errors,
        count=BatchCount(requested=len(task_ids), successful=len(success), failed=len(errors)),
        timestamp=iso_now(),
    )
