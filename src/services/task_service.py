"""Task service for creating, editing, completing and tracking time on tasks.

Every mutation runs as one guarded read-modify-write cycle through
TaskStore.update(), so concurrent requests never lose each other's changes.
Reads apply the logical reset so callers always see today's state.
"""

import logging
import secrets
import string
import time
from typing import Any

from pydantic import ValidationError

from src.core.config import Constants, settings
from src.core.dates import date_prefix, format_date, iso_now, parse_date, parse_query_date, today_string
from src.core.errors import InvalidTaskInputError, StoreUnavailableError, TaskNotFoundError, UnsupportedTaskTypeError
from src.core.logging import log_event, span
from src.core.task_store import TaskRecords, TaskStore
from src.domain.create_models import CheckInCreate, CompletionRequest, SessionLog, TaskCreate
from src.domain.task import CheckInEntry, CheckInTask, TaskPriority, TaskStatus, TodoTask, dump_task, parse_task
from src.domain.update_models import BulkTaskUpdate, TaskUpdate
from src.models.service_models import TodayStats, TodayTasks
from src.services.logical_reset import apply_logical_reset, is_completed_today


logger = logging.getLogger(__name__)

AnyTask = TodoTask | CheckInTask

_ID_ALPHABET = string.ascii_lowercase + string.digits
_PRIORITY_ORDER = {TaskPriority.HIGH: 0, TaskPriority.MEDIUM: 1, TaskPriority.LOW: 2}


def generate_task_id() -> str:
    """Return a new unique task ID such as task_1709251200000_k3j9x0a1b."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"task_{int(time.time() * 1000)}_{suffix}"


def parse_records(tasks: TaskRecords, *, user_id: str | None = None) -> list[AnyTask]:
    """Parse raw records, skipping ones that are not valid tasks."""
    parsed: list[AnyTask] = []
    for raw in tasks:
        if not isinstance(raw, dict):
            continue
        if user_id is not None and raw.get("userId") != user_id:
            continue
        try:
            parsed.append(parse_task(raw))
        except ValidationError as e:
            logger.warning("skipping_invalid_task_record", extra={"task_id": raw.get("_id"), "error": str(e)})
    return parsed


def _locate(tasks: TaskRecords, task_id: str) -> int:
    """Index of the record with task_id inside a mutation cycle.

    An empty store is reported as unavailable rather than as a missing task,
    since it usually means the data could not be loaded.
    """
    if not tasks:
        raise StoreUnavailableError("No task data available")
    for index, raw in enumerate(tasks):
        if isinstance(raw, dict) and raw.get("_id") == task_id:
            return index
    raise TaskNotFoundError(task_id)


def _parse_at(tasks: TaskRecords, index: int) -> AnyTask:
    try:
        return parse_task(tasks[index])
    except ValidationError as e:
        raise InvalidTaskInputError(f"Stored task {tasks[index].get('_id')} is invalid: {e}") from e


def _today_view(task: AnyTask, today: str) -> dict[str, Any]:
    view = apply_logical_reset(task, today)
    data = dump_task(view)
    data["isCompletedToday"] = is_completed_today(task, today)
    return data


async def list_tasks(store: TaskStore, *, user_id: str | None = None, today: str | None = None) -> list[dict[str, Any]]:
    """List a user's tasks as displayed today."""
    day = today or today_string()
    owner = user_id or settings.default_user_id
    with span("task_service.list_tasks"):
        tasks = parse_records(await store.read_tasks(), user_id=owner)
        return [_today_view(task, day) for task in tasks]


async def find_task(store: TaskStore, task_id: str) -> AnyTask:
    """Fetch one parsed task without applying the logical reset.

    Raises:
        TaskNotFoundError: If no task has the ID
    """
    for raw in await store.read_tasks():
        if isinstance(raw, dict) and raw.get("_id") == task_id:
            try:
                return parse_task(raw)
            except ValidationError as e:
                raise InvalidTaskInputError(f"Stored task {task_id} is invalid: {e}") from e
    raise TaskNotFoundError(task_id)


async def get_task(store: TaskStore, task_id: str, *, today: str | None = None) -> dict[str, Any]:
    """Fetch one task as displayed today."""
    task = await find_task(store, task_id)
    return _today_view(task, today or today_string())


async def create_task(store: TaskStore, payload: TaskCreate) -> str:
    """Create a task with defaults applied and return its ID."""
    task_id = generate_task_id()
    record = payload.to_record(task_id=task_id, user_id=settings.default_user_id, now=iso_now())
    # Validate the record before it reaches the store
    parse_task(record)

    with span("task_service.create_task"):

        def _append(tasks: TaskRecords) -> None:
            tasks.append(record)

        await store.update(_append)

    log_event(logger, "info", "task_created", user_id=record["userId"], task_id=task_id)
    return task_id


def _apply_completed_at(current: list[str], value: list[str] | str | None, *, today: str) -> list[str]:
    """Resolve a completedAt update: null removes today, a string adds a date, a list replaces."""
    if value is None:
        return [day for day in current if day != today]
    if isinstance(value, str):
        day = date_prefix(value)
        if day is None:
            raise InvalidTaskInputError(f"Invalid completedAt date: {value}")
        return current if day in current else [*current, day]
    replaced: list[str] = []
    for item in value:
        day = date_prefix(item)
        if day is None:
            raise InvalidTaskInputError(f"Invalid completedAt date: {item}")
        if day not in replaced:
            replaced.append(day)
    return replaced


def _apply_update(raw: dict[str, Any], changes: dict[str, Any], *, today: str, now: str) -> dict[str, Any]:
    updated = dict(raw)
    if "completedAt" in changes:
        current = parse_task(raw).completed_at
        updated["completedAt"] = _apply_completed_at(current, changes.pop("completedAt"), today=today)
    updated.update(changes)
    updated["updatedAt"] = now
    try:
        return dump_task(parse_task(updated))
    except ValidationError as e:
        raise InvalidTaskInputError(str(e)) from e


async def update_task(
    store: TaskStore, task_id: str, payload: TaskUpdate, *, today: str | None = None
) -> dict[str, Any]:
    """Apply a partial update to one task and return the stored result.

    Raises:
        TaskNotFoundError: If no task has the ID
        InvalidTaskInputError: If the update produces an invalid task
    """
    day = today or today_string()
    now = iso_now()
    changes = payload.changes()

    with span("task_service.update_task"):

        def _mutate(tasks: TaskRecords) -> dict[str, Any]:
            index = _locate(tasks, task_id)
            _parse_at(tasks, index)
            tasks[index] = _apply_update(tasks[index], dict(changes), today=day, now=now)
            return tasks[index]

        return await store.update(_mutate)


async def bulk_update_tasks(store: TaskStore, updates: list[BulkTaskUpdate], *, today: str | None = None) -> int:
    """Apply several partial updates in one cycle; unknown IDs are skipped.

    Returns:
        Number of tasks updated
    """
    day = today or today_string()
    now = iso_now()

    with span("task_service.bulk_update_tasks"):

        def _mutate(tasks: TaskRecords) -> int:
            positions = {raw.get("_id"): i for i, raw in enumerate(tasks) if isinstance(raw, dict)}
            updated = 0
            for update in updates:
                index = positions.get(update.id)
                if index is None:
                    logger.warning("bulk_update_unknown_task", extra={"task_id": update.id})
                    continue
                tasks[index] = _apply_update(tasks[index], update.changes(), today=day, now=now)
                updated += 1
            return updated

        return await store.update(_mutate)


async def delete_task(store: TaskStore, task_id: str) -> dict[str, Any]:
    """Remove a task permanently and return the removed record.

    Deleting the last task is an explicit request to store an empty list.
    """
    with span("task_service.delete_task"):

        def _mutate(tasks: TaskRecords) -> dict[str, Any]:
            index = _locate(tasks, task_id)
            return tasks.pop(index)

        removed = await store.update(_mutate, allow_empty=True)

    logger.info("task_deleted", extra={"task_id": task_id})
    return removed


def _add_time(task: TodoTask, seconds: int, *, today: str) -> int:
    stats = dict(task.daily_time_stats or {})
    stats[today] = stats.get(today, 0) + seconds
    task.daily_time_stats = stats
    return stats[today]


async def log_session(
    store: TaskStore, task_id: str, session: SessionLog, *, today: str | None = None
) -> dict[str, Any]:
    """Add a finished focus session to today's ledger of a TODO task.

    Sessions shorter than the minimum are acknowledged but not saved.

    Returns:
        Dict with saved flag, seconds added, today's total and the task

    Raises:
        InvalidTaskInputError: If the duration is not positive
        UnsupportedTaskTypeError: If the task is not a TODO task
    """
    if session.duration <= 0:
        raise InvalidTaskInputError("duration must be a positive number of seconds")
    day = today or today_string()
    seconds = int(session.duration)
    now = iso_now()

    with span("task_service.log_session"):

        def _mutate(tasks: TaskRecords) -> dict[str, Any]:
            index = _locate(tasks, task_id)
            task = _parse_at(tasks, index)
            if not isinstance(task, TodoTask):
                raise UnsupportedTaskTypeError("Only TODO tasks track time")

            if session.duration < Constants.MIN_SESSION_SECONDS:
                return {
                    "saved": False,
                    "durationAdded": 0,
                    "todayTotal": (task.daily_time_stats or {}).get(day, 0),
                    "task": dump_task(task),
                }

            total = _add_time(task, seconds, today=day)
            if task.status == TaskStatus.PENDING:
                task.status = TaskStatus.IN_PROGRESS
            task.updated_at = now
            tasks[index] = dump_task(task)
            return {"saved": True, "durationAdded": seconds, "todayTotal": total, "task": tasks[index]}

        result = await store.update(_mutate)

    logger.info(
        "session_logged",
        extra={"task_id": task_id, "saved": result["saved"], "seconds": result["durationAdded"], "date": day},
    )
    return result


async def set_completion(
    store: TaskStore, task_id: str, request: CompletionRequest, *, today: str | None = None
) -> dict[str, Any]:
    """Mark or unmark a task as completed today.

    Marking adds today to completedAt and can log a final session for TODO
    tasks. A task already completed today is returned unchanged.
    """
    day = today or today_string()
    now = iso_now()

    with span("task_service.set_completion"):

        def _mutate(tasks: TaskRecords) -> dict[str, Any]:
            index = _locate(tasks, task_id)
            task = _parse_at(tasks, index)

            if request.completed:
                if task.status == TaskStatus.COMPLETED and task.is_completed_on(day):
                    return {"changed": False, "durationAdded": 0, "task": tasks[index]}
                task.status = TaskStatus.COMPLETED
                if not task.is_completed_on(day):
                    task.completed_at = [*task.completed_at, day]
                added = 0
                if (
                    isinstance(task, TodoTask)
                    and request.duration is not None
                    and request.duration >= Constants.MIN_SESSION_SECONDS
                ):
                    added = int(request.duration)
                    _add_time(task, added, today=day)
            else:
                if task.status != TaskStatus.COMPLETED and not task.is_completed_on(day):
                    return {"changed": False, "durationAdded": 0, "task": tasks[index]}
                task.status = TaskStatus.PENDING
                task.completed_at = [d for d in task.completed_at if d != day]
                added = 0

            task.updated_at = now
            tasks[index] = dump_task(task)
            return {"changed": True, "durationAdded": added, "task": tasks[index]}

        return await store.update(_mutate)


async def check_in(
    store: TaskStore, task_id: str, entry: CheckInCreate, *, today: str | None = None
) -> dict[str, Any]:
    """Record today's check-in for a check-in task and mark it completed today.

    A second check-in on the same day is ignored.

    Raises:
        UnsupportedTaskTypeError: If the task is not a check-in task
    """
    day = today or today_string()
    now = iso_now()

    with span("task_service.check_in"):

        def _mutate(tasks: TaskRecords) -> dict[str, Any]:
            index = _locate(tasks, task_id)
            task = _parse_at(tasks, index)
            if not isinstance(task, CheckInTask):
                raise UnsupportedTaskTypeError("Only check-in tasks accept check-ins")
            if task.has_check_in_on(day):
                return {"checkedIn": False, "task": tasks[index]}

            task.check_in_history = [*task.check_in_history, CheckInEntry(date=day, note=entry.note, rating=entry.rating)]
            task.status = TaskStatus.COMPLETED
            if not task.is_completed_on(day):
                task.completed_at = [*task.completed_at, day]
            task.updated_at = now
            tasks[index] = dump_task(task)
            return {"checkedIn": True, "task": tasks[index]}

        return await store.update(_mutate)


def _sort_key(task: dict[str, Any]) -> tuple[str, int, str]:
    planned = task.get("plannedTime") or Constants.DEFAULT_PLANNED_TIME
    priority = _PRIORITY_ORDER.get(task.get("priority"), 1)
    return planned, priority, task.get("title") or ""


async def get_today_tasks(
    store: TaskStore,
    *,
    user_id: str | None = None,
    today: str | None = None,
    scheduled_only: bool = False,
) -> TodayTasks:
    """Non-archived tasks for today with the logical reset applied.

    Args:
        store: Task store
        user_id: Owner of the tasks
        today: Day to show (YYYY-MM-DD), defaults to today
        scheduled_only: Hide check-ins whose recurrence does not include today

    Returns:
        TodayTasks sorted by planned time, then priority, then title

    Raises:
        InvalidTaskInputError: If today is not a valid date
    """
    day_date = parse_query_date(today, "date") if today else parse_date(today_string())
    day = format_date(day_date)
    owner = user_id or settings.default_user_id

    with span("task_service.get_today_tasks"):
        tasks = parse_records(await store.read_tasks(), user_id=owner)
        visible: list[dict[str, Any]] = []
        for task in tasks:
            if task.status == TaskStatus.ARCHIVED:
                continue
            if (
                scheduled_only
                and isinstance(task, CheckInTask)
                and task.recurrence is not None
                and not task.recurrence.applies_on(day_date)
            ):
                continue
            visible.append(_today_view(task, day))

    visible.sort(key=_sort_key)
    stats = TodayStats(
        total=len(visible),
        completed=sum(1 for t in visible if t["isCompletedToday"]),
        pending=sum(1 for t in visible if t["status"] == TaskStatus.PENDING),
        in_progress=sum(1 for t in visible if t["status"] == TaskStatus.IN_PROGRESS),
        todos=sum(1 for t in visible if t["type"] == "todo"),
        check_ins=sum(1 for t in visible if t["type"] == "check-in"),
    )
    return TodayTasks(tasks=visible, stats=stats, date=day, day_of_week=(day_date.weekday() + 1) % 7)
