"""Daily reset: persist the start-of-day state of every task.

Runs once a day from the scheduler and on demand from the API. It writes the
same transformation the logical reset shows at read time, so stored records
catch up with what users already see. Per-day history (the dailyTimeStats
ledger of earlier days and checkInHistory) is never removed; weekly and
monthly statistics are computed from it.
"""

import logging
from typing import Any

from pydantic import ValidationError

from src.core.dates import iso_now, today_string
from src.core.logging import log_event, span
from src.core.task_store import TaskRecords, TaskStore
from src.domain.task import CheckInTask, TaskStatus, TodoTask, dump_task, parse_task
from src.models.service_models import ResetDetails, ResetResult, ResetStatus


logger = logging.getLogger(__name__)

AnyTask = TodoTask | CheckInTask


def reset_task(task: AnyTask, *, today: str, now: str) -> list[str]:
    """Apply the daily reset to one parsed task in place.

    Args:
        task: Task to mutate
        today: The new calendar day (YYYY-MM-DD)
        now: Timestamp written to updatedAt when something changed

    Returns:
        Names of the changes applied (empty when the task was already reset)
    """
    changes: list[str] = []

    if task.status == TaskStatus.COMPLETED:
        task.status = TaskStatus.PENDING
        changes.append("status")

    if task.is_completed_on(today):
        task.completed_at = [day for day in task.completed_at if day != today]
        changes.append("completed_at")

    if isinstance(task, TodoTask):
        if task.daily_time_stats and today in task.daily_time_stats:
            del task.daily_time_stats[today]
            changes.append("time_stats")
        if task.time_log:
            # Totals were folded into dailyTimeStats when the record was loaded
            task.time_log = []
            changes.append("time_log")

    if changes:
        task.updated_at = now
    return changes


def _belongs_to(raw: dict[str, Any], user_id: str | None) -> bool:
    return user_id is None or raw.get("userId") == user_id


class DailyResetExecutor:
    """Reset completion state and today's time for all tasks in a store."""

    def __init__(self, store: TaskStore) -> None:
        self.store = store

    async def run(self, *, user_id: str | None = None, today: str | None = None) -> ResetResult:
        """Reset every task (optionally only one user's) for the given day.

        Zero resets is a normal result. Store failures propagate unchanged.

        Args:
            user_id: Restrict the reset to this user's tasks
            today: Day to reset for, defaults to today in the reporting timezone

        Returns:
            ResetResult with counters and the IDs of the tasks that changed

        Raises:
            StoreUnavailableError: If the store cannot be read or written
            MalformedStoreError: If the stored document is not a list of records
        """
        reset_date = today or today_string()
        now = iso_now()

        with span("daily_reset.run"):

            def _mutate(tasks: TaskRecords) -> ResetResult:
                details = ResetDetails()
                reset_ids: list[str] = []
                total = 0

                for index, raw in enumerate(tasks):
                    if not isinstance(raw, dict) or not _belongs_to(raw, user_id):
                        continue
                    try:
                        task = parse_task(raw)
                    except ValidationError as e:
                        logger.warning(
                            "daily_reset_skipped_record",
                            extra={"task_id": raw.get("_id"), "error": str(e)},
                        )
                        continue

                    total += 1
                    changes = reset_task(task, today=reset_date, now=now)
                    if not changes:
                        continue

                    tasks[index] = dump_task(task)
                    reset_ids.append(task.id)
                    details.status_resets += "status" in changes
                    details.completed_at_resets += "completed_at" in changes
                    details.time_stats_resets += "time_stats" in changes
                    details.time_log_resets += "time_log" in changes

                return ResetResult(
                    reset_count=len(reset_ids),
                    total_tasks=total,
                    reset_date=reset_date,
                    timestamp=now,
                    details=details,
                    reset_task_ids=reset_ids,
                )

            result = await self.store.update(_mutate)

        log_event(
            logger,
            "info",
            "daily_reset_complete",
            user_id=user_id,
            reset_count=result.reset_count,
            total_tasks=result.total_tasks,
            reset_date=reset_date,
        )
        return result


def get_reset_status(tasks: TaskRecords, *, today: str, user_id: str | None = None) -> ResetStatus:
    """Summarize what a daily reset would change for the given records."""
    parsed: list[AnyTask] = []
    for raw in tasks:
        if not isinstance(raw, dict) or not _belongs_to(raw, user_id):
            continue
        try:
            parsed.append(parse_task(raw))
        except ValidationError:
            continue

    completed = [t for t in parsed if t.status == TaskStatus.COMPLETED]
    completed_check_ins = sum(1 for t in completed if isinstance(t, CheckInTask))
    completed_todos = sum(1 for t in completed if isinstance(t, TodoTask))
    todos_with_progress = sum(
        1
        for t in parsed
        if isinstance(t, TodoTask) and ((t.daily_time_stats or {}).get(today, 0) > 0 or bool(t.time_log))
    )
    completed_today = sum(1 for t in parsed if t.is_completed_on(today))

    return ResetStatus(
        total_tasks=len(parsed),
        completed_tasks=len(completed),
        completed_check_ins=completed_check_ins,
        completed_todos=completed_todos,
        todos_with_progress=todos_with_progress,
        can_reset=bool(completed) or todos_with_progress > 0 or completed_today > 0,
        date=today,
    )
