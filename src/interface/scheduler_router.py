"""REST endpoints to control the daily reset scheduler."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from src.core.scheduler import DailyResetScheduler
from src.domain.update_models import SchedulerAction
from src.interface.dependencies import get_reset_scheduler, raise_http_error
from src.models.service_models import SchedulerStatus


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("")
async def get_scheduler_status(scheduler: DailyResetScheduler = Depends(get_reset_scheduler)) -> SchedulerStatus:
    """Whether the daily reset is scheduled and when it runs next."""
    return scheduler.get_status()


@router.post("")
async def control_scheduler(
    body: SchedulerAction,
    scheduler: DailyResetScheduler = Depends(get_reset_scheduler),
) -> dict[str, Any]:
    """Start or stop the daily reset schedule, or run the reset immediately."""
    logger.info("scheduler_action", extra={"action": body.action})

    if body.action == "start":
        started = scheduler.start()
        message = "Scheduler started" if started else "Scheduler already running"
        return {"success": True, "message": message, "status": scheduler.get_status().model_dump(by_alias=True)}

    if body.action == "stop":
        stopped = scheduler.stop()
        message = "Scheduler stopped" if stopped else "Scheduler was not running"
        return {"success": True, "message": message, "status": scheduler.get_status().model_dump(by_alias=True)}

    if body.action == "reset-now":
        try:
            result = await scheduler.run_now()
        except Exception as e:
            raise_http_error(e)
        return {
            "success": True,
            "message": f"Reset {result.reset_count} tasks",
            "result": result.model_dump(by_alias=True),
        }

    raise HTTPException(status_code=400, detail="Invalid action. Use start, stop, or reset-now")
