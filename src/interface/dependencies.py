"""FastAPI dependencies and error translation shared by the routers."""

import logging
from functools import lru_cache
from typing import NoReturn

from fastapi import Depends, HTTPException

from src.core.errors import classify_error
from src.core.scheduler import DailyResetScheduler
from src.core.task_store import TaskStore, get_project_store, get_task_store
from src.services.daily_reset import DailyResetExecutor


logger = logging.getLogger(__name__)


def get_store() -> TaskStore:
    """Task store used by request handlers."""
    return get_task_store()


def get_projects() -> TaskStore:
    """Project store used by request handlers."""
    return get_project_store()


def get_reset_executor(store: TaskStore = Depends(get_store)) -> DailyResetExecutor:
    """Daily reset executor bound to the request's store."""
    return DailyResetExecutor(store)


@lru_cache(maxsize=1)
def get_reset_scheduler() -> DailyResetScheduler:
    """Process-wide daily reset scheduler."""
    return DailyResetScheduler(DailyResetExecutor(get_task_store()))


def raise_http_error(exc: Exception) -> NoReturn:
    """Translate a service exception into an HTTPException.

    Raises:
        HTTPException: Always, with the status code from classify_error
    """
    error = classify_error(exc)
    if error.status_code >= 500:
        logger.error(
            "request_failed",
            extra={"code": error.code, "error": str(exc), "exception_type": type(exc).__name__},
        )
    else:
        logger.warning("request_rejected", extra={"code": error.code, "error": str(exc)})
    raise HTTPException(status_code=error.status_code, detail=error.message) from exc
