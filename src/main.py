"""focus-timer - task time tracking backend with a daily reset."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.config import Constants, settings
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.scheduler_tracker import job_tracker
from src.core.task_store import get_project_store, get_task_store
from src.interface.dependencies import get_reset_scheduler
from src.interface.projects_router import router as projects_router
from src.interface.scheduler_router import router as scheduler_router
from src.interface.tasks_router import router as tasks_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so startup logs are captured
    configure_logfire()

    store = get_task_store()
    await store.initialize()
    logger.info("startup_validation", extra={"service": "task_store", "backend": settings.storage_backend})
    await get_project_store().initialize()

    scheduler = get_reset_scheduler()
    if settings.scheduler_autostart:
        scheduler.start()
    yield
    scheduler.stop()


app = FastAPI(
    title="focus-timer",
    description="Focus timer backend with daily task statistics and scheduled resets",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(tasks_router)
app.include_router(projects_router)
app.include_router(scheduler_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and parameters as 400."""
    logger.warning("request_validation_failed", extra={"errors": str(exc.errors())})
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Reduce validation errors to their location, message and type."""
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/scheduler")
async def scheduler_health_check() -> JSONResponse:
    """Scheduler health check endpoint with job status."""
    job_status = await job_tracker.get_job_status(Constants.DAILY_RESET_JOB_ID)
    dlq = job_tracker.get_dead_letter_queue()

    overall_status = "degraded" if job_status["consecutive_failures"] > 0 else "healthy"
    if len(dlq) > 0:
        overall_status = "critical"

    return JSONResponse(
        content={
            "status": overall_status,
            "scheduler": get_reset_scheduler().get_status().model_dump(by_alias=True),
            "jobs": {Constants.DAILY_RESET_JOB_ID: job_status},
            "dead_letter_queue_size": len(dlq),
            "dead_letter_queue": dlq,
        },
        status_code=200 if overall_status == "healthy" else 503,
    )
