"""Observability setup: Pydantic Logfire spans plus standard-library loggers.

Modules log through logging.getLogger(__name__) and pass structured fields in
``extra``. At startup those records are handed to Logfire together with the
request spans from the FastAPI instrumentation and the service spans opened
with span().

    logger = logging.getLogger(__name__)
    log_event(logger, "info", "session_logged", user_id="user_001", task_id="task_1")
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


SERVICE_NAME = "focus-timer"
SERVICE_VERSION = "0.1.0"


def configure_logfire() -> None:
    """Set up Logfire and forward standard logging records to it.

    Without a token nothing leaves the process; Logfire still prints records
    to the console.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(level=logging.INFO, handlers=[logfire.LogfireLoggingHandler()])
    logging.getLogger(__name__).info("logfire_configured", extra={"service": SERVICE_NAME})


def instrument_fastapi(app: FastAPI) -> None:
    """Open a Logfire span for every request handled by app."""
    logfire.instrument_fastapi(app)


def span(name: str) -> logfire.LogfireSpan:
    """Span around one service operation, named module.operation (e.g. "daily_reset.run")."""
    return logfire.span(name)


def log_event(
    logger: logging.Logger,
    level: str,
    event: str,
    *,
    user_id: str | None = None,
    **fields: object,
) -> None:
    """Emit one structured event.

    The user the event concerns is added to the fields only when known, so
    scheduler-wide runs do not log a null user.
    """
    if user_id:
        fields = {"user_id": user_id, **fields}
    getattr(logger, level.lower())(event, extra=fields)
