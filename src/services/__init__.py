from src.services import (
    analytics_service,
    daily_reset,
    logical_reset,
    progress_service,
    project_service,
    task_service,
    time_stats,
)


__all__ = [
    "analytics_service",
    "daily_reset",
    "logical_reset",
    "progress_service",
    "project_service",
    "task_service",
    "time_stats",
]
