"""Scheduler for the daily reset job."""

import functools
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.core.config import Constants, settings
from src.core.scheduler_tracker import retry_job_with_backoff
from src.models.service_models import ResetResult, SchedulerStatus
from src.services.daily_reset import DailyResetExecutor


logger = logging.getLogger(__name__)


class DailyResetScheduler:
    """Run the DailyResetExecutor on a cron schedule, with start/stop control.

    The APScheduler instance is created on start() and discarded on stop(), so
    the scheduler can be restarted any number of times from the API.
    """

    def __init__(
        self,
        executor: DailyResetExecutor,
        *,
        cron: str | None = None,
        timezone: str | None = None,
    ) -> None:
        self.executor = executor
        self.cron = cron or settings.daily_reset_cron
        self.timezone = timezone or settings.reporting_timezone
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def _run_scheduled_reset(self) -> str:
        result = await self.executor.run()
        return f"reset {result.reset_count} of {result.total_tasks} tasks for {result.reset_date}"

    def start(self) -> bool:
        """Start the cron job. Must be called with a running event loop.

        Returns:
            False if the scheduler was already running
        """
        if self.is_running:
            logger.info("Daily reset scheduler already running")
            return False

        scheduler = AsyncIOScheduler(timezone=self.timezone)
        scheduler.add_job(
            functools.partial(retry_job_with_backoff, self._run_scheduled_reset, Constants.DAILY_RESET_JOB_ID),
            trigger=CronTrigger.from_crontab(self.cron, timezone=self.timezone),
            id=Constants.DAILY_RESET_JOB_ID,
            name="Daily Task Reset",
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=3600,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Scheduled daily reset job: '%s' (%s)", self.cron, self.timezone)
        return True

    def stop(self) -> bool:
        """Stop the cron job.

        Returns:
            False if the scheduler was not running
        """
        if not self.is_running or self._scheduler is None:
            logger.info("Daily reset scheduler not running")
            return False
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Daily reset scheduler stopped")
        return True

    async def run_now(self) -> ResetResult:
        """Run the daily reset immediately; errors propagate to the caller."""
        logger.info("Running daily reset on demand")
        return await self.executor.run()

    def get_status(self) -> SchedulerStatus:
        """Report whether the job is scheduled and when it fires next."""
        next_run = None
        if self.is_running and self._scheduler is not None:
            job = self._scheduler.get_job(Constants.DAILY_RESET_JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()
        return SchedulerStatus(
            is_running=self.is_running,
            next_run=next_run,
            cron=self.cron,
            timezone=self.timezone,
        )
