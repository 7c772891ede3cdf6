import logging
from datetime import datetime
from typing import Optional, Dict, Any
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from reminder_service.core.config import load_config
from reminder_service.core.models import InvocationResult
from reminder_service.reminders import runner

logger = logging.getLogger(__name__)

DEFAULT_CRON = "0 * * * *"


class ReminderScheduler:
    """
    In-process hourly trigger for the reminder jobs.

    Each tick runs every registered job once, in order. A failing job is
    logged and does not stop the schedule.
    """

    def __init__(self, cron_expression: Optional[str] = None, timezone: Optional[str] = None):
        cfg = load_config()
        self._timezone = timezone or cfg.scheduler_timezone
        self._cron_expression = cron_expression or cfg.scheduler_cron
        self._trigger = self._build_trigger()
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._last_run: Optional[datetime] = None

    def _build_trigger(self) -> CronTrigger:
        """Parse the cron expression, falling back to hourly when invalid."""
        try:
            return CronTrigger.from_crontab(self._cron_expression, timezone=ZoneInfo(self._timezone))
        except ValueError:
            logger.warning(f"Invalid cron expression: {self._cron_expression}, using default")
            self._cron_expression = DEFAULT_CRON
            return CronTrigger.from_crontab(DEFAULT_CRON, timezone=ZoneInfo(self._timezone))

    @property
    def running(self) -> bool:
        return self._running

    async def run_all(self) -> Dict[str, Optional[InvocationResult]]:
        """Run every reminder job once. Failed jobs map to None."""
        results: Dict[str, Optional[InvocationResult]] = {}
        for job in runner.JOBS:
            try:
                results[job] = await runner.invoke(job)
            except Exception as e:
                logger.error(f"Scheduled {job} reminders failed: {e}")
                results[job] = None
        self._last_run = datetime.now(ZoneInfo(self._timezone))
        return results

    async def start(self):
        """Start the scheduler. Must be called from a running event loop."""
        if self._running:
            logger.warning("Scheduler is already running")
            return

        self._scheduler = AsyncIOScheduler(timezone=ZoneInfo(self._timezone))
        self._scheduler.add_job(
            self.run_all,
            self._trigger,
            id="reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self._running = True
        logger.info(f"Scheduler started ({self._cron_expression} {self._timezone})")

    async def stop(self):
        """Stop the scheduler."""
        if not self._running:
            logger.warning("Scheduler is not running")
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._running = False
        logger.info("Scheduler stopped")

    def next_run(self) -> Optional[datetime]:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job("reminders")
        return job.next_run_time if job else None

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler status."""
        next_run = self.next_run()
        return {
            "running": self._running,
            "cron_expression": self._cron_expression,
            "timezone": self._timezone,
            "jobs": list(runner.JOBS),
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "next_run": next_run.isoformat() if next_run else None,
            "enabled": self.is_enabled(),
        }

    def is_enabled(self) -> bool:
        """Check if scheduler is enabled via environment variable."""
        return load_config().run_scheduler


# Global scheduler instance
_scheduler: Optional[ReminderScheduler] = None


def get_scheduler() -> ReminderScheduler:
    """Get the global scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = ReminderScheduler()
    return _scheduler


async def start_scheduler():
    """Start the global scheduler if enabled."""
    scheduler = get_scheduler()
    if scheduler.is_enabled():
        await scheduler.start()
    else:
        logger.info("Scheduler disabled (RUN_SCHEDULER=0)")


async def stop_scheduler():
    """Stop the global scheduler."""
    scheduler = get_scheduler()
    if scheduler.running:
        await scheduler.stop()
