import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional

from reminder_service.channels.telegram_client import TelegramClient
from reminder_service.core.config import AppConfig, ReminderSettings, require_reminder_settings
from reminder_service.core.models import InvocationResult
from reminder_service.observability.logger import log_error, log_event, timing
from reminder_service.reminders.attendance import run_attendance_reminders
from reminder_service.reminders.checklist import run_checklist_reminders
from reminder_service.routes.health import update_last_run
from reminder_service.storage.provider import ReminderStore
from reminder_service.storage.supabase_store import open_store

logger = logging.getLogger(__name__)

JOBS: Dict[str, Callable[..., Awaitable[InvocationResult]]] = {
    "attendance": run_attendance_reminders,
    "checklist": run_checklist_reminders,
}

StoreFactory = Callable[[ReminderSettings], Awaitable[ReminderStore]]


def _default_client(settings: ReminderSettings) -> TelegramClient:
    return TelegramClient(settings.telegram_bot_token, timeout=settings.telegram_timeout_seconds)


async def invoke(
    job: str,
    cfg: Optional[AppConfig] = None,
    now: Optional[datetime] = None,
    store_factory: StoreFactory = open_store,
    client_factory: Callable[[ReminderSettings], TelegramClient] = _default_client,
) -> InvocationResult:
    """
    Run one invocation of a reminder job end to end.

    Settings are validated before the store is opened, so a missing secret
    fails without any I/O. The store is opened once and closed afterwards.

    Args:
        job: 'attendance' or 'checklist'
        cfg: Application config; read from the environment when None
        now: Current instant override
        store_factory: Opens the data store for this invocation
        client_factory: Builds the Telegram client

    Returns:
        InvocationResult of the job

    Raises:
        KeyError: Unknown job name
        ReminderServiceError: Configuration or primary read failure
    """
    run_job = JOBS[job]
    try:
        settings = require_reminder_settings(cfg)
        with timing(f"{job}_reminders") as timer:
            store = await store_factory(settings)
            try:
                result = await run_job(settings, store, client_factory(settings), now=now)
            finally:
                await store.close()
    except Exception as e:
        log_error(e, {"action": "reminder_run_failed", "job": job})
        update_last_run(job=job, processed=0, success=False, error=str(e))
        raise

    log_event(
        action="completed",
        job=job,
        processed=result.processed,
        duration_ms=timer.get_duration_ms(),
    )
    update_last_run(
        job=job,
        processed=result.processed,
        duration_ms=timer.get_duration_ms(),
        success=True,
    )
    return result
