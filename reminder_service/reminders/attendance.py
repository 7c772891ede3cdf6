"""
Attendance reminders: notify tenant admins and responsibles when an upcoming
event is exactly one of its type's configured reminder offsets away.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from reminder_service.channels.telegram_client import TelegramClient, mask_chat_id
from reminder_service.core.config import ReminderSettings
from reminder_service.core.errors import StoreReadError
from reminder_service.core.models import (
    REMINDER_ROLES,
    Event,
    EventType,
    InvocationResult,
    ReminderCategory,
)
from reminder_service.observability.logger import log_warning
from reminder_service.reminders.dispatcher import Dispatcher
from reminder_service.reminders.recipients import resolve_recipients
from reminder_service.reminders.windows import (
    event_start_local,
    evaluate_event_reminder,
    project_to_zone,
)
from reminder_service.rendering.messages import format_attendance_reminder
from reminder_service.storage.provider import ReminderStore

logger = logging.getLogger(__name__)


def earliest_event_date(now: datetime) -> str:
    # A day of slack so tenants west of UTC still see today's local events
    return (now.astimezone(timezone.utc).date() - timedelta(days=1)).isoformat()


def tenant_zone_map(tenants, default_tz: str) -> Dict[int, str]:
    return {t.id: t.timezone or default_tz for t in tenants}


async def run_attendance_reminders(
    settings: ReminderSettings,
    store: ReminderStore,
    client: TelegramClient,
    now: Optional[datetime] = None,
) -> InvocationResult:
    """
    Run one attendance-reminder invocation.

    Args:
        settings: Invocation settings
        store: Open data store
        client: Telegram client used for delivery
        now: Current instant; defaults to the wall clock

    Returns:
        InvocationResult with the number of messages delivered

    Raises:
        StoreReadError: If tenants or event types cannot be read
    """
    now = now or datetime.now(timezone.utc)
    logger.info(f"[{now.isoformat()}] Checking for attendance reminders")

    tenants = await store.fetch_tenants()
    zones = tenant_zone_map(tenants, settings.default_timezone)

    event_types = await store.fetch_notifying_event_types()
    if not event_types:
        logger.info("No attendance types with reminders enabled")
        return InvocationResult(processed=0, timestamp=now)

    dispatcher = Dispatcher(client)
    from_date = earliest_event_date(now)

    for event_type in event_types:
        if not event_type.reminders:
            continue

        try:
            events = await store.fetch_upcoming_events(
                event_type.id, from_date, settings.attendance_page_size
            )
        except StoreReadError as e:
            log_warning("Skipping attendance type after read failure", {
                "type_id": event_type.id,
                "error": str(e),
            })
            continue

        if not events:
            logger.info(f"No future attendances for type {event_type.id}")
            continue

        for event in events:
            tz_name = zones.get(event.tenant_id) or zones.get(event_type.tenant_id) or settings.default_timezone
            await _process_event(store, dispatcher, event_type, event, tz_name, now)

    logger.info(f"Completed. Total reminders sent: {dispatcher.report.sent}")
    return InvocationResult(processed=dispatcher.report.sent, timestamp=now)


async def _process_event(
    store: ReminderStore,
    dispatcher: Dispatcher,
    event_type: EventType,
    event: Event,
    tz_name: str,
    now: datetime,
) -> None:
    now_local = project_to_zone(now, tz_name)
    try:
        start_local = event_start_local(event, tz_name)
    except ValueError:
        logger.warning(f"Unparseable start of attendance {event.id}: {event.date!r} {event.start_time!r}")
        return

    matched = evaluate_event_reminder(now_local, start_local, event_type.reminders)
    if matched is None:
        return

    logger.info(
        f"Attendance {event.id}: starts {start_local} ({tz_name}), "
        f"current local {now_local}, matched reminder {matched}h"
    )

    tenant_id = event_type.tenant_id if event_type.tenant_id is not None else event.tenant_id
    try:
        attendees = await store.fetch_confirmed_attendees(event.id)
        if not attendees:
            logger.info(f"No confirmed attendees for attendance {event.id}")
            return

        user_ids = await store.fetch_tenant_user_ids(tenant_id, REMINDER_ROLES)
        if not user_ids:
            logger.info(f"No users with ADMIN/RESPONSIBLE role in tenant {tenant_id}")
            return

        configs = await store.fetch_recipient_configs(ReminderCategory.REMINDERS, user_ids)
    except StoreReadError as e:
        log_warning("Skipping attendance after read failure", {
            "attendance_id": event.id,
            "error": str(e),
        })
        return

    recipients = resolve_recipients(configs, ReminderCategory.REMINDERS, tenant_id)
    if not recipients:
        logger.info("No eligible users with reminders enabled")
        return

    message = format_attendance_reminder(
        event_type.name, event.date, event.start_time, matched, tz_name
    )
    for recipient in recipients:
        if await dispatcher.deliver(recipient.telegram_chat_id, message):
            logger.info(f"Reminder sent to {mask_chat_id(recipient.telegram_chat_id)} for {event_type.name}")
