"""
Checklist reminders: notify subscribers when an open checklist item of an
upcoming event is due within the hour or has just become due.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from reminder_service.channels.telegram_client import TelegramClient, mask_chat_id
from reminder_service.core.config import ReminderSettings
from reminder_service.core.models import InvocationResult, ReminderCategory
from reminder_service.reminders.attendance import earliest_event_date, tenant_zone_map
from reminder_service.reminders.dispatcher import Dispatcher
from reminder_service.reminders.recipients import resolve_recipients
from reminder_service.reminders.windows import (
    hours_until_due,
    is_checklist_due,
    parse_timestamp,
    project_to_zone,
)
from reminder_service.rendering.messages import format_checklist_reminder
from reminder_service.storage.provider import ReminderStore

logger = logging.getLogger(__name__)


async def run_checklist_reminders(
    settings: ReminderSettings,
    store: ReminderStore,
    client: TelegramClient,
    now: Optional[datetime] = None,
) -> InvocationResult:
    """
    Run one checklist-reminder invocation.

    Every dataset read here is required: a read failure aborts the run.

    Raises:
        StoreReadError: If tenants, event types, events or subscriptions cannot be read
    """
    now = now or datetime.now(timezone.utc)
    logger.info(f"[{now.isoformat()}] Checking for checklist reminders")

    tenants = await store.fetch_tenants()
    zones = tenant_zone_map(tenants, settings.default_timezone)

    type_names = {t.id: t.name for t in await store.fetch_event_types()}

    events = await store.fetch_checklist_events(
        earliest_event_date(now), settings.checklist_page_size
    )
    if not events:
        logger.info("No attendances with checklists found")
        return InvocationResult(processed=0, timestamp=now)
    logger.info(f"Found {len(events)} attendances with checklists")

    configs = await store.fetch_recipient_configs(ReminderCategory.CHECKLIST)
    if not configs:
        logger.info("No users with checklist notifications enabled")
        return InvocationResult(processed=0, timestamp=now)
    logger.info(f"Found {len(configs)} users with checklist notifications enabled")

    dispatcher = Dispatcher(client)

    for event in events:
        if not event.checklist:
            continue

        tz_name = zones.get(event.tenant_id) or settings.default_timezone
        now_local = project_to_zone(now, tz_name)
        recipients = resolve_recipients(configs, ReminderCategory.CHECKLIST, event.tenant_id)

        for item in event.checklist:
            if item.completed or not item.due_date:
                continue

            try:
                due_local = project_to_zone(parse_timestamp(item.due_date), tz_name)
            except ValueError:
                logger.warning(f"Unparseable due date {item.due_date!r} on checklist item {item.id}")
                continue

            hours = hours_until_due(now_local, due_local)
            if not is_checklist_due(hours):
                continue

            logger.info(
                f'Checklist item due: "{item.text}" for attendance {event.id}, '
                f"hours until due: {hours}, current local: {now_local}"
            )

            message = format_checklist_reminder(
                item.text, due_local, event.date, type_names.get(event.type_id), hours
            )
            for recipient in recipients:
                if await dispatcher.deliver(recipient.telegram_chat_id, message):
                    logger.info(f'Checklist reminder sent to {mask_chat_id(recipient.telegram_chat_id)} for "{item.text}"')

    logger.info(f"Completed. Total checklist reminders sent: {dispatcher.report.sent}")
    return InvocationResult(processed=dispatcher.report.sent, timestamp=now)
