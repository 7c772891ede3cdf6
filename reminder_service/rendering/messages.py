"""
Telegram message bodies for reminders.

Pure formatting: dates render as dd.MM.yyyy and times as HH:mm, text is
German to match the app the reminders belong to.
"""

from datetime import date
from typing import Optional

from reminder_service.reminders.windows import (
    LocalTime,
    is_full_timestamp,
    parse_hhmm,
    parse_timestamp,
    project_to_zone,
)

DEFAULT_TYPE_NAME = "Termin"


def reminder_phrase(hours: int) -> str:
    """Qualitative phrase for the hours left until an event."""
    if hours <= 0:
        return "jetzt"
    if hours == 1:
        return "in 1 Stunde"
    if hours < 24:
        return f"in {hours} Stunden"
    return f"in {hours // 24} Tag(en)"


def format_date(value: str) -> str:
    """YYYY-MM-DD (optionally followed by a time) -> dd.MM.yyyy."""
    day = date.fromisoformat(value[:10])
    return day.strftime("%d.%m.%Y")


def format_time(start_time: Optional[str], tz_name: Optional[str] = None) -> str:
    """Render a bare "HH:MM" or a full timestamp as HH:mm."""
    if not start_time or ":" not in start_time:
        return "00:00"
    if is_full_timestamp(start_time):
        local = project_to_zone(parse_timestamp(start_time), tz_name)
        return f"{local.hour:02d}:{local.minute:02d}"
    hour, minute = parse_hhmm(start_time)
    return f"{hour:02d}:{minute:02d}"


def format_local(local: LocalTime) -> str:
    return f"{local.day:02d}.{local.month:02d}.{local.year:04d}, {local.hour:02d}:{local.minute:02d}"


def format_attendance_reminder(
    type_name: Optional[str],
    event_date: str,
    start_time: Optional[str],
    hours_ahead: int,
    tz_name: Optional[str] = None,
) -> str:
    return (
        "⏰ *Terminerinnerung*\n\n"
        f"{reminder_phrase(hours_ahead)}:\n\n"
        f"📋 {type_name or DEFAULT_TYPE_NAME}\n"
        f"📅 {format_date(event_date)}\n"
        f"🕐 {format_time(start_time, tz_name)}"
    )


def format_checklist_reminder(
    item_text: str,
    due_local: LocalTime,
    event_date: str,
    type_name: Optional[str],
    hours_until_due: int,
) -> str:
    urgency = "⚠️ *Jetzt fällig!*" if hours_until_due <= 0 else "⏰ *In 1 Stunde fällig*"
    return (
        f"{urgency}\n\n"
        "📋 *Checklisten-Erinnerung*\n\n"
        f"✅ {item_text}\n"
        f"📅 Termin: {type_name or DEFAULT_TYPE_NAME} am {format_date(event_date)}\n"
        f"⏳ Fällig: {format_local(due_local)}"
    )
