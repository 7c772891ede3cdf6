"""
Time-window evaluation for hourly reminder runs.

Both reminder kinds compare "now" and a target instant as civil local time in
the tenant's zone, at minute precision. Seconds are dropped on purpose: a
reminder is judged against the clock a person in that zone would read, so
16:59:59 and 16:59:00 are the same minute.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from reminder_service.core.config import DEFAULT_TIMEZONE
from reminder_service.core.models import Event

logger = logging.getLogger(__name__)

# Hours-until-due values at which a checklist item fires
CHECKLIST_FIRING_WINDOW = (0, 1)


@dataclass(frozen=True, order=True)
class LocalTime:
    """Wall-clock time in some zone, truncated to the minute."""

    year: int
    month: int
    day: int
    hour: int
    minute: int

    def to_naive(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.hour:02d}:{self.minute:02d}"


def resolve_zone(tz_name: Optional[str], default: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    """Return the zone for tz_name, falling back to default when unknown or unset."""
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {tz_name!r}, using {default}")
    return ZoneInfo(default)


def project_to_zone(instant: datetime, tz_name: Optional[str]) -> LocalTime:
    """
    Project an instant to civil local time in a zone.

    Naive instants are taken to be UTC. The result keeps only
    year/month/day/hour/minute.

    Args:
        instant: The moment to project
        tz_name: IANA zone name; unknown or empty names use the default zone

    Returns:
        LocalTime as displayed on a clock in that zone
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(resolve_zone(tz_name))
    return LocalTime(local.year, local.month, local.day, local.hour, local.minute)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as stored by the app ("Z" suffix allowed)."""
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00").replace(" ", "T", 1))


def is_full_timestamp(value: Optional[str]) -> bool:
    """True for stored timestamps, false for a bare "HH:MM" time of day."""
    return bool(value) and ("T" in value or "-" in value)


def parse_hhmm(value: Optional[str]) -> tuple:
    if not value or ":" not in value:
        return 0, 0
    hour, minute = value.strip().split(":")[:2]
    return int(hour), int(minute[:2])


def event_start_local(event: Event, tz_name: Optional[str]) -> LocalTime:
    """
    Civil local start of an event in its tenant's zone.

    A start_time holding a full timestamp is projected into the zone. A bare
    "HH:MM" is already local and is combined with the event's calendar date.
    """
    start = event.start_time
    if is_full_timestamp(start):
        return project_to_zone(parse_timestamp(start), tz_name)

    day = date.fromisoformat(event.date[:10])
    hour, minute = parse_hhmm(start)
    return LocalTime(day.year, day.month, day.day, hour, minute)


def minutes_between(start: LocalTime, end: LocalTime) -> float:
    return (end.to_naive() - start.to_naive()).total_seconds() / 60


def hours_until_start(now_local: LocalTime, start_local: LocalTime) -> int:
    """Whole hours until start, rounded up. Zero or negative once started."""
    return math.ceil(minutes_between(now_local, start_local) / 60)


def matching_reminder(hours: int, offsets: Iterable[int]) -> Optional[int]:
    """Return the configured offset equal to hours, if any."""
    for offset in offsets:
        if offset == hours:
            return offset
    return None


def evaluate_event_reminder(now_local: LocalTime, start_local: LocalTime, offsets: Iterable[int]) -> Optional[int]:
    """
    Decide whether an event reminder fires on this run.

    Returns:
        The matched offset in hours, or None when the event has started or
        no offset equals the ceiling-rounded hours until start
    """
    if minutes_between(now_local, start_local) <= 0:
        return None
    return matching_reminder(hours_until_start(now_local, start_local), offsets)


def hours_until_due(now_local: LocalTime, due_local: LocalTime) -> int:
    """
    Hours until a checklist item is due.

    Positive remainders round up to the next whole hour. At or after the due
    minute the floored (zero or negative) hour count is returned.
    """
    diff_minutes = minutes_between(now_local, due_local)
    if diff_minutes <= 0:
        return math.floor(diff_minutes / 60)
    return math.ceil(diff_minutes / 60)


def is_checklist_due(hours: int) -> bool:
    return hours in CHECKLIST_FIRING_WINDOW
