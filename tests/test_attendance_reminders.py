"""
End-to-end attendance reminder runs against the in-memory store.

The fixed clock is 2025-03-01 15:00 UTC, i.e. 16:00 in Berlin.
"""

from datetime import datetime, timedelta, timezone

import pytest

from reminder_service.core.errors import StoreReadError
from reminder_service.core.models import (
    Attendee,
    Event,
    EventType,
    RecipientConfig,
    Tenant,
)
from reminder_service.reminders.attendance import earliest_event_date, run_attendance_reminders
from reminder_service.storage.memory_store import InMemoryReminderStore

from fakes import FakeTelegramClient


def _recipient(user_id, chat_id, **overrides):
    data = {
        "id": user_id,
        "enabled": True,
        "telegram_chat_id": chat_id,
        "reminders": True,
        "checklist": False,
        "enabled_tenants": [],
    }
    data.update(overrides)
    return RecipientConfig.model_validate(data)


def _store(event_start="18:00", reminders=(24, 2), **overrides):
    data = dict(
        tenants=[Tenant(id=1, timezone="Europe/Berlin"), Tenant(id=2, timezone=None)],
        event_types=[
            EventType(id="rehearsal", name="Probe", tenant_id=1, notification=True, reminders=list(reminders)),
        ],
        events=[
            Event.model_validate({
                "id": 10, "date": "2025-03-01", "start_time": event_start,
                "type_id": "rehearsal", "tenantId": 1,
            }),
        ],
        attendees={
            10: [
                Attendee(id="pa-1", person_id=100, status=1),
                Attendee(id="pa-2", person_id=101, status=None),
            ],
        },
        tenant_users=[
            {"userId": "admin", "tenantId": 1, "role": 1},
            {"userId": "responsible", "tenantId": 1, "role": 5},
            {"userId": "player", "tenantId": 1, "role": 2},
            {"userId": "other-admin", "tenantId": 2, "role": 1},
            {"userId": "muted", "tenantId": 1, "role": 1},
            {"userId": "elsewhere", "tenantId": 1, "role": 5},
        ],
        recipient_configs=[
            _recipient("admin", "1001"),
            _recipient("responsible", "1002"),
            _recipient("player", "1003"),
            _recipient("other-admin", "1004"),
            _recipient("muted", "1005", reminders=False),
            _recipient("elsewhere", "1006", enabled_tenants=[2]),
        ],
    )
    data.update(overrides)
    return InMemoryReminderStore(**data)


@pytest.mark.asyncio
async def test_event_two_hours_out_reminds_eligible_admins(settings, now):
    store = _store(event_start="18:00")
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.success is True
    assert result.processed == 2
    assert [chat for chat, _ in telegram.messages] == ["1001", "1002"]
    text = telegram.messages[0][1]
    assert "in 2 Stunden" in text
    assert "Probe" in text
    assert "01.03.2025" in text


@pytest.mark.asyncio
async def test_partial_hour_rounds_up_into_offset(settings, now):
    store = _store(event_start="17:30")
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 2


@pytest.mark.asyncio
async def test_hour_not_in_offsets_sends_nothing(settings, now):
    store = _store(event_start="19:00")
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 0
    assert telegram.messages == []
    assert "person_attendances" not in store.reads


@pytest.mark.asyncio
async def test_day_ahead_offset(settings, now):
    store = _store()
    store.events[0] = Event.model_validate({
        "id": 10, "date": "2025-03-02", "start_time": "16:00", "type_id": "rehearsal", "tenantId": 1,
    })
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 2
    assert "in 1 Tag(en)" in telegram.messages[0][1]


@pytest.mark.asyncio
async def test_same_event_one_hour_later_does_not_refire(settings, now):
    store = _store(event_start="18:00", reminders=(2,))
    telegram = FakeTelegramClient()

    first = await run_attendance_reminders(settings, store, telegram, now=now)
    second = await run_attendance_reminders(settings, store, telegram, now=now + timedelta(hours=1))

    assert first.processed == 2
    assert second.processed == 0


@pytest.mark.asyncio
async def test_no_notifying_types_short_circuits(settings, now):
    store = _store(event_types=[
        EventType(id="rehearsal", name="Probe", tenant_id=1, notification=False, reminders=[2]),
        EventType(id="gig", name="Auftritt", tenant_id=1, notification=True, reminders=[]),
    ])
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.success is True
    assert result.processed == 0
    assert telegram.messages == []
    assert store.reads == ["tenants", "attendance_types"]


@pytest.mark.asyncio
async def test_rejected_delivery_is_not_counted(settings, now):
    store = _store()
    telegram = FakeTelegramClient(reject=["1002"])

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.success is True
    assert result.processed == 1
    assert len(telegram.messages) == 2


@pytest.mark.asyncio
async def test_no_confirmed_attendees_skips_event(settings, now):
    store = _store(attendees={10: [Attendee(id="pa-2", person_id=101, status=None)]})
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 0
    assert "tenantUsers" not in store.reads


@pytest.mark.asyncio
async def test_no_tenant_admins_skips_event(settings, now):
    store = _store(tenant_users=[{"userId": "player", "tenantId": 1, "role": 2}])
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 0
    assert "notifications" not in store.reads


@pytest.mark.asyncio
async def test_tenant_read_failure_aborts(settings, now):
    store = _store(fail_on=["tenants"])

    with pytest.raises(StoreReadError):
        await run_attendance_reminders(settings, store, FakeTelegramClient(), now=now)


@pytest.mark.asyncio
async def test_secondary_read_failure_skips_candidate(settings, now):
    store = _store(fail_on=["person_attendances"])
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.success is True
    assert result.processed == 0


@pytest.mark.asyncio
async def test_tenant_without_zone_uses_default(settings, now):
    store = _store()
    store.event_types[0] = EventType(id="rehearsal", name="Probe", tenant_id=2, notification=True, reminders=[2])
    store.events[0] = Event.model_validate({
        "id": 10, "date": "2025-03-01", "start_time": "18:00", "type_id": "rehearsal", "tenantId": 2,
    })
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    # Europe/Berlin default: 16:00 local, start 18:00 -> 2h; only tenant 2 admin qualifies
    assert result.processed == 1
    assert [chat for chat, _ in telegram.messages] == ["1004"]


def test_earliest_event_date_has_a_day_of_slack(now):
    assert earliest_event_date(now) == "2025-02-28"


def _new_york_store(event_date, event_start, reminders=(2,)):
    return _store(
        tenants=[Tenant(id=1, timezone="Europe/Berlin"), Tenant(id=3, timezone="America/New_York")],
        event_types=[
            EventType(id="gig", name="Auftritt", tenant_id=3, notification=True, reminders=list(reminders)),
        ],
        events=[
            Event.model_validate({
                "id": 10, "date": event_date, "start_time": event_start, "type_id": "gig", "tenantId": 3,
            }),
        ],
        tenant_users=[{"userId": "admin", "tenantId": 3, "role": 1}],
    )


@pytest.mark.asyncio
async def test_bare_start_time_uses_tenant_clock(settings, now):
    # 15:00 UTC is 10:00 in New York; a 12:00 start is two hours away there
    store = _new_york_store("2025-03-01", "12:00")
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 1
    assert telegram.messages[0][0] == "1001"
    assert "in 2 Stunden" in telegram.messages[0][1]
    assert "🕐 12:00" in telegram.messages[0][1]


@pytest.mark.asyncio
async def test_tenant_clock_not_default_zone(settings, now):
    # 18:00 is two hours away in Berlin but eight in New York
    store = _new_york_store("2025-03-01", "18:00")
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(settings, store, telegram, now=now)

    assert result.processed == 0


@pytest.mark.asyncio
async def test_tenant_clock_after_dst_switch(settings):
    # New York moved to EDT (UTC-4) at 02:00 on 2025-03-09: 14:00 UTC is 10:00 local
    store = _new_york_store("2025-03-09", "12:00")
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(
        settings, store, telegram, now=datetime(2025, 3, 9, 14, 0, tzinfo=timezone.utc)
    )

    assert result.processed == 1


@pytest.mark.asyncio
async def test_page_cap_keeps_nearest_events(settings, now):
    store = _store()
    store.events.insert(0, Event.model_validate({
        "id": 11, "date": "2025-06-01", "start_time": "18:00", "type_id": "rehearsal", "tenantId": 1,
    }))
    telegram = FakeTelegramClient()

    result = await run_attendance_reminders(
        settings.model_copy(update={"attendance_page_size": 1}), store, telegram, now=now
    )

    assert result.processed == 2
