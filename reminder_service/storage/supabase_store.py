import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from reminder_service.core.config import ReminderSettings
from reminder_service.core.errors import StoreReadError
from reminder_service.core.models import (
    Attendee,
    Event,
    EventType,
    RecipientConfig,
    ReminderCategory,
    Tenant,
)

logger = logging.getLogger(__name__)


class SupabaseReminderStore:
    """Supabase (PostgREST) implementation of ReminderStore. Issues reads only."""

    def __init__(self, client: AsyncClient):
        self._client = client

    async def _rows(self, dataset: str, query) -> List[Dict[str, Any]]:
        try:
            response = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise StoreReadError(dataset, e) from e
        return response.data or []

    async def fetch_tenants(self) -> List[Tenant]:
        rows = await self._rows(
            "tenants",
            self._client.table("tenants").select("id, timezone"),
        )
        return [Tenant.model_validate(r) for r in rows]

    async def fetch_notifying_event_types(self) -> List[EventType]:
        rows = await self._rows(
            "attendance_types",
            self._client.table("attendance_types")
            .select("id, name, notification, reminders, tenant_id")
            .eq("notification", True)
            .not_.is_("reminders", "null"),
        )
        return [EventType.model_validate(r) for r in rows]

    async def fetch_event_types(self) -> List[EventType]:
        rows = await self._rows(
            "attendance_types",
            self._client.table("attendance_types").select("id, name, tenant_id"),
        )
        return [EventType.model_validate(r) for r in rows]

    async def fetch_upcoming_events(self, type_id: str, from_date: str, limit: int) -> List[Event]:
        rows = await self._rows(
            f"attendance (type {type_id})",
            self._client.table("attendance")
            .select("id, date, start_time, type_id, tenantId")
            .eq("type_id", type_id)
            .gte("date", from_date)
            .order("date")
            .limit(limit),
        )
        return [Event.model_validate(r) for r in rows]

    async def fetch_checklist_events(self, from_date: str, limit: int) -> List[Event]:
        rows = await self._rows(
            "attendance",
            self._client.table("attendance")
            .select("id, date, start_time, type_id, tenantId, checklist")
            .gte("date", from_date)
            .not_.is_("checklist", "null")
            .order("date")
            .limit(limit),
        )
        return [Event.model_validate(r) for r in rows]

    async def fetch_confirmed_attendees(self, event_id: int) -> List[Attendee]:
        rows = await self._rows(
            f"person_attendances (attendance {event_id})",
            self._client.table("person_attendances")
            .select("id, person_id, status, person:player(firstName, lastName)")
            .eq("attendance_id", event_id)
            .not_.is_("status", "null"),
        )
        attendees = []
        for r in rows:
            person = r.get("person") or {}
            attendees.append(Attendee(
                id=r["id"],
                person_id=r["person_id"],
                status=r.get("status"),
                first_name=person.get("firstName"),
                last_name=person.get("lastName"),
            ))
        return attendees

    async def fetch_tenant_user_ids(self, tenant_id: int, roles: Iterable[int]) -> List[str]:
        rows = await self._rows(
            f"tenantUsers (tenant {tenant_id})",
            self._client.table("tenantUsers")
            .select("userId, tenantId, role")
            .eq("tenantId", tenant_id)
            .in_("role", [int(r) for r in roles]),
        )
        return [str(r["userId"]) for r in rows]

    async def fetch_recipient_configs(
        self,
        category: ReminderCategory,
        user_ids: Optional[List[str]] = None,
    ) -> List[RecipientConfig]:
        query = (
            self._client.table("notifications")
            .select(f"id, enabled, telegram_chat_id, {category.value}, enabled_tenants")
            .eq("enabled", True)
            .eq(category.value, True)
            .not_.is_("telegram_chat_id", "null")
        )
        if user_ids is not None:
            query = query.in_("id", user_ids)
        rows = await self._rows("notifications", query)
        return [RecipientConfig.model_validate(r) for r in rows]

    async def close(self) -> None:
        await self._client.postgrest.aclose()


async def open_store(settings: ReminderSettings) -> SupabaseReminderStore:
    """Open one store connection for the duration of an invocation."""
    client = await acreate_client(settings.supabase_url, settings.supabase_service_key)
    logger.debug("Supabase client created")
    return SupabaseReminderStore(client)
