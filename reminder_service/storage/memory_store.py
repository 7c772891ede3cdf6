from typing import Dict, Iterable, List, Optional

from reminder_service.core.errors import StoreReadError
from reminder_service.core.models import (
    Attendee,
    Event,
    EventType,
    RecipientConfig,
    ReminderCategory,
    Tenant,
)


class InMemoryReminderStore:
    """
    ReminderStore over plain lists, applying the same filters as the Supabase
    queries. Datasets named in fail_on raise StoreReadError when read.
    """

    def __init__(
        self,
        tenants: Optional[List[Tenant]] = None,
        event_types: Optional[List[EventType]] = None,
        events: Optional[List[Event]] = None,
        attendees: Optional[Dict[int, List[Attendee]]] = None,
        tenant_users: Optional[List[dict]] = None,
        recipient_configs: Optional[List[RecipientConfig]] = None,
        fail_on: Iterable[str] = (),
    ):
        self.tenants = tenants or []
        self.event_types = event_types or []
        self.events = events or []
        self.attendees = attendees or {}
        self.tenant_users = tenant_users or []
        self.recipient_configs = recipient_configs or []
        self.fail_on = set(fail_on)
        self.reads: List[str] = []
        self.closed = False

    def _read(self, dataset: str) -> None:
        self.reads.append(dataset)
        if dataset in self.fail_on:
            raise StoreReadError(dataset, RuntimeError("simulated read failure"))

    async def fetch_tenants(self) -> List[Tenant]:
        self._read("tenants")
        return list(self.tenants)

    async def fetch_notifying_event_types(self) -> List[EventType]:
        self._read("attendance_types")
        return [t for t in self.event_types if t.notification and t.reminders]

    async def fetch_event_types(self) -> List[EventType]:
        self._read("attendance_types")
        return list(self.event_types)

    async def fetch_upcoming_events(self, type_id: str, from_date: str, limit: int) -> List[Event]:
        self._read("attendance")
        matches = sorted(
            (e for e in self.events if e.type_id == type_id and e.date[:10] >= from_date),
            key=lambda e: e.date[:10],
        )
        return matches[:limit]

    async def fetch_checklist_events(self, from_date: str, limit: int) -> List[Event]:
        self._read("attendance")
        matches = sorted(
            (e for e in self.events if e.checklist and e.date[:10] >= from_date),
            key=lambda e: e.date[:10],
        )
        return matches[:limit]

    async def fetch_confirmed_attendees(self, event_id: int) -> List[Attendee]:
        self._read("person_attendances")
        return [a for a in self.attendees.get(event_id, []) if a.status is not None]

    async def fetch_tenant_user_ids(self, tenant_id: int, roles: Iterable[int]) -> List[str]:
        self._read("tenantUsers")
        wanted = {int(r) for r in roles}
        return [
            str(u["userId"]) for u in self.tenant_users
            if u["tenantId"] == tenant_id and u["role"] in wanted
        ]

    async def fetch_recipient_configs(
        self,
        category: ReminderCategory,
        user_ids: Optional[List[str]] = None,
    ) -> List[RecipientConfig]:
        self._read("notifications")
        configs = [
            c for c in self.recipient_configs
            if c.enabled and c.wants(category) and c.telegram_chat_id is not None
        ]
        if user_ids is not None:
            configs = [c for c in configs if c.id in user_ids]
        return configs

    async def close(self) -> None:
        self.closed = True

    @classmethod
    def from_dict(cls, data: dict) -> "InMemoryReminderStore":
        """Build a store from a JSON-shaped dict using the store's column names."""
        attendees: Dict[int, List[Attendee]] = {}
        for row in data.get("person_attendances", []):
            attendees.setdefault(row["attendance_id"], []).append(Attendee.model_validate(row))
        return cls(
            tenants=[Tenant.model_validate(r) for r in data.get("tenants", [])],
            event_types=[EventType.model_validate(r) for r in data.get("attendance_types", [])],
            events=[Event.model_validate(r) for r in data.get("attendance", [])],
            attendees=attendees,
            tenant_users=data.get("tenantUsers", []),
            recipient_configs=[RecipientConfig.model_validate(r) for r in data.get("notifications", [])],
        )
