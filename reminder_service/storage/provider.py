from typing import Iterable, List, Optional, Protocol

from reminder_service.core.models import (
    Attendee,
    Event,
    EventType,
    RecipientConfig,
    ReminderCategory,
    Tenant,
)


class ReminderStore(Protocol):
    """
    Read-only view of the data store used by the reminder jobs.

    Implementations raise StoreReadError when a dataset cannot be read; an
    empty result is never an error.
    """

    async def fetch_tenants(self) -> List[Tenant]:
        ...

    async def fetch_notifying_event_types(self) -> List[EventType]:
        """Event types with notifications on and a reminder-offset list set."""
        ...

    async def fetch_event_types(self) -> List[EventType]:
        ...

    async def fetch_upcoming_events(self, type_id: str, from_date: str, limit: int) -> List[Event]:
        """Events of one type dated on or after from_date (YYYY-MM-DD)."""
        ...

    async def fetch_checklist_events(self, from_date: str, limit: int) -> List[Event]:
        """Events dated on or after from_date that carry a checklist."""
        ...

    async def fetch_confirmed_attendees(self, event_id: int) -> List[Attendee]:
        """Person attendances for an event whose status has been set."""
        ...

    async def fetch_tenant_user_ids(self, tenant_id: int, roles: Iterable[int]) -> List[str]:
        ...

    async def fetch_recipient_configs(
        self,
        category: ReminderCategory,
        user_ids: Optional[List[str]] = None,
    ) -> List[RecipientConfig]:
        """Enabled subscriptions with the category flag and a chat id set."""
        ...

    async def close(self) -> None:
        ...
