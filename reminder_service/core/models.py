from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(IntEnum):
    ADMIN = 1
    PLAYER = 2
    VIEWER = 3
    HELPER = 4
    RESPONSIBLE = 5
    PARENT = 6
    APPLICANT = 7
    VOICE_LEADER = 8
    VOICE_LEADER_HELPER = 9
    NONE = 99


# Roles whose members receive attendance reminders for their tenant
REMINDER_ROLES = [Role.ADMIN, Role.RESPONSIBLE]


class ReminderCategory(str, Enum):
    REMINDERS = "reminders"
    CHECKLIST = "checklist"


class _Row(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Tenant(_Row):
    id: int
    timezone: Optional[str] = None


class EventType(_Row):
    id: str
    name: str = ""
    tenant_id: Optional[int] = None
    notification: bool = False
    reminders: List[int] = []

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v)

    @field_validator("reminders", mode="before")
    @classmethod
    def _reminders_default(cls, v):
        return v or []


class ChecklistItem(_Row):
    id: str
    text: str = ""
    deadline_hours: Optional[int] = Field(default=None, alias="deadlineHours")
    completed: bool = False
    due_date: Optional[str] = Field(default=None, alias="dueDate")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v)

    @field_validator("completed", mode="before")
    @classmethod
    def _completed_default(cls, v):
        return bool(v)


class Event(_Row):
    id: int
    date: str  # YYYY-MM-DD, possibly with a time suffix
    start_time: Optional[str] = None  # "HH:MM" or a full timestamp
    type_id: Optional[str] = None
    tenant_id: Optional[int] = Field(default=None, alias="tenantId")
    checklist: List[ChecklistItem] = []

    @field_validator("type_id", mode="before")
    @classmethod
    def _type_id_as_str(cls, v):
        return str(v) if v is not None else None

    @field_validator("checklist", mode="before")
    @classmethod
    def _checklist_default(cls, v):
        return v or []


class Attendee(_Row):
    id: str
    person_id: int
    status: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v)


class RecipientConfig(_Row):
    id: str
    enabled: bool = False
    telegram_chat_id: Optional[str] = None
    reminders: bool = False
    checklist: bool = False
    enabled_tenants: List[int] = []

    @field_validator("telegram_chat_id", mode="before")
    @classmethod
    def _chat_id_as_str(cls, v):
        return str(v) if v is not None else None

    @field_validator("reminders", "checklist", mode="before")
    @classmethod
    def _flag_default(cls, v):
        return bool(v)

    @field_validator("enabled_tenants", mode="before")
    @classmethod
    def _tenants_default(cls, v):
        return v or []

    def wants(self, category: ReminderCategory) -> bool:
        return bool(getattr(self, category.value))


class InvocationResult(BaseModel):
    success: bool = True
    processed: int = 0
    timestamp: datetime
