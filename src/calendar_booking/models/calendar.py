"""Calendar, tenant and grant models."""

from enum import Enum
from typing import Optional

import pytz
from pydantic import BaseModel, field_validator

from .policy import PolicyOverride


class Calendar(BaseModel):
    """A bookable calendar backed by an external provider calendar."""

    id: str
    external_calendar_id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    is_public: bool = False
    show_details: bool = False
    time_zone: str = "UTC"

    model_config = {"frozen": True}

    @field_validator("time_zone")
    @classmethod
    def known_time_zone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown time zone: {value}")
        return value


class Tenant(BaseModel):
    """Buyer-side scope that may hold grants on calendars."""

    id: str
    owner_id: str
    name: str = ""
    external_calendar_id: Optional[str] = None

    model_config = {"frozen": True}


class GrantRole(str, Enum):
    """Role a tenant holds on a calendar."""

    OWNER = "owner"
    ADMIN = "admin"
    VIEWER = "viewer"


class TenantCalendarGrant(BaseModel):
    """Relationship record authorizing a tenant on a calendar."""

    tenant_id: str
    calendar_id: str
    role: GrantRole = GrantRole.VIEWER
    can_book: bool = False
    is_active: bool = True
    custom_policy: Optional[PolicyOverride] = None

    model_config = {"frozen": True}

    @property
    def key(self) -> tuple[str, str]:
        return (self.tenant_id, self.calendar_id)


class ProviderCalendar(BaseModel):
    """Calendar metadata as listed by the provider for a connected owner."""

    id: str
    name: str
    owner_email: Optional[str] = None
    is_default: bool = False
    can_edit: bool = False
    color: Optional[str] = None

    model_config = {"frozen": True}


class CalendarView(BaseModel):
    """Calendar as presented to a buyer."""

    id: str
    name: str
    description: Optional[str] = None
    is_public: bool
    show_details: bool
    time_zone: str
    # only set when the buyer holds a grant
    tenant_settings: Optional[PolicyOverride] = None
    can_book: Optional[bool] = None
