"""In-memory booking repository."""

import logging
from typing import Optional

from ..models.calendar import Calendar, Tenant, TenantCalendarGrant
from ..models.policy import CalendarSettings
from ..utils.exceptions import ConfigurationError, NotFoundError
from .base import BookingRepository

logger = logging.getLogger(__name__)


class InMemoryBookingRepository(BookingRepository):
    """
    Booking repository held in process memory.

    Built once at process start (usually from a booking directory file) and
    handed to the services that need it.
    """

    def __init__(self):
        self._calendars: dict[str, Calendar] = {}
        self._external_ids: dict[str, str] = {}
        self._tenants: dict[str, Tenant] = {}
        self._grants: dict[tuple[str, str], TenantCalendarGrant] = {}
        self._calendar_settings: dict[str, CalendarSettings] = {}
        self._tenant_settings: dict[str, CalendarSettings] = {}

    def add_calendar(self, calendar: Calendar) -> Calendar:
        if calendar.id in self._calendars:
            raise ConfigurationError(f"Duplicate calendar id: {calendar.id}")
        if calendar.external_calendar_id in self._external_ids:
            raise ConfigurationError(
                f"External calendar {calendar.external_calendar_id} is already connected"
            )
        self._calendars[calendar.id] = calendar
        self._external_ids[calendar.external_calendar_id] = calendar.id
        logger.debug(f"Added calendar {calendar.id}")
        return calendar

    def get_calendar(self, calendar_id: str) -> Optional[Calendar]:
        return self._calendars.get(calendar_id)

    def get_calendar_by_external_id(self, external_calendar_id: str) -> Optional[Calendar]:
        calendar_id = self._external_ids.get(external_calendar_id)
        return self._calendars.get(calendar_id) if calendar_id else None

    def list_calendars(self, owner_id: Optional[str] = None) -> list[Calendar]:
        return [
            c for c in self._calendars.values() if owner_id is None or c.owner_id == owner_id
        ]

    def remove_calendar(self, calendar_id: str) -> None:
        calendar = self._calendars.pop(calendar_id, None)
        if calendar is None:
            raise NotFoundError(f"Calendar not found: {calendar_id}")
        del self._external_ids[calendar.external_calendar_id]
        self._calendar_settings.pop(calendar_id, None)
        for key in [k for k in self._grants if k[1] == calendar_id]:
            del self._grants[key]
        logger.info(f"Removed calendar {calendar_id}")

    def add_tenant(self, tenant: Tenant) -> Tenant:
        if tenant.id in self._tenants:
            raise ConfigurationError(f"Duplicate tenant id: {tenant.id}")
        self._tenants[tenant.id] = tenant
        return tenant

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return self._tenants.get(tenant_id)

    def save_grant(self, grant: TenantCalendarGrant) -> TenantCalendarGrant:
        if grant.tenant_id not in self._tenants:
            raise NotFoundError(f"Tenant not found: {grant.tenant_id}")
        if grant.calendar_id not in self._calendars:
            raise NotFoundError(f"Calendar not found: {grant.calendar_id}")
        # one grant per (tenant, calendar); saving again replaces it
        self._grants[grant.key] = grant
        return grant

    def get_grant(self, tenant_id: str, calendar_id: str) -> Optional[TenantCalendarGrant]:
        return self._grants.get((tenant_id, calendar_id))

    def deactivate_grant(self, tenant_id: str, calendar_id: str) -> TenantCalendarGrant:
        grant = self._grants.get((tenant_id, calendar_id))
        if grant is None:
            raise NotFoundError(f"No grant for tenant {tenant_id} on calendar {calendar_id}")
        grant = grant.model_copy(update={"is_active": False})
        self._grants[grant.key] = grant
        logger.info(f"Deactivated grant of tenant {tenant_id} on calendar {calendar_id}")
        return grant

    def list_grants(self, tenant_id: str, active_only: bool = True) -> list[TenantCalendarGrant]:
        return [
            g
            for g in self._grants.values()
            if g.tenant_id == tenant_id and (g.is_active or not active_only)
        ]

    def save_calendar_settings(self, calendar_id: str, settings: CalendarSettings) -> None:
        if calendar_id not in self._calendars:
            raise NotFoundError(f"Calendar not found: {calendar_id}")
        self._calendar_settings[calendar_id] = settings

    def get_calendar_settings(self, calendar_id: str) -> Optional[CalendarSettings]:
        return self._calendar_settings.get(calendar_id)

    def save_tenant_settings(self, tenant_id: str, settings: CalendarSettings) -> None:
        if tenant_id not in self._tenants:
            raise NotFoundError(f"Tenant not found: {tenant_id}")
        self._tenant_settings[tenant_id] = settings

    def get_tenant_settings(self, tenant_id: str) -> Optional[CalendarSettings]:
        return self._tenant_settings.get(tenant_id)
