"""Abstract base class for booking repositories."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.calendar import Calendar, Tenant, TenantCalendarGrant
from ..models.policy import CalendarSettings


class BookingRepository(ABC):
    """Storage for calendars, tenants, grants and calendar settings."""

    @abstractmethod
    def add_calendar(self, calendar: Calendar) -> Calendar:
        """
        Register a connected calendar.

        Raises:
            ConfigurationError: If the id or external calendar id is taken
        """

    @abstractmethod
    def get_calendar(self, calendar_id: str) -> Optional[Calendar]:
        """Get a calendar by id, or None."""

    @abstractmethod
    def get_calendar_by_external_id(self, external_calendar_id: str) -> Optional[Calendar]:
        """Get a calendar by provider-side id, or None."""

    @abstractmethod
    def list_calendars(self, owner_id: Optional[str] = None) -> list[Calendar]:
        """List calendars, optionally only those of one owner."""

    @abstractmethod
    def remove_calendar(self, calendar_id: str) -> None:
        """
        Remove a calendar whose owner disconnected it.

        Grants and settings of the calendar are removed with it.

        Raises:
            NotFoundError: If the calendar does not exist
        """

    @abstractmethod
    def add_tenant(self, tenant: Tenant) -> Tenant:
        """
        Register a tenant.

        Raises:
            ConfigurationError: If the id is taken
        """

    @abstractmethod
    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """Get a tenant by id, or None."""

    @abstractmethod
    def save_grant(self, grant: TenantCalendarGrant) -> TenantCalendarGrant:
        """
        Create or replace the grant of a tenant on a calendar.

        Raises:
            NotFoundError: If the tenant or calendar does not exist
        """

    @abstractmethod
    def get_grant(self, tenant_id: str, calendar_id: str) -> Optional[TenantCalendarGrant]:
        """Get a grant whatever its active flag, or None."""

    @abstractmethod
    def deactivate_grant(self, tenant_id: str, calendar_id: str) -> TenantCalendarGrant:
        """
        Soft-delete a grant.

        Raises:
            NotFoundError: If no grant exists
        """

    @abstractmethod
    def list_grants(self, tenant_id: str, active_only: bool = True) -> list[TenantCalendarGrant]:
        """List the grants of a tenant."""

    @abstractmethod
    def save_calendar_settings(self, calendar_id: str, settings: CalendarSettings) -> None:
        """Store the global settings of a calendar."""

    @abstractmethod
    def get_calendar_settings(self, calendar_id: str) -> Optional[CalendarSettings]:
        """Get the global settings of a calendar, or None."""

    @abstractmethod
    def save_tenant_settings(self, tenant_id: str, settings: CalendarSettings) -> None:
        """Store the settings of a tenant's own calendar."""

    @abstractmethod
    def get_tenant_settings(self, tenant_id: str) -> Optional[CalendarSettings]:
        """Get the settings of a tenant's own calendar, or None."""

    def get_active_grant(
        self, tenant_id: Optional[str], calendar_id: str
    ) -> Optional[TenantCalendarGrant]:
        """Get a grant only if it is active; inactive grants count as absent."""
        if not tenant_id:
            return None
        grant = self.get_grant(tenant_id, calendar_id)
        if grant is None or not grant.is_active:
            return None
        return grant
