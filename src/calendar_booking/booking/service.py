"""Calendar read, availability and booking service."""

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional, Union

from ..auth.base import CredentialProvider, OwnerCredential
from ..config import AppConfig
from ..models.calendar import Calendar, CalendarView
from ..models.event import AvailabilitySlot, CalendarEvent, CreatedEvent, RedactedEvent
from ..providers.base import CalendarProvider
from ..repository.base import BookingRepository
from ..utils.date_utils import (
    day_window,
    ensure_utc,
    local_date,
    parse_date,
    parse_iso_datetime,
    utc_now,
)
from ..utils.exceptions import (
    BookingNotAllowedError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    OwnerNotConnectedError,
)
from .access import BOOKING_NOT_ALLOWED, AccessOperation, resolve_access
from .policy import effective_policy, working_hours_for
from .slots import apply_buffer, compute_available_slots, within_advance_window

logger = logging.getLogger(__name__)

ExposedEvent = Union[CalendarEvent, RedactedEvent]


def _parse_day(value: Union[str, date, datetime, None]) -> Union[date, datetime]:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError("Date parameter is required")
    if isinstance(value, (date, datetime)):
        return value
    try:
        return parse_date(value)
    except ValueError as e:
        raise InvalidInputError(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


def _parse_instant(name: str, value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return parse_iso_datetime(value)
    except ValueError as e:
        raise InvalidInputError(f"Invalid {name} {value!r}, expected an ISO timestamp") from e


class CalendarService:
    """
    Entry point for buyers: calendar details, events, availability, bookings.

    Every call is self-contained; the service keeps no state between calls
    beyond its injected collaborators.

    No lock or idempotency key guards bookings: two concurrent bookings of
    the same slot can both succeed at the provider, and a retried booking
    creates a second event.
    """

    def __init__(
        self,
        repository: BookingRepository,
        provider: CalendarProvider,
        credentials: CredentialProvider,
        config: Optional[AppConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize calendar service.

        Args:
            repository: Calendars, tenants, grants and settings
            provider: External calendar service
            credentials: Owner credential source
            config: Application configuration (defaults from environment)
            clock: Current time source
        """
        self.repository = repository
        self.provider = provider
        self.credentials = credentials
        self.config = config or AppConfig()
        self.clock = clock

    def _get_calendar(self, calendar_id: Optional[str]) -> Calendar:
        if not calendar_id:
            raise InvalidInputError("Calendar id is required")
        calendar = self.repository.get_calendar(calendar_id)
        if calendar is None:
            raise NotFoundError("Calendar not found")
        return calendar

    def _owner_credential(self, owner_id: str) -> OwnerCredential:
        credential = self.credentials.get_credential(owner_id)
        if credential is None:
            raise OwnerNotConnectedError("Calendar owner not connected")
        return credential

    def get_calendar_for_buyer(
        self, calendar_id: str, tenant_id: Optional[str] = None
    ) -> CalendarView:
        """
        Get calendar details for a buyer.

        A buyer holding a grant sees the grant's display name, custom policy
        and booking permission.

        Raises:
            NotFoundError: If the calendar does not exist
            ForbiddenError: If the buyer may not read the calendar
        """
        calendar = self._get_calendar(calendar_id)
        grant = self.repository.get_active_grant(tenant_id, calendar.id)
        resolve_access(calendar, tenant_id, AccessOperation.READ, grant).raise_for_denial()

        view = CalendarView(
            id=calendar.id,
            name=calendar.name,
            description=calendar.description,
            is_public=calendar.is_public,
            show_details=calendar.show_details,
            time_zone=calendar.time_zone,
        )
        if grant is None:
            return view

        custom = grant.custom_policy
        return view.model_copy(
            update={
                "name": (custom.display_name if custom else None) or calendar.name,
                "tenant_settings": custom,
                "can_book": grant.can_book,
            }
        )

    def get_calendar_events(
        self,
        calendar_id: str,
        tenant_id: Optional[str] = None,
        time_min: Union[str, datetime, None] = None,
        time_max: Union[str, datetime, None] = None,
        max_results: Optional[int] = None,
    ) -> list[ExposedEvent]:
        """
        List calendar events, redacted when the calendar hides details.

        Args:
            calendar_id: Calendar id
            tenant_id: Requesting tenant
            time_min: Window start (defaults to now)
            time_max: Window end (open-ended if omitted)
            max_results: Maximum number of events

        Returns:
            CalendarEvent objects, or RedactedEvent objects carrying only
            id, start, end and status when show_details is off

        Raises:
            InvalidInputError: If the window or limit is invalid
            NotFoundError: If the calendar does not exist
            ForbiddenError: If the buyer may not read the calendar
            OwnerNotConnectedError: If the owner has no credential
            ProviderError: If the provider call fails
        """
        start = _parse_instant("timeMin", time_min) or self.clock()
        end = _parse_instant("timeMax", time_max)
        if end is not None and end <= start:
            raise InvalidInputError("timeMax must be after timeMin")
        limit = self.config.events_max_results if max_results is None else max_results
        if limit <= 0:
            raise InvalidInputError("maxResults must be positive")

        calendar = self._get_calendar(calendar_id)
        grant = self.repository.get_active_grant(tenant_id, calendar.id)
        decision = resolve_access(calendar, tenant_id, AccessOperation.READ, grant)
        decision.raise_for_denial()

        credential = self._owner_credential(calendar.owner_id)
        events = self.provider.list_events(
            calendar.external_calendar_id, start, end, limit, credential
        )
        events.sort(key=lambda e: e.start)

        if decision.redacted:
            return [event.redact() for event in events]
        return events

    def get_calendar_availability(
        self,
        calendar_id: str,
        day: Union[str, date, datetime, None],
        tenant_id: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> list[AvailabilitySlot]:
        """
        Compute the bookable slots of a calendar on one day.

        Args:
            calendar_id: Calendar id
            day: Date as YYYY-MM-DD, a date, or a datetime read in the
                calendar's time zone
            tenant_id: Requesting tenant; its grant policy applies
            duration: Slot length in minutes (defaults to the policy's)

        Returns:
            Free slots in ascending order; empty on a closed day

        Raises:
            InvalidInputError: If the date is missing or malformed
            NotFoundError: If the calendar does not exist
            ForbiddenError: If the buyer may not read the calendar
            OwnerNotConnectedError: If the owner has no credential
            ProviderError: If the provider call fails
        """
        requested = _parse_day(day)
        if duration is not None and duration <= 0:
            raise InvalidInputError("Duration must be positive")

        calendar = self._get_calendar(calendar_id)
        grant = self.repository.get_active_grant(tenant_id, calendar.id)
        resolve_access(calendar, tenant_id, AccessOperation.READ, grant).raise_for_denial()

        policy = effective_policy(self.repository.get_calendar_settings(calendar.id), grant)
        hours = working_hours_for(policy, requested, calendar.time_zone)
        if not hours.enabled:
            logger.info(f"Calendar {calendar.id} closed on {requested}")
            return []

        local_day = local_date(requested, calendar.time_zone)
        window_start, window_end = day_window(
            local_day, hours.start, hours.end, calendar.time_zone
        )
        if window_end <= window_start:
            return []

        credential = self._owner_credential(calendar.owner_id)
        busy = self.provider.list_busy_intervals(
            calendar.external_calendar_id, window_start, window_end, credential
        )
        if self.config.apply_buffer_time:
            busy = apply_buffer(busy, policy.buffer_time)

        slot_duration = duration or policy.booking_slot_duration
        slots = compute_available_slots(window_start, window_end, busy, slot_duration)

        if self.config.enforce_advance_booking:
            slots = within_advance_window(
                slots,
                self.clock(),
                policy.min_advance_booking,
                policy.max_advance_booking,
            )

        logger.info(
            f"{len(slots)} slots of {slot_duration} min on {local_day} for calendar {calendar.id}"
        )
        return slots

    def create_booking(
        self,
        calendar_id: str,
        tenant_id: Optional[str],
        proposed_event: Optional[dict[str, Any]],
    ) -> CreatedEvent:
        """
        Book a calendar by creating an event at the provider.

        The payload is passed to the provider unchanged. Exactly one provider
        write happens per accepted call.

        Raises:
            InvalidInputError: If the payload is missing
            NotFoundError: If the calendar does not exist
            ForbiddenError: If the tenant has no grant
            BookingNotAllowedError: If the grant or the policy forbids booking
            OwnerNotConnectedError: If the owner has no credential
            ProviderError: If the provider call fails
        """
        if not proposed_event or not isinstance(proposed_event, dict):
            raise InvalidInputError("Event payload is required")

        calendar = self._get_calendar(calendar_id)
        grant = self.repository.get_active_grant(tenant_id, calendar.id)
        resolve_access(calendar, tenant_id, AccessOperation.BOOK, grant).raise_for_denial()

        policy = effective_policy(self.repository.get_calendar_settings(calendar.id), grant)
        if not policy.booking_enabled:
            logger.info(f"Booking disabled on calendar {calendar.id}")
            raise BookingNotAllowedError(BOOKING_NOT_ALLOWED)

        credential = self._owner_credential(calendar.owner_id)
        created = self.provider.create_event(
            calendar.external_calendar_id, proposed_event, credential
        )
        logger.info(f"Tenant {tenant_id} booked event {created.id} on calendar {calendar.id}")
        return created

    def get_tenant_calendar_for_buyer(
        self, tenant_id: str, max_results: Optional[int] = None
    ) -> list[ExposedEvent]:
        """
        List upcoming events of a tenant's own calendar.

        Only calendars the tenant published are readable; details are
        redacted unless the tenant's settings show them.

        Raises:
            NotFoundError: If the tenant does not exist
            ForbiddenError: If the tenant's calendar is not published
            OwnerNotConnectedError: If the tenant owner has no credential
            ProviderError: If the provider call fails
        """
        limit = self.config.events_max_results if max_results is None else max_results
        if limit <= 0:
            raise InvalidInputError("maxResults must be positive")
        if not tenant_id:
            raise InvalidInputError("Tenant id is required")

        tenant = self.repository.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        settings = self.repository.get_tenant_settings(tenant_id)
        if not tenant.external_calendar_id or settings is None or not settings.is_public:
            raise ForbiddenError("Calendar not available")

        credential = self._owner_credential(tenant.owner_id)
        events = self.provider.list_events(
            tenant.external_calendar_id, self.clock(), None, limit, credential
        )
        events.sort(key=lambda e: e.start)

        if not settings.show_details:
            return [event.redact() for event in events]
        return events
