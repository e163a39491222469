"""Shared fixtures for calendar booking tests."""

from datetime import datetime
from typing import Any, Optional

import pytest
import pytz

from calendar_booking.auth.base import CredentialProvider, OwnerCredential
from calendar_booking.booking.service import CalendarService
from calendar_booking.config import AppConfig
from calendar_booking.models.calendar import (
    Calendar,
    ProviderCalendar,
    Tenant,
    TenantCalendarGrant,
)
from calendar_booking.models.event import BusyInterval, CalendarEvent, CreatedEvent
from calendar_booking.providers.base import CalendarProvider
from calendar_booking.repository.memory import InMemoryBookingRepository


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=pytz.utc)


class FakeCalendarProvider(CalendarProvider):
    """Provider double recording every call."""

    def __init__(self):
        self.busy: list[BusyInterval] = []
        self.events: list[CalendarEvent] = []
        self.error: Optional[Exception] = None
        self.calls: list[tuple[str, tuple]] = []
        self.created: list[tuple[str, dict[str, Any]]] = []

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error

    def list_calendars(self, credential: OwnerCredential) -> list[ProviderCalendar]:
        self._record("list_calendars", credential)
        return [ProviderCalendar(id="ext-1", name="Main")]

    def list_busy_intervals(self, external_calendar_id, window_start, window_end, credential):
        self._record("list_busy_intervals", external_calendar_id, window_start, window_end, credential)
        return list(self.busy)

    def list_events(self, external_calendar_id, time_min, time_max, max_results, credential):
        self._record("list_events", external_calendar_id, time_min, time_max, max_results, credential)
        return list(self.events)

    def create_event(self, external_calendar_id, payload, credential):
        self._record("create_event", external_calendar_id, payload, credential)
        self.created.append((external_calendar_id, payload))
        return CreatedEvent(id=f"evt-{len(self.created)}", calendar_id=external_calendar_id, data=payload)


class FakeCredentialProvider(CredentialProvider):
    """Credential source where owners are connected by listing them."""

    def __init__(self, connected: Optional[set[str]] = None):
        self.connected = set(connected or ())

    def get_credential(self, owner_id: str) -> Optional[OwnerCredential]:
        if owner_id not in self.connected:
            return None
        return OwnerCredential(owner_id, f"token-{owner_id}")

    def connect_owner(self, owner_id: str) -> OwnerCredential:
        self.connected.add(owner_id)
        return OwnerCredential(owner_id, f"token-{owner_id}")

    def disconnect_owner(self, owner_id: str) -> None:
        self.connected.discard(owner_id)

    def clear_cache(self) -> None:
        self.connected.clear()


@pytest.fixture
def repository() -> InMemoryBookingRepository:
    """Private calendar cal-1 with tenant t1 holding a booking grant."""
    repo = InMemoryBookingRepository()
    repo.add_calendar(
        Calendar(
            id="cal-1",
            external_calendar_id="ext-1",
            owner_id="owner@example.com",
            name="Consulting",
        )
    )
    repo.add_tenant(Tenant(id="t1", owner_id="buyer@example.com", name="Buyer"))
    repo.add_tenant(Tenant(id="t2", owner_id="other@example.com", name="Other"))
    repo.save_grant(TenantCalendarGrant(tenant_id="t1", calendar_id="cal-1", can_book=True))
    return repo


@pytest.fixture
def provider() -> FakeCalendarProvider:
    return FakeCalendarProvider()


@pytest.fixture
def credentials() -> FakeCredentialProvider:
    return FakeCredentialProvider({"owner@example.com", "buyer@example.com"})


@pytest.fixture
def app_config() -> AppConfig:
    # pin the flags the environment could otherwise set
    return AppConfig().model_copy(
        update={
            "events_max_results": 50,
            "apply_buffer_time": False,
            "enforce_advance_booking": False,
        }
    )


@pytest.fixture
def service(repository, provider, credentials, app_config) -> CalendarService:
    return CalendarService(
        repository,
        provider,
        credentials,
        config=app_config,
        clock=lambda: utc(2026, 3, 1, 8, 0),
    )
