"""Tests for the in-memory booking repository."""

import pytest

from calendar_booking.models.calendar import Calendar, Tenant, TenantCalendarGrant
from calendar_booking.models.policy import CalendarSettings
from calendar_booking.utils.exceptions import ConfigurationError, NotFoundError


def test_lookup_by_external_id(repository):
    assert repository.get_calendar_by_external_id("ext-1").id == "cal-1"
    assert repository.get_calendar_by_external_id("nope") is None


def test_duplicate_calendar_id(repository):
    with pytest.raises(ConfigurationError):
        repository.add_calendar(
            Calendar(id="cal-1", external_calendar_id="ext-9", owner_id="o", name="Dup")
        )


def test_external_calendar_connected_once(repository):
    with pytest.raises(ConfigurationError):
        repository.add_calendar(
            Calendar(id="cal-2", external_calendar_id="ext-1", owner_id="o", name="Dup")
        )


def test_list_calendars_by_owner(repository):
    repository.add_calendar(
        Calendar(id="cal-2", external_calendar_id="ext-2", owner_id="someone", name="Other")
    )
    assert [c.id for c in repository.list_calendars("owner@example.com")] == ["cal-1"]
    assert len(repository.list_calendars()) == 2


def test_duplicate_tenant(repository):
    with pytest.raises(ConfigurationError):
        repository.add_tenant(Tenant(id="t1", owner_id="x"))


def test_grant_requires_known_tenant_and_calendar(repository):
    with pytest.raises(NotFoundError):
        repository.save_grant(TenantCalendarGrant(tenant_id="ghost", calendar_id="cal-1"))
    with pytest.raises(NotFoundError):
        repository.save_grant(TenantCalendarGrant(tenant_id="t1", calendar_id="ghost"))


def test_saving_grant_replaces_existing(repository):
    repository.save_grant(TenantCalendarGrant(tenant_id="t1", calendar_id="cal-1", can_book=False))
    assert repository.get_grant("t1", "cal-1").can_book is False
    assert len(repository.list_grants("t1")) == 1


def test_deactivate_grant(repository):
    grant = repository.deactivate_grant("t1", "cal-1")
    assert not grant.is_active
    assert repository.get_grant("t1", "cal-1") == grant
    assert repository.get_active_grant("t1", "cal-1") is None
    assert repository.list_grants("t1") == []
    assert repository.list_grants("t1", active_only=False) == [grant]


def test_deactivate_missing_grant(repository):
    with pytest.raises(NotFoundError):
        repository.deactivate_grant("t2", "cal-1")


def test_active_grant_needs_tenant(repository):
    assert repository.get_active_grant(None, "cal-1") is None
    assert repository.get_active_grant("t1", "cal-1").can_book


def test_remove_calendar_drops_grants_and_settings(repository):
    repository.save_calendar_settings("cal-1", CalendarSettings(is_public=True))
    repository.remove_calendar("cal-1")

    assert repository.get_calendar("cal-1") is None
    assert repository.get_calendar_by_external_id("ext-1") is None
    assert repository.get_grant("t1", "cal-1") is None
    assert repository.get_calendar_settings("cal-1") is None


def test_remove_missing_calendar(repository):
    with pytest.raises(NotFoundError):
        repository.remove_calendar("ghost")


def test_settings_round_trip(repository):
    settings = CalendarSettings(is_public=True, buffer_time=10)
    repository.save_calendar_settings("cal-1", settings)
    repository.save_tenant_settings("t1", settings)
    assert repository.get_calendar_settings("cal-1") == settings
    assert repository.get_tenant_settings("t1") == settings
    assert repository.get_tenant_settings("t2") is None


def test_settings_for_unknown_records(repository):
    with pytest.raises(NotFoundError):
        repository.save_calendar_settings("ghost", CalendarSettings())
    with pytest.raises(NotFoundError):
        repository.save_tenant_settings("ghost", CalendarSettings())
