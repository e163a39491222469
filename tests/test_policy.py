"""Tests for policy models and effective policy resolution."""

from datetime import date

import pytest
from pydantic import ValidationError

from calendar_booking.booking.policy import effective_policy, working_hours_for
from calendar_booking.models.calendar import TenantCalendarGrant
from calendar_booking.models.policy import (
    CalendarPolicy,
    CalendarSettings,
    DayHours,
    PolicyOverride,
    normalize_weekday_key,
)
from conftest import utc

MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)
SATURDAY = date(2026, 3, 7)


@pytest.mark.parametrize(
    "key,expected",
    [
        ("Monday", "monday"),
        ("fri", "friday"),
        (0, "sunday"),
        ("1", "monday"),
        (6, "saturday"),
    ],
)
def test_normalize_weekday_key(key, expected):
    assert normalize_weekday_key(key) == expected


@pytest.mark.parametrize("key", [7, "funday", True, -1])
def test_normalize_weekday_key_rejects(key):
    with pytest.raises(ValueError):
        normalize_weekday_key(key)


def test_defaults():
    policy = effective_policy()
    assert policy.buffer_time == 15
    assert policy.min_advance_booking == 1
    assert policy.max_advance_booking == 30
    assert policy.booking_slot_duration == 60
    assert policy.booking_enabled
    assert working_hours_for(policy, MONDAY) == DayHours(enabled=True, start="09:00", end="18:00")
    assert not working_hours_for(policy, SATURDAY).enabled


def test_settings_override_defaults():
    settings = CalendarSettings(buffer_time=5, booking_slot_duration=30)
    policy = effective_policy(settings)
    assert policy.buffer_time == 5
    assert policy.booking_slot_duration == 30
    assert policy.min_advance_booking == 1


def test_custom_policy_beats_settings():
    settings = CalendarSettings(buffer_time=5, booking_slot_duration=30)
    grant = TenantCalendarGrant(
        tenant_id="t1",
        calendar_id="cal-1",
        custom_policy=PolicyOverride(booking_slot_duration=45, display_name="VIP"),
    )
    policy = effective_policy(settings, grant)
    assert policy.booking_slot_duration == 45
    assert policy.buffer_time == 5
    assert policy.display_name == "VIP"


def test_inactive_grant_custom_policy_ignored():
    grant = TenantCalendarGrant(
        tenant_id="t1",
        calendar_id="cal-1",
        is_active=False,
        custom_policy=PolicyOverride(booking_slot_duration=45),
    )
    assert effective_policy(None, grant).booking_slot_duration == 60


def test_custom_working_hours_fall_back_per_day():
    grant = TenantCalendarGrant(
        tenant_id="t1",
        calendar_id="cal-1",
        custom_policy=PolicyOverride(
            working_hours={"monday": {"enabled": True, "start": "09:00", "end": "12:00"}}
        ),
    )
    policy = effective_policy(None, grant)

    assert working_hours_for(policy, MONDAY) == DayHours(enabled=True, start="09:00", end="12:00")
    assert working_hours_for(policy, TUESDAY) == DayHours(enabled=True, start="09:00", end="18:00")
    assert not working_hours_for(policy, SATURDAY).enabled


def test_custom_working_hours_overlay_settings_map():
    settings = CalendarSettings(
        working_hours={
            "monday": {"enabled": True, "start": "08:00", "end": "12:00"},
            "tuesday": {"enabled": True, "start": "08:00", "end": "12:00"},
        }
    )
    grant = TenantCalendarGrant(
        tenant_id="t1",
        calendar_id="cal-1",
        custom_policy=PolicyOverride(
            working_hours={"tuesday": {"enabled": True, "start": "10:00", "end": "11:00"}}
        ),
    )
    policy = effective_policy(settings, grant)

    assert working_hours_for(policy, MONDAY).start == "08:00"
    assert working_hours_for(policy, TUESDAY).start == "10:00"
    # weekdays missing from the settings map are closed
    assert not working_hours_for(policy, date(2026, 3, 4)).enabled


def test_integer_weekday_keys_are_sunday_first():
    settings = CalendarSettings(working_hours={1: {"enabled": True, "start": "07:00", "end": "08:00"}})
    hours = working_hours_for(effective_policy(settings), MONDAY)
    assert hours.enabled
    assert hours.start == "07:00"


def test_booking_enabled_comes_from_settings():
    assert not effective_policy(CalendarSettings(booking_enabled=False)).booking_enabled


def test_working_hours_weekday_uses_calendar_time_zone():
    policy = CalendarPolicy()
    # Sunday 23:30 UTC is already Monday in Auckland
    late_sunday = utc(2026, 3, 1, 23, 30)
    assert not working_hours_for(policy, late_sunday, "UTC").enabled
    assert working_hours_for(policy, late_sunday, "Pacific/Auckland").enabled


@pytest.mark.parametrize("value", ["9", "25:00", "09:60", "24:01", "nine"])
def test_day_hours_rejects_bad_times(value):
    with pytest.raises(ValidationError):
        DayHours(enabled=True, start=value)


def test_negative_buffer_rejected():
    with pytest.raises(ValidationError):
        CalendarSettings(buffer_time=-1)
