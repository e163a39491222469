"""Effective booking policy resolution."""

import logging
from datetime import date, datetime
from typing import Any, Optional, Union

from ..models.calendar import TenantCalendarGrant
from ..models.policy import (
    CLOSED_DAY,
    CalendarPolicy,
    CalendarSettings,
    DayHours,
    default_working_hours,
)
from ..utils.date_utils import local_date, weekday_name

logger = logging.getLogger(__name__)

_POLICY_FIELDS = (
    "buffer_time",
    "min_advance_booking",
    "max_advance_booking",
    "booking_slot_duration",
)


def effective_policy(
    settings: Optional[CalendarSettings] = None,
    grant: Optional[TenantCalendarGrant] = None,
) -> CalendarPolicy:
    """
    Merge policy layers into one CalendarPolicy.

    Precedence, highest first: the grant's custom policy, the calendar
    settings, the built-in defaults. Scalar fields come whole from the highest
    layer that sets them. Working hours merge per weekday: the custom policy
    overlays the settings map (or the default map when settings has none),
    so days it leaves out keep their base hours. Inactive grants are ignored.

    Args:
        settings: Global calendar settings, if any are stored
        grant: The requesting tenant's grant, if any

    Returns:
        Resolved policy
    """
    custom = None
    if grant is not None and grant.is_active:
        custom = grant.custom_policy

    values: dict[str, Any] = {}
    for layer in (settings, custom):
        if layer is None:
            continue
        for name in _POLICY_FIELDS:
            value = getattr(layer, name)
            if value is not None:
                values[name] = value

    working_hours = dict(
        settings.working_hours
        if settings is not None and settings.working_hours is not None
        else default_working_hours()
    )
    if custom is not None and custom.working_hours:
        working_hours.update(custom.working_hours)
    values["working_hours"] = working_hours

    if settings is not None:
        values["booking_enabled"] = settings.booking_enabled
    if custom is not None and custom.display_name:
        values["display_name"] = custom.display_name

    return CalendarPolicy(**values)


def working_hours_for(
    policy: CalendarPolicy,
    day: Union[date, datetime],
    time_zone: str = "UTC",
) -> DayHours:
    """
    Look up the working hours that apply on a day.

    A datetime is first converted to the calendar's time zone, so the weekday
    is the one the calendar owner sees. Weekdays missing from the policy are
    closed.
    """
    name = weekday_name(local_date(day, time_zone))
    hours = policy.working_hours.get(name)
    if hours is None:
        logger.debug(f"No working hours for {name}, treating as closed")
        return CLOSED_DAY
    return hours
