"""Date and time utilities for Calendar Booking application."""

from datetime import date, datetime, time, timedelta
from typing import Union

import pytz

WEEKDAY_NAMES = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Args:
        dt: Datetime to convert (naive values are taken as UTC)

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Graph returns up to seven fractional digits ("2026-03-02T09:00:00.0000000"),
    which datetime.fromisoformat rejects before Python 3.11, so the fraction is
    cut to microseconds first.

    Raises:
        ValueError: If the value is not a timestamp
    """
    text = value.strip().replace("Z", "+00:00")
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        while tail and tail[0].isdigit():
            digits += tail[0]
            tail = tail[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{tail}"
    return ensure_utc(datetime.fromisoformat(text))


def parse_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD calendar date.

    Raises:
        ValueError: If the value is not a valid date
    """
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_hhmm(value: str) -> timedelta:
    """
    Parse an "HH:MM" wall-clock time into an offset from local midnight.

    "24:00" is accepted and means midnight at the end of the day.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    hours_str, sep, minutes_str = value.strip().partition(":")
    if not sep or not hours_str.isdigit() or not minutes_str.isdigit():
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(hours_str), int(minutes_str)
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise ValueError(f"Invalid time of day: {value!r}")
    return timedelta(hours=hours, minutes=minutes)


def get_timezone(name: str) -> pytz.BaseTzInfo:
    """Resolve an IANA time zone name."""
    return pytz.timezone(name)


def local_date(value: Union[date, datetime], time_zone: str) -> date:
    """
    Get the calendar date of a value as seen in the given time zone.

    Plain dates are already calendar dates and are returned unchanged.
    """
    if isinstance(value, datetime):
        return ensure_utc(value).astimezone(get_timezone(time_zone)).date()
    return value


def weekday_name(day: date) -> str:
    """Lower-case English weekday name of a date."""
    return WEEKDAY_NAMES[day.weekday()]


def localize_wall_clock(day: date, offset: timedelta, time_zone: str) -> datetime:
    """
    Convert a wall-clock time on a local date into a UTC instant.

    Args:
        day: Local calendar date
        offset: Time since local midnight (see parse_hhmm)
        time_zone: IANA time zone of the calendar

    Returns:
        Aware UTC datetime
    """
    tz = get_timezone(time_zone)
    extra_days, remainder = divmod(offset, timedelta(days=1))
    wall = datetime.combine(day + timedelta(days=extra_days), time()) + remainder
    return tz.localize(wall).astimezone(pytz.utc)


def day_window(
    day: date, start: str, end: str, time_zone: str
) -> tuple[datetime, datetime]:
    """
    Get the (start, end) UTC instants of a working-hours window.

    The calendar time zone is applied once here; everything downstream works
    on absolute instants.

    Args:
        day: Local calendar date
        start: Window start as "HH:MM"
        end: Window end as "HH:MM"
        time_zone: IANA time zone of the calendar

    Returns:
        Tuple of (window_start, window_end) in UTC
    """
    return (
        localize_wall_clock(day, parse_hhmm(start), time_zone),
        localize_wall_clock(day, parse_hhmm(end), time_zone),
    )


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.utc)
