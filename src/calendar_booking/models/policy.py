"""Booking policy models."""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..utils.date_utils import parse_hhmm

# Integer weekday keys follow the Sunday-first numbering used by the stored
# policy documents (0 = Sunday ... 6 = Saturday).
_SUNDAY_FIRST = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]
_ABBREVIATIONS = {name[:3]: name for name in _SUNDAY_FIRST}


def normalize_weekday_key(key: Union[str, int]) -> str:
    """
    Normalize a working-hours key to a lower-case weekday name.

    Accepts full names ("Monday"), three-letter abbreviations ("mon") and
    integers 0-6 with 0 meaning Sunday.

    Raises:
        ValueError: If the key does not name a weekday
    """
    if isinstance(key, bool):
        raise ValueError(f"Invalid weekday key: {key!r}")
    if isinstance(key, int) or (isinstance(key, str) and key.strip().isdigit()):
        index = int(key)
        if not 0 <= index <= 6:
            raise ValueError(f"Weekday index out of range: {key!r}")
        return _SUNDAY_FIRST[index]
    name = str(key).strip().lower()
    if name in _SUNDAY_FIRST:
        return name
    if name in _ABBREVIATIONS:
        return _ABBREVIATIONS[name]
    raise ValueError(f"Invalid weekday key: {key!r}")


class DayHours(BaseModel):
    """Working hours for one weekday."""

    enabled: bool = False
    start: str = "09:00"
    end: str = "18:00"

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def valid_time(cls, value: str) -> str:
        parse_hhmm(value)
        return value


CLOSED_DAY = DayHours(enabled=False)


def _normalize_working_hours(value: Any) -> Any:
    if value is None or not isinstance(value, dict):
        return value
    return {normalize_weekday_key(key): hours for key, hours in value.items()}


def default_working_hours() -> dict[str, DayHours]:
    """09:00-18:00 Monday to Friday, weekend closed."""
    hours = {}
    for name in _SUNDAY_FIRST:
        hours[name] = DayHours(enabled=name not in ("saturday", "sunday"))
    return hours


class PolicyOverride(BaseModel):
    """Per-grant custom policy; every field is optional."""

    display_name: Optional[str] = None
    working_hours: Optional[dict[str, DayHours]] = None
    buffer_time: Optional[int] = Field(default=None, ge=0)
    min_advance_booking: Optional[int] = Field(default=None, ge=0)
    max_advance_booking: Optional[int] = Field(default=None, ge=0)
    booking_slot_duration: Optional[int] = Field(default=None, gt=0)

    model_config = {"frozen": True}

    @field_validator("working_hours", mode="before")
    @classmethod
    def normalize_days(cls, value: Any) -> Any:
        return _normalize_working_hours(value)


class CalendarSettings(BaseModel):
    """Global settings stored for a calendar or for a tenant's own calendar."""

    is_public: bool = False
    show_details: bool = False
    booking_enabled: bool = True
    working_hours: Optional[dict[str, DayHours]] = None
    buffer_time: Optional[int] = Field(default=None, ge=0)
    min_advance_booking: Optional[int] = Field(default=None, ge=0)
    max_advance_booking: Optional[int] = Field(default=None, ge=0)
    booking_slot_duration: Optional[int] = Field(default=None, gt=0)

    model_config = {"frozen": True}

    @field_validator("working_hours", mode="before")
    @classmethod
    def normalize_days(cls, value: Any) -> Any:
        return _normalize_working_hours(value)


class CalendarPolicy(BaseModel):
    """Fully resolved booking policy for one calendar/tenant pair."""

    working_hours: dict[str, DayHours] = Field(default_factory=default_working_hours)
    buffer_time: int = 15  # minutes
    min_advance_booking: int = 1  # hours
    max_advance_booking: int = 30  # days
    booking_slot_duration: int = 60  # minutes
    booking_enabled: bool = True
    display_name: Optional[str] = None

    model_config = {"frozen": True}
