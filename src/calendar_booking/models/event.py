"""Event, busy-interval and slot models."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.date_utils import ensure_utc


class EventStatus(str, Enum):
    """Event status enumeration."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class Attendee(BaseModel):
    """Event attendee."""

    email: str
    name: Optional[str] = None
    response_status: Optional[str] = None  # accepted, declined, tentative, none
    is_organizer: bool = False


class Location(BaseModel):
    """Event location."""

    display_name: str
    address: Optional[str] = None


class CalendarEvent(BaseModel):
    """Normalized provider event with full details."""

    id: str
    subject: str
    body_preview: Optional[str] = None

    start: datetime
    end: datetime
    is_all_day: bool = False
    timezone: str = "UTC"

    organizer: Optional[Attendee] = None
    attendees: list[Attendee] = Field(default_factory=list)
    location: Optional[Location] = None

    status: EventStatus = EventStatus.CONFIRMED
    sensitivity: str = "normal"  # normal, personal, private, confidential
    show_as: str = "busy"  # free, tentative, busy, oof, workingElsewhere
    categories: list[str] = Field(default_factory=list)

    created: Optional[datetime] = None
    last_modified: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def redact(self) -> "RedactedEvent":
        """Strip everything but the time range."""
        return RedactedEvent(id=self.id, start=self.start, end=self.end)


class RedactedEvent(BaseModel):
    """Event as exposed when a calendar hides its details."""

    id: str
    start: datetime
    end: datetime
    status: Literal["busy"] = "busy"

    model_config = {"frozen": True, "extra": "forbid"}


class TimeRange(BaseModel):
    """Half-open [start, end) range of absolute instants."""

    start: datetime
    end: datetime

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def end_not_before_start(self) -> "TimeRange":
        if self.end < self.start:
            raise ValueError(f"Range ends before it starts: {self.start} > {self.end}")
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval intersection."""
        return start < self.end and end > self.start


class BusyInterval(TimeRange):
    """Externally sourced range during which a calendar is unavailable."""


class AvailabilitySlot(TimeRange):
    """Bookable range of exactly one slot duration."""


class CreatedEvent(BaseModel):
    """Result of a provider event creation."""

    id: str
    calendar_id: str
    data: dict[str, Any] = Field(default_factory=dict)
