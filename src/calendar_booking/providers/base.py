"""Abstract base class for external calendar providers."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from ..auth.base import OwnerCredential
from ..models.calendar import ProviderCalendar
from ..models.event import BusyInterval, CalendarEvent, CreatedEvent


class CalendarProvider(ABC):
    """External calendar service holding the owners' events."""

    @abstractmethod
    def list_calendars(self, credential: OwnerCredential) -> list[ProviderCalendar]:
        """
        List the calendars of a connected owner.

        Raises:
            ProviderError: If listing calendars fails
        """

    @abstractmethod
    def list_busy_intervals(
        self,
        external_calendar_id: str,
        window_start: datetime,
        window_end: datetime,
        credential: OwnerCredential,
    ) -> list[BusyInterval]:
        """
        Get the busy intervals of a calendar within a window.

        Args:
            external_calendar_id: Provider-side calendar id
            window_start: Start of the window
            window_end: End of the window
            credential: Owner credential

        Returns:
            Busy intervals, in any order

        Raises:
            ProviderError: If the provider call fails
        """

    @abstractmethod
    def list_events(
        self,
        external_calendar_id: str,
        time_min: datetime,
        time_max: Optional[datetime],
        max_results: int,
        credential: OwnerCredential,
    ) -> list[CalendarEvent]:
        """
        Get the events of a calendar ordered by start time.

        Args:
            external_calendar_id: Provider-side calendar id
            time_min: Earliest event end to include
            time_max: Latest event start to include (None for open-ended)
            max_results: Maximum number of events
            credential: Owner credential

        Returns:
            Normalized CalendarEvent objects

        Raises:
            ProviderError: If the provider call fails
        """

    @abstractmethod
    def create_event(
        self,
        external_calendar_id: str,
        payload: dict[str, Any],
        credential: OwnerCredential,
    ) -> CreatedEvent:
        """
        Create an event from a provider-native payload.

        Args:
            external_calendar_id: Provider-side calendar id
            payload: Event body passed to the provider unchanged
            credential: Owner credential

        Returns:
            CreatedEvent

        Raises:
            ProviderError: If event creation fails
        """
