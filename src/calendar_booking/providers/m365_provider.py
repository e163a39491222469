"""Microsoft 365 calendar provider using Graph API directly."""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import requests

from ..auth.base import OwnerCredential
from ..models.calendar import ProviderCalendar
from ..models.event import (
    Attendee,
    BusyInterval,
    CalendarEvent,
    CreatedEvent,
    EventStatus,
    Location,
)
from ..utils.date_utils import ensure_utc, parse_iso_datetime
from ..utils.exceptions import ProviderError, ProviderErrorKind
from .base import CalendarProvider

logger = logging.getLogger(__name__)

GRAPH_BASE = "https://graph.microsoft.com/v1.0"

# calendarView needs an end; open-ended listings look this far ahead
OPEN_ENDED_HORIZON = timedelta(days=365)

# showAs values that block a slot
BUSY_SHOW_AS = {"busy", "tentative", "oof", "workingelsewhere", "unknown"}


def _graph_time(dt: datetime) -> str:
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


class M365CalendarProvider(CalendarProvider):
    """Read and write owner calendars in Microsoft 365 through Graph."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def _user_path(self, credential: OwnerCredential) -> str:
        """App-only tokens address the owner's mailbox, delegated ones use /me."""
        if credential.app_only:
            return f"users/{credential.owner_id}"
        return "me"

    def _headers(self, credential: OwnerCredential) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential.access_token}",
            "Content-Type": "application/json",
            # dateTime values come back in UTC
            "Prefer": 'outlook.timezone="UTC"',
        }

    def _request(
        self,
        method: str,
        url: str,
        credential: OwnerCredential,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            resp = self.session.request(method, url, headers=self._headers(credential), **kwargs)
            resp.raise_for_status()
            return resp.json() if resp.content else {}
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status in (401, 403):
                kind = ProviderErrorKind.AUTHORIZATION
            elif status == 404:
                kind = ProviderErrorKind.NOT_FOUND
            else:
                kind = ProviderErrorKind.TRANSPORT
            logger.error(f"Graph {method} {url} failed with {status}")
            raise ProviderError(f"Graph request failed ({status}): {e}", kind) from e
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Graph {method} {url} failed: {e}")
            raise ProviderError(f"Graph request failed: {e}") from e

    def _calendar_view(
        self,
        external_calendar_id: str,
        start: datetime,
        end: datetime,
        credential: OwnerCredential,
        extra_params: dict[str, Any],
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        url = f"{GRAPH_BASE}/{self._user_path(credential)}/calendars/{external_calendar_id}/calendarView"
        params: Optional[dict[str, Any]] = {
            "startDateTime": _graph_time(start),
            "endDateTime": _graph_time(end),
            **extra_params,
        }
        items: list[dict[str, Any]] = []
        while url:
            data = self._request("GET", url, credential, params=params)
            items.extend(data.get("value", []))
            if limit is not None and len(items) >= limit:
                return items[:limit]
            url = data.get("@odata.nextLink")
            params = None  # nextLink includes params
        return items

    def list_calendars(self, credential: OwnerCredential) -> list[ProviderCalendar]:
        url = f"{GRAPH_BASE}/{self._user_path(credential)}/calendars"
        data = self._request("GET", url, credential)
        result = []
        for cal in data.get("value", []):
            result.append(
                ProviderCalendar(
                    id=cal["id"],
                    name=cal.get("name", ""),
                    owner_email=(cal.get("owner") or {}).get("address"),
                    is_default=cal.get("isDefaultCalendar", False),
                    can_edit=cal.get("canEdit", False),
                    color=cal.get("color"),
                )
            )
        logger.info(f"Found {len(result)} M365 calendars for {credential.owner_id}")
        return result

    def list_busy_intervals(
        self,
        external_calendar_id: str,
        window_start: datetime,
        window_end: datetime,
        credential: OwnerCredential,
    ) -> list[BusyInterval]:
        items = self._calendar_view(
            external_calendar_id,
            window_start,
            window_end,
            credential,
            {"$select": "id,start,end,showAs,isCancelled", "$top": 500},
        )
        busy = []
        for item in items:
            if item.get("isCancelled"):
                continue
            if str(item.get("showAs", "busy")).lower() not in BUSY_SHOW_AS:
                continue
            try:
                busy.append(
                    BusyInterval(
                        start=parse_iso_datetime(item["start"]["dateTime"]),
                        end=parse_iso_datetime(item["end"]["dateTime"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ProviderError(f"Malformed event {item.get('id')} in calendar view: {e}") from e
        logger.debug(f"{len(busy)} busy intervals in {external_calendar_id}")
        return busy

    def list_events(
        self,
        external_calendar_id: str,
        time_min: datetime,
        time_max: Optional[datetime],
        max_results: int,
        credential: OwnerCredential,
    ) -> list[CalendarEvent]:
        end = time_max or ensure_utc(time_min) + OPEN_ENDED_HORIZON
        items = self._calendar_view(
            external_calendar_id,
            time_min,
            end,
            credential,
            {"$orderby": "start/dateTime", "$top": min(max_results, 500)},
            limit=max_results,
        )
        try:
            events = [self._transform_event(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed event in {external_calendar_id}: {e}") from e
        logger.info(f"Read {len(events)} events from {external_calendar_id}")
        return events

    def create_event(
        self,
        external_calendar_id: str,
        payload: dict[str, Any],
        credential: OwnerCredential,
    ) -> CreatedEvent:
        url = f"{GRAPH_BASE}/{self._user_path(credential)}/calendars/{external_calendar_id}/events"
        data = self._request("POST", url, credential, json=payload)
        if "id" not in data:
            raise ProviderError("Graph returned no id for the created event")
        logger.info(f"Created event {data['id']} in {external_calendar_id}")
        return CreatedEvent(id=data["id"], calendar_id=external_calendar_id, data=data)

    def _transform_event(self, item: dict[str, Any]) -> CalendarEvent:
        """Transform a Graph event resource to the normalized model."""
        attendees = []
        for attendee in item.get("attendees") or []:
            address = attendee.get("emailAddress") or {}
            attendees.append(
                Attendee(
                    email=address.get("address", ""),
                    name=address.get("name"),
                    response_status=((attendee.get("status") or {}).get("response") or "").lower()
                    or None,
                )
            )

        organizer = None
        organizer_address = (item.get("organizer") or {}).get("emailAddress")
        if organizer_address:
            organizer = Attendee(
                email=organizer_address.get("address", ""),
                name=organizer_address.get("name"),
                is_organizer=True,
            )

        location = None
        location_data = item.get("location") or {}
        if location_data.get("displayName"):
            address = location_data.get("address") or {}
            parts = [
                str(address[key])
                for key in ("street", "city", "state", "postalCode", "countryOrRegion")
                if address.get(key)
            ]
            location = Location(
                display_name=location_data["displayName"],
                address=", ".join(parts) if parts else None,
            )

        status = EventStatus.CONFIRMED
        if item.get("isCancelled"):
            status = EventStatus.CANCELLED
        elif (item.get("responseStatus") or {}).get("response") == "tentativelyAccepted":
            status = EventStatus.TENTATIVE

        return CalendarEvent(
            id=item["id"],
            subject=item.get("subject") or "(No Subject)",
            body_preview=item.get("bodyPreview"),
            start=parse_iso_datetime(item["start"]["dateTime"]),
            end=parse_iso_datetime(item["end"]["dateTime"]),
            is_all_day=item.get("isAllDay", False),
            timezone=item["start"].get("timeZone", "UTC"),
            organizer=organizer,
            attendees=attendees,
            location=location,
            status=status,
            sensitivity=str(item.get("sensitivity", "normal")).lower(),
            show_as=str(item.get("showAs", "busy")).lower(),
            categories=list(item.get("categories") or []),
            created=parse_iso_datetime(item["createdDateTime"])
            if item.get("createdDateTime")
            else None,
            last_modified=parse_iso_datetime(item["lastModifiedDateTime"])
            if item.get("lastModifiedDateTime")
            else None,
        )
