"""CLI entry point for Calendar Booking application."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from .auth.msal_auth import M365CredentialProvider
from .auth.token_cache import TokenCacheManager
from .booking.service import CalendarService
from .config import AppConfig, BookingDirectory, config
from .providers.m365_provider import M365CalendarProvider
from .utils.exceptions import (
    CalendarBookingError,
    InvalidInputError,
    OwnerNotConnectedError,
)
from .utils.logging import setup_logging


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _emit(body: dict[str, Any]) -> None:
    print(json.dumps({key: _to_jsonable(value) for key, value in body.items()}, indent=2))


def _load_event_payload(raw: Optional[str]) -> Any:
    """Read a booking payload given inline as JSON or as a path to a JSON file."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        inline_error = e

    try:
        text = Path(raw).read_text()
    except (OSError, UnicodeDecodeError):
        raise InvalidInputError(
            f"Event payload is neither JSON nor a readable file: {inline_error}"
        ) from inline_error
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Event payload file {raw} is not valid JSON: {e}") from e


def build_service(app_config: AppConfig) -> tuple[CalendarService, M365CredentialProvider]:
    """Wire the service from configuration; called once per process."""
    cache_manager = TokenCacheManager(
        cache_location=Path(app_config.token_cache_path),
        encrypted=app_config.token_cache_encrypted,
    )
    credentials = M365CredentialProvider(app_config.m365, cache_manager)
    repository = BookingDirectory(app_config.booking_directory).build_repository()
    service = CalendarService(
        repository=repository,
        provider=M365CalendarProvider(),
        credentials=credentials,
        config=app_config,
    )
    return service, credentials


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Calendar Booking - Availability and booking for connected calendars"
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--calendar", metavar="CALENDAR_ID", help="Show calendar details")
    action.add_argument("--events", metavar="CALENDAR_ID", help="List calendar events")
    action.add_argument(
        "--availability", metavar="CALENDAR_ID", help="Show free slots for --date"
    )
    action.add_argument(
        "--book", metavar="CALENDAR_ID", help="Create a booking from --event-json"
    )
    action.add_argument(
        "--tenant-calendar", metavar="TENANT_ID", help="List events of a tenant's own calendar"
    )
    action.add_argument(
        "--list-calendars",
        action="store_true",
        help="List provider calendars of --owner",
    )
    action.add_argument(
        "--connect-owner", metavar="OWNER_ID", help="Sign in a calendar owner"
    )
    action.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear authentication token cache",
    )
    parser.add_argument("--tenant", type=str, default=None, help="Requesting tenant id")
    parser.add_argument("--owner", type=str, default=None, help="Calendar owner id")
    parser.add_argument(
        "--date", type=str, default=None, help="Day to check (YYYY-MM-DD format)"
    )
    parser.add_argument(
        "--duration", type=int, default=None, help="Slot length in minutes"
    )
    parser.add_argument("--time-min", type=str, default=None, help="Events window start (ISO)")
    parser.add_argument("--time-max", type=str, default=None, help="Events window end (ISO)")
    parser.add_argument(
        "--max-results", type=int, default=None, help="Maximum number of events"
    )
    parser.add_argument(
        "--event-json",
        type=str,
        default=None,
        help="Booking payload as inline JSON or a path to a JSON file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    return parser


def main(argv: Optional[list[str]] = None, app_config: Optional[AppConfig] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    app_config = app_config or config

    log_level = "DEBUG" if args.verbose else app_config.log_level
    logger = setup_logging(level=log_level, log_file=app_config.log_file)

    try:
        service, credentials = build_service(app_config)

        if args.clear_cache:
            credentials.clear_cache()
            logger.info("Token cache cleared")
            return 0

        if args.connect_owner:
            credentials.connect_owner(args.connect_owner)
            _emit({"connected": args.connect_owner})
            return 0

        if args.list_calendars:
            if not args.owner:
                raise InvalidInputError("--owner is required with --list-calendars")
            credential = credentials.get_credential(args.owner)
            if credential is None:
                raise OwnerNotConnectedError(
                    f"Owner {args.owner} is not connected, run --connect-owner first"
                )
            _emit({"calendars": service.provider.list_calendars(credential)})
            return 0

        if args.calendar:
            _emit({"calendar": service.get_calendar_for_buyer(args.calendar, args.tenant)})
            return 0

        if args.events:
            events = service.get_calendar_events(
                args.events,
                args.tenant,
                time_min=args.time_min,
                time_max=args.time_max,
                max_results=args.max_results,
            )
            _emit({"events": events})
            return 0

        if args.availability:
            slots = service.get_calendar_availability(
                args.availability, args.date, args.tenant, args.duration
            )
            _emit({"availability": slots})
            return 0

        if args.book:
            payload = _load_event_payload(args.event_json)
            _emit({"event": service.create_booking(args.book, args.tenant, payload)})
            return 0

        if args.tenant_calendar:
            events = service.get_tenant_calendar_for_buyer(
                args.tenant_calendar, max_results=args.max_results
            )
            _emit({"events": events})
            return 0

        parser.print_help()
        return 0

    except CalendarBookingError as e:
        logger.error(f"Calendar booking error: {e}")
        _emit({"error": str(e), "status": e.http_status})
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
