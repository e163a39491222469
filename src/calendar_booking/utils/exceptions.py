"""Custom exceptions for Calendar Booking application."""

from enum import Enum


class CalendarBookingError(Exception):
    """Base exception for calendar booking errors."""

    http_status: int = 500


class InvalidInputError(CalendarBookingError):
    """Raised when required request parameters are missing or malformed."""

    http_status = 400


class NotFoundError(CalendarBookingError):
    """Raised when a calendar, tenant or grant record is absent."""

    http_status = 404


class ForbiddenError(CalendarBookingError):
    """Raised when the access resolver denies a request."""

    http_status = 403


class BookingNotAllowedError(ForbiddenError):
    """Raised when a tenant may see a calendar but may not book it."""


class OwnerNotConnectedError(CalendarBookingError):
    """Raised when the calendar owner has no usable provider credential."""

    http_status = 503


class ProviderErrorKind(str, Enum):
    """Failure classes reported by calendar providers."""

    TRANSPORT = "transport"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"


class ProviderError(CalendarBookingError):
    """Raised when the external calendar provider rejects or fails a call."""

    http_status = 502

    def __init__(
        self,
        message: str,
        kind: ProviderErrorKind = ProviderErrorKind.TRANSPORT,
    ):
        super().__init__(message)
        self.kind = kind


class AuthenticationError(CalendarBookingError):
    """Raised when authentication fails."""


class TokenCacheError(CalendarBookingError):
    """Raised when token cache operations fail."""


class ConfigurationError(CalendarBookingError):
    """Raised when configuration is invalid."""
