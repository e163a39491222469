"""Access decisions for calendar reads and bookings."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.calendar import Calendar, TenantCalendarGrant
from ..utils.exceptions import BookingNotAllowedError, ForbiddenError

logger = logging.getLogger(__name__)

CALENDAR_NOT_ACCESSIBLE = "Calendar not accessible"
TENANT_NOT_AUTHORIZED = "Tenant not authorized"
BOOKING_NOT_ALLOWED = "Booking not allowed"


class AccessOperation(str, Enum):
    """Operations a requester may attempt on a calendar."""

    READ = "read"
    READ_DETAILS = "read_details"
    BOOK = "book"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an access check."""

    allowed: bool
    reason: Optional[str] = None
    grant: Optional[TenantCalendarGrant] = None
    redacted: bool = False
    booking_denied: bool = False

    def raise_for_denial(self) -> None:
        """Raise the typed error for a denial; no-op when allowed."""
        if self.allowed:
            return
        if self.booking_denied:
            raise BookingNotAllowedError(self.reason)
        raise ForbiddenError(self.reason)


def _deny(reason: str, **kwargs) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason, **kwargs)


def resolve_access(
    calendar: Calendar,
    tenant_id: Optional[str],
    operation: AccessOperation,
    grant: Optional[TenantCalendarGrant] = None,
) -> AccessDecision:
    """
    Decide whether a tenant may perform an operation on a calendar.

    Rules, first match wins:
      1. Public calendars are readable by anyone.
      2. Private calendars need a tenant.
      3. The tenant needs an active grant on the calendar.
      4. Reading details of a calendar that hides them is allowed, redacted.
      5. Booking needs a grant with can_book.

    Allowed reads carry redacted=True when the calendar hides details, so
    callers listing events redact from the decision alone.

    The grant is looked up by the caller once per request. A grant that is
    inactive or belongs to another tenant/calendar counts as absent.

    Args:
        calendar: Target calendar
        tenant_id: Requesting tenant (None for anonymous)
        operation: Attempted operation
        grant: The tenant's grant on this calendar, if one was found

    Returns:
        AccessDecision
    """
    redacted = not calendar.show_details

    if calendar.is_public and operation == AccessOperation.READ:
        return AccessDecision(allowed=True, redacted=redacted)

    if not calendar.is_public and not tenant_id:
        logger.info(f"Denied {operation.value} on {calendar.id}: no tenant")
        return _deny(CALENDAR_NOT_ACCESSIBLE)

    if (
        grant is None
        or not grant.is_active
        or grant.tenant_id != tenant_id
        or grant.calendar_id != calendar.id
    ):
        logger.info(f"Denied {operation.value} on {calendar.id}: tenant {tenant_id} has no grant")
        return _deny(TENANT_NOT_AUTHORIZED)

    if operation == AccessOperation.BOOK:
        if not grant.can_book:
            logger.info(f"Denied booking on {calendar.id}: tenant {tenant_id} cannot book")
            return _deny(BOOKING_NOT_ALLOWED, grant=grant, booking_denied=True)
        return AccessDecision(allowed=True, grant=grant)

    # read and read_details are never denied for hidden details, only redacted
    return AccessDecision(allowed=True, grant=grant, redacted=redacted)
