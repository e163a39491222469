"""Availability slot computation."""

from datetime import datetime, timedelta
from typing import Iterable

from ..models.event import AvailabilitySlot, BusyInterval
from ..utils.date_utils import ensure_utc

# Candidate starts are spaced by this step whatever the slot duration is.
SLOT_GRANULARITY = timedelta(minutes=15)


def compute_available_slots(
    window_start: datetime,
    window_end: datetime,
    busy_intervals: Iterable[BusyInterval],
    slot_duration_minutes: int,
) -> list[AvailabilitySlot]:
    """
    Compute the bookable slots of a working-hours window.

    A candidate slot starts at window_start and every SLOT_GRANULARITY after
    it, as long as a full slot still fits before window_end. A candidate is
    kept when it intersects no busy interval (half-open intersection, so a
    slot may end exactly where a busy interval starts).

    Args:
        window_start: Start of the window (aware, or naive UTC)
        window_end: End of the window
        busy_intervals: Busy ranges to avoid
        slot_duration_minutes: Length of every slot

    Returns:
        Slots in ascending start order

    Raises:
        ValueError: If the slot duration is not positive
    """
    if slot_duration_minutes <= 0:
        raise ValueError(f"Slot duration must be positive, got {slot_duration_minutes}")

    start = ensure_utc(window_start)
    end = ensure_utc(window_end)
    duration = timedelta(minutes=slot_duration_minutes)
    busy = list(busy_intervals)

    slots = []
    candidate = start
    while candidate + duration <= end:
        candidate_end = candidate + duration
        if not any(b.overlaps(candidate, candidate_end) for b in busy):
            slots.append(AvailabilitySlot(start=candidate, end=candidate_end))
        candidate += SLOT_GRANULARITY

    return slots


def apply_buffer(
    busy_intervals: Iterable[BusyInterval], buffer_minutes: int
) -> list[BusyInterval]:
    """Widen each busy interval by buffer_minutes on both sides."""
    if buffer_minutes <= 0:
        return list(busy_intervals)
    pad = timedelta(minutes=buffer_minutes)
    return [BusyInterval(start=b.start - pad, end=b.end + pad) for b in busy_intervals]


def within_advance_window(
    slots: Iterable[AvailabilitySlot],
    now: datetime,
    min_advance_hours: int,
    max_advance_days: int,
) -> list[AvailabilitySlot]:
    """Keep slots starting between now + min hours and now + max days."""
    now = ensure_utc(now)
    earliest = now + timedelta(hours=min_advance_hours)
    latest = now + timedelta(days=max_advance_days)
    return [s for s in slots if earliest <= s.start <= latest]
