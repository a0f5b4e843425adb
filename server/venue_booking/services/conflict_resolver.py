"""
Booking conflict resolution over materialized booking lists.

Everything here is storage-agnostic: callers load the bookings (and blackout
periods) of a venue and pass them in. A booking is anything exposing ``id``,
``venue_id``, ``start_date_time``, ``end_date_time`` and ``status``; a
blackout needs only the two datetimes.

All windows are half-open, ``[start, end)``, so back-to-back sessions that
touch at an endpoint do not conflict.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Sequence

from ..models.booking import INACTIVE_STATUSES, BookingStatus

logger = logging.getLogger(__name__)

DEFAULT_SLOT_INCREMENT = timedelta(minutes=30)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Return True if ``[start_a, end_a)`` and ``[start_b, end_b)`` share any instant."""
    return start_a < end_b and start_b < end_a


def holds_window(booking: Any) -> bool:
    """Return True if the booking still occupies its time window."""
    return BookingStatus(booking.status) not in INACTIVE_STATUSES


@dataclass(frozen=True)
class TimeWindow:
    """A half-open time range."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Window start {self.start} must be before end {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeWindow") -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)

    @classmethod
    def of(cls, item: Any) -> "TimeWindow":
        """Build a window from any object with start/end datetimes."""
        return cls(item.start_date_time, item.end_date_time)


@dataclass(frozen=True)
class SuggestedSlot:
    """Conflict-free alternative window at a venue."""

    start_date_time: datetime
    end_date_time: datetime
    venue_id: str
    venue_name: str


@dataclass(frozen=True)
class AvailabilitySlot:
    """One entry of a venue's daily availability grid."""

    start_time: str
    end_time: str
    start_date_time: datetime
    end_date_time: datetime
    available: bool


def find_conflicting_bookings(
    bookings: Iterable[Any],
    venue_id: Any,
    start_date_time: datetime,
    end_date_time: datetime,
    exclude_booking_id: Optional[Any] = None,
) -> list:
    """
    Return the bookings that conflict with a proposed window.

    A booking conflicts when it belongs to the same venue, is neither denied
    nor cancelled, is not the excluded booking, and its window overlaps the
    proposed one. Results are ordered by start time.

    Args:
        bookings: Existing bookings to scan
        venue_id: Venue of the proposed window
        start_date_time: Proposed start (inclusive)
        end_date_time: Proposed end (exclusive)
        exclude_booking_id: Booking being edited, ignored during the scan

    Returns:
        Conflicting bookings sorted by start time
    """
    venue_key = str(venue_id)
    excluded = str(exclude_booking_id) if exclude_booking_id is not None else None

    conflicts = [
        booking
        for booking in bookings
        if str(booking.venue_id) == venue_key
        and holds_window(booking)
        and (excluded is None or str(booking.id) != excluded)
        and intervals_overlap(start_date_time, end_date_time, booking.start_date_time, booking.end_date_time)
    ]
    conflicts.sort(key=lambda booking: booking.start_date_time)
    return conflicts


def has_booking_conflict(
    bookings: Iterable[Any],
    venue_id: Any,
    start_date_time: datetime,
    end_date_time: datetime,
    exclude_booking_id: Optional[Any] = None,
) -> bool:
    """Return True if at least one booking conflicts with the proposed window."""
    return bool(find_conflicting_bookings(bookings, venue_id, start_date_time, end_date_time, exclude_booking_id))


def find_overlapping_windows(items: Iterable[Any], start_date_time: datetime, end_date_time: datetime) -> list:
    """Return items (e.g. blackouts) whose window overlaps the given one."""
    return [
        item
        for item in items
        if intervals_overlap(start_date_time, end_date_time, item.start_date_time, item.end_date_time)
    ]


def _busy_windows(bookings: Iterable[Any], venue_id: Any, blackouts: Iterable[Any]) -> list[TimeWindow]:
    venue_key = str(venue_id)
    busy = [
        TimeWindow.of(booking)
        for booking in bookings
        if str(booking.venue_id) == venue_key and holds_window(booking)
    ]
    busy.extend(TimeWindow.of(blackout) for blackout in blackouts)
    return busy


def suggest_alternative_slots(
    bookings: Sequence[Any],
    *,
    venue_id: Any,
    venue_name: str,
    requested_start: datetime,
    requested_end: datetime,
    working_start: time,
    working_end: time,
    duration: Optional[timedelta] = None,
    blackouts: Sequence[Any] = (),
    increment: timedelta = DEFAULT_SLOT_INCREMENT,
    max_results: int = 3,
    search_days: int = 7,
) -> list[SuggestedSlot]:
    """
    Propose conflict-free windows at the same venue, first-fit.

    The scan starts where the requested window ends and walks forward in
    ``increment`` steps, keeping each candidate inside the venue's working
    hours. When the requested day is exhausted it continues from the opening
    time of each following day, up to ``search_days`` days later. A hit is
    recorded and the scan resumes at its end, so suggestions never overlap
    one another.

    Args:
        bookings: Existing bookings of the venue
        venue_id: Venue to suggest slots for
        venue_name: Display name attached to each suggestion
        requested_start: Start of the window the caller wanted
        requested_end: End of the window the caller wanted
        working_start: Daily opening time of the venue
        working_end: Daily closing time of the venue
        duration: Length of the suggested windows; defaults to the requested length
        blackouts: Blackout periods that also block candidates
        increment: Step between candidate start times
        max_results: Maximum number of suggestions
        search_days: Days after the requested day to include

    Returns:
        Up to ``max_results`` suggestions in chronological order

    Raises:
        ValueError: If the duration or increment is not positive
    """
    duration = duration if duration is not None else requested_end - requested_start
    if duration <= timedelta(0):
        raise ValueError("Suggested slot duration must be positive")
    if increment <= timedelta(0):
        raise ValueError("Slot increment must be positive")

    busy = _busy_windows(bookings, venue_id, blackouts)
    suggestions: list[SuggestedSlot] = []

    if max_results <= 0:
        return suggestions

    first_day: date = requested_start.date()

    for offset in range(search_days + 1):
        current_day = first_day + timedelta(days=offset)
        day_open = datetime.combine(current_day, working_start)
        day_close = datetime.combine(current_day, working_end)

        cursor = max(requested_end, day_open) if offset == 0 else day_open

        while cursor + duration <= day_close:
            candidate = TimeWindow(cursor, cursor + duration)

            if any(candidate.overlaps(window) for window in busy):
                cursor += increment
                continue

            suggestions.append(
                SuggestedSlot(
                    start_date_time=candidate.start,
                    end_date_time=candidate.end,
                    venue_id=str(venue_id),
                    venue_name=venue_name,
                )
            )
            if len(suggestions) >= max_results:
                return suggestions

            cursor = candidate.end

    logger.debug(
        "Alternative slot scan exhausted search horizon",
        extra={
            "venue_id": str(venue_id),
            "found": len(suggestions),
            "search_days": search_days,
        }
    )
    return suggestions


def hourly_availability(
    bookings: Sequence[Any],
    *,
    venue_id: Any,
    day: date,
    working_start: time,
    working_end: time,
    blackouts: Sequence[Any] = (),
) -> list[AvailabilitySlot]:
    """
    Lay out one-hour slots across a venue's working day.

    The first slot starts at the opening time; a trailing partial hour is
    clipped to the closing time. A slot is unavailable if it overlaps an
    active booking or a blackout.
    """
    busy = _busy_windows(bookings, venue_id, blackouts)
    day_open = datetime.combine(day, working_start)
    day_close = datetime.combine(day, working_end)

    slots: list[AvailabilitySlot] = []
    cursor = day_open
    while cursor < day_close:
        slot_end = min(cursor + timedelta(hours=1), day_close)
        window = TimeWindow(cursor, slot_end)
        slots.append(
            AvailabilitySlot(
                start_time=cursor.strftime("%H:%M"),
                end_time=slot_end.strftime("%H:%M"),
                start_date_time=cursor,
                end_date_time=slot_end,
                available=not any(window.overlaps(other) for other in busy),
            )
        )
        cursor = slot_end

    return slots
