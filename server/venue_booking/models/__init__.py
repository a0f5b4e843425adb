"""Models module exporting all database models."""

from .blackout import VenueBlackout
from .booking import (
    ALLOWED_TRANSITIONS,
    INACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingPriority,
    BookingStatus,
    can_transition,
)
from .team import Team
from .venue import Venue

__all__ = [
    # Core entities
    "Venue",
    "Team",
    "VenueBlackout",

    # Booking entity and lifecycle
    "Booking",
    "BookingStatus",
    "BookingPriority",
    "ALLOWED_TRANSITIONS",
    "INACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "can_transition",
]
