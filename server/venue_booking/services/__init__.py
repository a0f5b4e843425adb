"""Service layer package."""

from .booking_service import AdminBookingResult, BookingService, ConflictReport
from .team_service import TeamService
from .venue_service import VenueService

__all__ = [
    "AdminBookingResult",
    "BookingService",
    "ConflictReport",
    "TeamService",
    "VenueService",
]
