"""Booking-related Pydantic schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import ConfigDict, Field, model_validator

from ..models.booking import BookingPriority, BookingStatus
from .common import ApiModel, UtcDateTime
from .team import Team
from .venue import VenueSummary


class _BookingWindow(ApiModel):
    """Half-open booking window shared by request schemas."""

    start_date_time: UtcDateTime = Field(..., description="Window start (inclusive)")
    end_date_time: UtcDateTime = Field(..., description="Window end (exclusive)")

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date_time >= self.end_date_time:
            raise ValueError("startDateTime must be before endDateTime")
        return self


class CreateBookingRequest(_BookingWindow):
    """Request schema for a regular (non-admin) booking."""

    model_config = ConfigDict(extra="forbid")

    venue_id: UUID = Field(..., description="Venue to book")
    team_id: UUID = Field(..., description="Team the booking is for")
    purpose: Optional[str] = Field(None, max_length=255, description="Purpose of the session")
    notes: Optional[str] = Field(None, max_length=2000, description="Free-form notes")
    participant_count: Optional[int] = Field(None, ge=1, description="Expected participants")
    special_requirements: Optional[str] = Field(None, max_length=2000, description="Equipment or setup needs")


class AdminBookingRequest(CreateBookingRequest):
    """Request schema for an administrator booking, optionally overriding conflicts."""

    priority: BookingPriority = Field(BookingPriority.HIGH, description="Priority of the admin booking")
    force_override: bool = Field(False, description="Cancel conflicting bookings instead of failing")


class CheckConflictsRequest(_BookingWindow):
    """Request schema for the administrator conflict check."""

    venue_id: UUID = Field(..., description="Venue to check")
    exclude_booking_id: Optional[UUID] = Field(None, description="Booking being edited, ignored by the check")


class UpdateBookingStatusRequest(ApiModel):
    """Request schema for moving a booking through its lifecycle."""

    status: BookingStatus = Field(..., description="Target status")
    reason: Optional[str] = Field(
        None,
        max_length=2000,
        description="Approval notes, denial reason or cancellation reason depending on the status"
    )


class RescheduleBookingRequest(_BookingWindow):
    """Request schema for moving a booking to a new window at the same venue."""


class SuggestedSlot(ApiModel):
    """Alternative conflict-free window."""

    start_date_time: datetime = Field(..., description="Suggested start (UTC)")
    end_date_time: datetime = Field(..., description="Suggested end (UTC)")
    venue_id: UUID = Field(..., description="Venue ID")
    venue_name: str = Field(..., description="Venue name")


class Booking(ApiModel):
    """Booking response schema."""

    id: UUID = Field(..., description="Unique booking ID")
    venue_id: UUID = Field(..., description="Booked venue")
    team_id: UUID = Field(..., description="Booking team")
    requester_id: str = Field(..., description="User who requested the booking")
    approver_id: Optional[str] = Field(None, description="User who approved or denied the booking")
    start_date_time: datetime = Field(..., description="Window start (UTC)")
    end_date_time: datetime = Field(..., description="Window end (UTC)")
    status: BookingStatus = Field(..., description="Booking status")
    participant_count: Optional[int] = Field(None, description="Expected participants")
    purpose: Optional[str] = Field(None, description="Purpose of the session")
    notes: Optional[str] = Field(None, description="Free-form notes")
    special_requirements: Optional[str] = Field(None, description="Equipment or setup needs")
    approval_notes: Optional[str] = Field(None, description="Notes left on approval")
    denial_reason: Optional[str] = Field(None, description="Why the booking was denied")
    cancellation_reason: Optional[str] = Field(None, description="Why the booking was cancelled")
    created_by: Optional[str] = Field(None, description="Administrator who created the booking")
    priority: BookingPriority = Field(..., description="Booking priority")
    is_admin_booking: bool = Field(..., description="Created through the administrator path")
    overridden_booking_id: Optional[UUID] = Field(None, description="Booking superseded by this one")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")


class BookingWithDetails(Booking):
    """Booking with venue and team detail for display."""

    venue: VenueSummary = Field(..., description="Booked venue")
    team: Team = Field(..., description="Booking team")


class ConflictCheckResponse(ApiModel):
    """Result of the administrator conflict check."""

    has_conflict: bool = Field(..., description="True if any booking overlaps the window")
    conflicting_bookings: List[BookingWithDetails] = Field(default_factory=list, description="Overlapping bookings")
    suggested_slots: List[SuggestedSlot] = Field(default_factory=list, description="Alternative windows")


class AdminBookingResponse(ApiModel):
    """Result of an administrator booking."""

    booking: Booking = Field(..., description="Created booking")
    overridden_booking: Optional[Booking] = Field(None, description="Earliest booking cancelled by the override")
    overridden_bookings: List[Booking] = Field(default_factory=list, description="All bookings cancelled by the override")
    message: str = Field(..., description="Human-readable outcome")
