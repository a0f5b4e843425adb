"""Venue, availability and blackout Pydantic schemas."""

from datetime import date, datetime, time
from typing import List
from uuid import UUID

from pydantic import Field, model_validator

from .common import ApiModel, UtcDateTime


class CreateVenueRequest(ApiModel):
    """Request schema for creating a venue."""

    name: str = Field(..., min_length=1, max_length=100, description="Venue name")
    location: str | None = Field(None, max_length=200, description="Venue location")
    capacity: int = Field(..., ge=1, description="Maximum number of participants")
    description: str | None = Field(None, max_length=2000, description="Venue description")
    working_start_time: time = Field(time(6, 0), description="Daily opening time")
    working_end_time: time = Field(time(22, 0), description="Daily closing time")
    buffer_time_minutes: int = Field(15, ge=0, le=240, description="Buffer between sessions in minutes")

    @model_validator(mode="after")
    def check_working_hours(self) -> "CreateVenueRequest":
        if self.working_start_time >= self.working_end_time:
            raise ValueError("workingStartTime must be before workingEndTime")
        return self


class VenueSummary(ApiModel):
    """Venue detail embedded in booking responses."""

    id: UUID = Field(..., description="Unique venue ID")
    name: str = Field(..., description="Venue name")
    location: str | None = Field(None, description="Venue location")
    capacity: int = Field(..., description="Maximum number of participants")


class Venue(VenueSummary):
    """Venue response schema."""

    description: str | None = Field(None, description="Venue description")
    working_start_time: time = Field(..., description="Daily opening time")
    working_end_time: time = Field(..., description="Daily closing time")
    buffer_time_minutes: int = Field(..., description="Buffer between sessions in minutes")
    is_active: bool = Field(..., description="Whether the venue accepts bookings")


class AvailabilitySlot(ApiModel):
    """One hour of a venue's working day."""

    start_time: str = Field(..., description="Slot start (HH:MM)")
    end_time: str = Field(..., description="Slot end (HH:MM)")
    start_date_time: datetime = Field(..., description="Slot start (UTC)")
    end_date_time: datetime = Field(..., description="Slot end (UTC)")
    available: bool = Field(..., description="False if a booking or blackout overlaps the slot")


class VenueAvailability(ApiModel):
    """Availability grid for a venue on one day."""

    venue_id: UUID = Field(..., description="Venue ID")
    day: date = Field(..., description="Day the grid covers")
    slots: List[AvailabilitySlot] = Field(default_factory=list, description="Hourly slots")


class CreateBlackoutRequest(ApiModel):
    """Request schema for blocking a venue for a period."""

    start_date_time: UtcDateTime = Field(..., description="Blackout start")
    end_date_time: UtcDateTime = Field(..., description="Blackout end")
    reason: str = Field(..., min_length=1, max_length=200, description="Why the venue is unavailable")

    @model_validator(mode="after")
    def check_window(self) -> "CreateBlackoutRequest":
        if self.start_date_time >= self.end_date_time:
            raise ValueError("startDateTime must be before endDateTime")
        return self


class VenueBlackout(ApiModel):
    """Venue blackout response schema."""

    id: UUID = Field(..., description="Unique blackout ID")
    venue_id: UUID = Field(..., description="Venue ID")
    start_date_time: datetime = Field(..., description="Blackout start (UTC)")
    end_date_time: datetime = Field(..., description="Blackout end (UTC)")
    reason: str = Field(..., description="Why the venue is unavailable")
    created_by: str = Field(..., description="Administrator who created the blackout")
