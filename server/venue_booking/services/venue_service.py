"""Venue service: venues, blackout periods and daily availability."""

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import lock_venue
from ..core.exceptions import NotFoundError
from ..models.blackout import VenueBlackout
from ..models.booking import INACTIVE_STATUSES, Booking
from ..models.venue import Venue
from ..schemas.venue import CreateBlackoutRequest, CreateVenueRequest
from .conflict_resolver import AvailabilitySlot, hourly_availability

logger = logging.getLogger(__name__)


class VenueService:
    """Service for venue-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_venue(self, request: CreateVenueRequest) -> Venue:
        """
        Create a new venue.

        Args:
            request: Venue creation request

        Returns:
            Created venue entity
        """
        venue = Venue(
            name=request.name,
            location=request.location,
            capacity=request.capacity,
            description=request.description,
            working_start_time=request.working_start_time,
            working_end_time=request.working_end_time,
            buffer_time_minutes=request.buffer_time_minutes,
        )

        self.db.add(venue)
        await self.db.commit()
        await self.db.refresh(venue)

        logger.info(
            "Venue created successfully",
            extra={
                "venue_id": str(venue.id),
                "venue_name": venue.name,
                "working_hours": f"{venue.working_start_time}-{venue.working_end_time}",
            }
        )

        return venue

    async def list_venues(self, active_only: bool = False) -> list[Venue]:
        """List venues ordered by name."""
        stmt = select(Venue).order_by(Venue.name)
        if active_only:
            stmt = stmt.where(Venue.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_venue_by_id(self, venue_id: UUID) -> Optional[Venue]:
        """Get venue by ID."""
        stmt = select(Venue).where(Venue.id == venue_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_venue_by_id_or_raise(self, venue_id: UUID) -> Venue:
        """
        Get venue by ID or raise NotFoundError.

        Raises:
            NotFoundError: If venue not found
        """
        venue = await self.get_venue_by_id(venue_id)
        if not venue:
            logger.warning("Venue not found", extra={"venue_id": str(venue_id)})
            raise NotFoundError(resource_type="venue", resource_id=str(venue_id))
        return venue

    async def get_venue_with_lock(self, venue_id: UUID) -> Venue:
        """
        Get venue by ID while holding the per-venue booking lock.

        The lock lives until the surrounding transaction commits or rolls
        back, so a conflict check followed by an insert cannot interleave
        with another request for the same venue.

        Raises:
            NotFoundError: If venue not found
        """
        await lock_venue(self.db, venue_id)
        venue = await self.get_venue_by_id_or_raise(venue_id)

        logger.debug("Acquired booking lock for venue", extra={"venue_id": str(venue_id)})

        return venue

    async def create_blackout(
        self,
        venue_id: UUID,
        request: CreateBlackoutRequest,
        created_by: str,
    ) -> VenueBlackout:
        """
        Block a venue for a period.

        Raises:
            NotFoundError: If venue not found
        """
        await self.get_venue_by_id_or_raise(venue_id)

        blackout = VenueBlackout(
            venue_id=venue_id,
            start_date_time=request.start_date_time,
            end_date_time=request.end_date_time,
            reason=request.reason,
            created_by=created_by,
        )

        self.db.add(blackout)
        await self.db.commit()
        await self.db.refresh(blackout)

        logger.info(
            "Venue blackout created",
            extra={
                "blackout_id": str(blackout.id),
                "venue_id": str(venue_id),
                "start": blackout.start_date_time.isoformat(),
                "end": blackout.end_date_time.isoformat(),
                "created_by": created_by,
            }
        )

        return blackout

    async def get_blackouts(
        self,
        venue_id: UUID,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> list[VenueBlackout]:
        """List blackouts of a venue, optionally only those touching a window."""
        stmt = select(VenueBlackout).where(VenueBlackout.venue_id == venue_id)
        if window_end is not None:
            stmt = stmt.where(VenueBlackout.start_date_time < window_end)
        if window_start is not None:
            stmt = stmt.where(VenueBlackout.end_date_time > window_start)
        stmt = stmt.order_by(VenueBlackout.start_date_time)

        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_available_time_slots(self, venue_id: UUID, day: date) -> list[AvailabilitySlot]:
        """
        Hourly availability grid for a venue on one day.

        Raises:
            NotFoundError: If venue not found
        """
        venue = await self.get_venue_by_id_or_raise(venue_id)

        day_start = datetime.combine(day, venue.working_start_time)
        day_end = datetime.combine(day, venue.working_end_time)

        stmt = select(Booking).where(
            Booking.venue_id == venue_id,
            Booking.status.not_in(list(INACTIVE_STATUSES)),
            Booking.start_date_time < day_end,
            Booking.end_date_time > day_start,
        )
        result = await self.db.execute(stmt)
        bookings = list(result.scalars())
        blackouts = await self.get_blackouts(venue_id, day_start, day_end)

        slots = hourly_availability(
            bookings,
            venue_id=venue_id,
            day=day,
            working_start=venue.working_start_time,
            working_end=venue.working_end_time,
            blackouts=blackouts,
        )

        logger.info(
            "Venue availability computed",
            extra={
                "venue_id": str(venue_id),
                "day": day.isoformat(),
                "free_slots": sum(1 for slot in slots if slot.available),
                "total_slots": len(slots),
            }
        )

        return slots
