"""Booking service for business logic operations."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import Settings, settings
from ..core.database import lock_venue
from ..core.exceptions import (
    BookingConflictError,
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
    VenueUnavailableError,
)
from ..core.observability import get_logger, metrics_collector
from ..models.booking import (
    INACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingPriority,
    BookingStatus,
    can_transition,
)
from ..models.venue import Venue
from ..schemas.booking import AdminBookingRequest, BookingWithDetails, CreateBookingRequest
from ..schemas.booking import SuggestedSlot as SuggestedSlotSchema
from .conflict_resolver import (
    SuggestedSlot,
    find_conflicting_bookings,
    find_overlapping_windows,
    suggest_alternative_slots,
)
from .team_service import TeamService
from .venue_service import VenueService

logger = logging.getLogger(__name__)
audit_logger = get_logger("venue_booking.audit")


@dataclass
class ConflictReport:
    """Outcome of a detailed conflict check."""

    conflicting_bookings: List[Booking] = field(default_factory=list)
    suggested_slots: List[SuggestedSlot] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_bookings)


@dataclass
class AdminBookingResult:
    """Administrator booking together with the bookings it superseded."""

    booking: Booking
    overridden_bookings: List[Booking] = field(default_factory=list)

    @property
    def overridden_booking(self) -> Optional[Booking]:
        return self.overridden_bookings[0] if self.overridden_bookings else None

    @property
    def message(self) -> str:
        if not self.overridden_bookings:
            return "Admin booking created successfully"
        return (
            f"Admin booking created successfully; overrode {len(self.overridden_bookings)} "
            f"conflicting booking(s)"
        )


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession, config: Settings = settings):
        self.db = db
        self.config = config
        self.venue_service = VenueService(db)
        self.team_service = TeamService(db)

    async def _load_active_bookings(
        self,
        venue_id: UUID,
        window_start: datetime,
        window_end: datetime,
        with_details: bool = False,
    ) -> list[Booking]:
        """Load the venue's active bookings that touch a window."""
        stmt = select(Booking).where(
            Booking.venue_id == venue_id,
            Booking.status.not_in(list(INACTIVE_STATUSES)),
            Booking.start_date_time < window_end,
            Booking.end_date_time > window_start,
        )
        if with_details:
            stmt = stmt.options(
                selectinload(Booking.venue),
                selectinload(Booking.team),
            ).execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def check_booking_conflicts(
        self,
        venue_id: UUID,
        start_date_time: datetime,
        end_date_time: datetime,
        exclude_booking_id: Optional[UUID] = None,
    ) -> bool:
        """
        Check whether a window collides with any active booking of the venue.

        Boolean view of the same conflict search the write paths run under
        the venue lock; they keep the matching bookings to build the 409
        payload instead of calling this.

        Args:
            venue_id: Venue to check
            start_date_time: Proposed start (inclusive)
            end_date_time: Proposed end (exclusive)
            exclude_booking_id: Booking being edited, ignored by the check

        Returns:
            True if at least one booking conflicts
        """
        conflicts = await self._find_conflicts(venue_id, start_date_time, end_date_time, exclude_booking_id)
        return bool(conflicts)

    async def _find_conflicts(
        self,
        venue_id: UUID,
        start_date_time: datetime,
        end_date_time: datetime,
        exclude_booking_id: Optional[UUID] = None,
        with_details: bool = False,
    ) -> list[Booking]:
        candidates = await self._load_active_bookings(venue_id, start_date_time, end_date_time, with_details)
        conflicts = find_conflicting_bookings(
            candidates, venue_id, start_date_time, end_date_time, exclude_booking_id
        )

        if conflicts:
            metrics_collector.record_conflict(str(venue_id))
            logger.info(
                "Booking conflict detected",
                extra={
                    "venue_id": str(venue_id),
                    "start": start_date_time.isoformat(),
                    "end": end_date_time.isoformat(),
                    "conflict_count": len(conflicts),
                    "conflicting_booking_ids": [str(booking.id) for booking in conflicts],
                }
            )

        return conflicts

    async def check_booking_conflicts_with_details(
        self,
        venue_id: UUID,
        start_date_time: datetime,
        end_date_time: datetime,
        exclude_booking_id: Optional[UUID] = None,
        include_suggestions: bool = True,
    ) -> ConflictReport:
        """
        Detailed conflict check for administrators.

        Conflicting bookings come back with their venue and team loaded. When
        there is a conflict and ``include_suggestions`` is set, alternative
        windows of the same length are attached.

        Raises:
            NotFoundError: If venue not found
        """
        await self.venue_service.get_venue_by_id_or_raise(venue_id)

        conflicts = await self._find_conflicts(
            venue_id, start_date_time, end_date_time, exclude_booking_id, with_details=True
        )
        report = ConflictReport(conflicting_bookings=conflicts)

        if conflicts and include_suggestions:
            report.suggested_slots = await self.get_suggested_alternative_slots(
                venue_id, start_date_time, end_date_time
            )

        return report

    async def get_suggested_alternative_slots(
        self,
        venue_id: UUID,
        start_date_time: datetime,
        end_date_time: datetime,
        duration: Optional[timedelta] = None,
    ) -> list[SuggestedSlot]:
        """
        Suggest conflict-free windows at the same venue.

        Args:
            venue_id: Venue to search
            start_date_time: Start of the window that was wanted
            end_date_time: End of the window that was wanted
            duration: Length of the suggestions; defaults to the wanted window's length

        Returns:
            Up to ``suggestion_max_results`` windows in chronological order

        Raises:
            NotFoundError: If venue not found
        """
        venue = await self.venue_service.get_venue_by_id_or_raise(venue_id)

        horizon_start = datetime.combine(start_date_time.date(), datetime.min.time())
        horizon_end = horizon_start + timedelta(days=self.config.suggestion_search_days + 1)

        bookings = await self._load_active_bookings(venue_id, horizon_start, horizon_end)
        blackouts = await self.venue_service.get_blackouts(venue_id, horizon_start, horizon_end)

        suggestions = suggest_alternative_slots(
            bookings,
            venue_id=venue.id,
            venue_name=venue.name,
            requested_start=start_date_time,
            requested_end=end_date_time,
            working_start=venue.working_start_time,
            working_end=venue.working_end_time,
            duration=duration,
            blackouts=blackouts,
            increment=timedelta(minutes=self.config.suggestion_increment_minutes),
            max_results=self.config.suggestion_max_results,
            search_days=self.config.suggestion_search_days,
        )

        metrics_collector.record_suggestion_request(str(venue_id))
        logger.info(
            "Alternative slots suggested",
            extra={
                "venue_id": str(venue_id),
                "requested_start": start_date_time.isoformat(),
                "requested_end": end_date_time.isoformat(),
                "suggestion_count": len(suggestions),
            }
        )

        return suggestions

    async def _conflict_error(
        self,
        venue: Venue,
        conflicts: list[Booking],
        start_date_time: datetime,
        end_date_time: datetime,
    ) -> BookingConflictError:
        """Build the 409 payload: conflicting bookings plus alternatives."""
        suggestions = await self.get_suggested_alternative_slots(venue.id, start_date_time, end_date_time)
        return BookingConflictError(
            venue_id=str(venue.id),
            conflicting_bookings=[BookingWithDetails.model_validate(booking).to_json() for booking in conflicts],
            suggested_slots=[SuggestedSlotSchema.model_validate(slot).to_json() for slot in suggestions],
        )

    def _check_duration(self, start_date_time: datetime, end_date_time: datetime) -> None:
        limit_hours = self.config.max_booking_duration_hours
        if limit_hours is None:
            return
        if end_date_time - start_date_time > timedelta(hours=limit_hours):
            raise ValidationError(
                detail=f"Bookings cannot be longer than {limit_hours:g} hours",
                errors={"maxBookingDurationHours": limit_hours},
            )

    async def _check_blackouts(self, venue: Venue, start_date_time: datetime, end_date_time: datetime) -> None:
        blackouts = await self.venue_service.get_blackouts(venue.id, start_date_time, end_date_time)
        blocking = find_overlapping_windows(blackouts, start_date_time, end_date_time)
        if blocking:
            blackout = blocking[0]
            logger.warning(
                "Booking rejected - venue blackout",
                extra={
                    "venue_id": str(venue.id),
                    "blackout_id": str(blackout.id),
                    "start": start_date_time.isoformat(),
                    "end": end_date_time.isoformat(),
                }
            )
            raise VenueUnavailableError(
                venue_id=str(venue.id),
                reason=blackout.reason or "blackout period",
                blackout_id=str(blackout.id),
            )

    async def create_booking(self, request: CreateBookingRequest, requester_id: str) -> Booking:
        """
        Create a regular booking request.

        The venue lock is held from the conflict check until commit.

        Args:
            request: Booking creation request
            requester_id: User creating the booking

        Returns:
            Created booking in ``requested`` status

        Raises:
            NotFoundError: If venue or team not found
            ValidationError: If the venue is inactive or the window is too long
            VenueUnavailableError: If the window overlaps a venue blackout
            BookingConflictError: If the window overlaps an active booking
        """
        self._check_duration(request.start_date_time, request.end_date_time)

        venue = await self.venue_service.get_venue_with_lock(request.venue_id)
        if not venue.is_active:
            raise ValidationError(detail=f"Venue {venue.id} is not accepting bookings")
        await self.team_service.get_team_by_id_or_raise(request.team_id)

        await self._check_blackouts(venue, request.start_date_time, request.end_date_time)

        conflicts = await self._find_conflicts(
            venue.id, request.start_date_time, request.end_date_time, with_details=True
        )
        if conflicts:
            raise await self._conflict_error(venue, conflicts, request.start_date_time, request.end_date_time)

        booking = Booking(
            venue_id=venue.id,
            team_id=request.team_id,
            requester_id=requester_id,
            start_date_time=request.start_date_time,
            end_date_time=request.end_date_time,
            status=BookingStatus.REQUESTED,
            priority=BookingPriority.NORMAL,
            purpose=request.purpose,
            notes=request.notes,
            participant_count=request.participant_count,
            special_requirements=request.special_requirements,
        )

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_created(str(venue.id), admin=False)
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "venue_id": str(venue.id),
                "team_id": str(request.team_id),
                "requester_id": requester_id,
                "start": booking.start_date_time.isoformat(),
                "end": booking.end_date_time.isoformat(),
            }
        )

        return booking

    async def create_admin_booking(self, request: AdminBookingRequest, admin_id: str) -> AdminBookingResult:
        """
        Create an approved booking on behalf of an administrator.

        Without ``force_override`` a conflict fails exactly like a regular
        booking. With it, every conflicting booking is cancelled and the new
        booking records the earliest of them in ``overridden_booking_id``.
        Blackout periods do not apply to administrator bookings.

        Raises:
            NotFoundError: If venue or team not found
            BookingConflictError: If conflicts exist and override is not forced
        """
        venue = await self.venue_service.get_venue_with_lock(request.venue_id)
        await self.team_service.get_team_by_id_or_raise(request.team_id)

        conflicts = await self._find_conflicts(
            venue.id, request.start_date_time, request.end_date_time, with_details=True
        )
        if conflicts and not request.force_override:
            raise await self._conflict_error(venue, conflicts, request.start_date_time, request.end_date_time)

        booking_id = uuid4()
        for overridden in conflicts:
            overridden.status = BookingStatus.CANCELLED
            overridden.cancellation_reason = f"Overridden by admin booking {booking_id} (created by {admin_id})"
            self.db.add(overridden)

        booking = Booking(
            id=booking_id,
            venue_id=venue.id,
            team_id=request.team_id,
            requester_id=admin_id,
            approver_id=admin_id,
            created_by=admin_id,
            start_date_time=request.start_date_time,
            end_date_time=request.end_date_time,
            status=BookingStatus.APPROVED,
            priority=request.priority,
            is_admin_booking=True,
            overridden_booking_id=conflicts[0].id if conflicts else None,
            purpose=request.purpose,
            notes=request.notes,
            participant_count=request.participant_count,
            special_requirements=request.special_requirements,
        )

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)
        for overridden in conflicts:
            await self.db.refresh(overridden)

        metrics_collector.record_booking_created(str(venue.id), admin=True)
        metrics_collector.record_overridden(len(conflicts))
        logger.info(
            "Admin booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "venue_id": str(venue.id),
                "created_by": admin_id,
                "priority": BookingPriority(booking.priority).value,
                "overridden_booking_ids": [str(overridden.id) for overridden in conflicts],
            }
        )

        if conflicts:
            override_log = audit_logger.with_context(admin_id=admin_id, booking_id=str(booking.id))
            for overridden in conflicts:
                override_log.warning(
                    "booking_overridden",
                    overridden_booking_id=str(overridden.id),
                    requester_id=overridden.requester_id,
                    reason=overridden.cancellation_reason,
                )

        return AdminBookingResult(booking=booking, overridden_bookings=conflicts)

    async def transition_status(
        self,
        booking_id: UUID,
        status: BookingStatus,
        actor_id: str,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to a new lifecycle status.

        The booking is re-read under the venue lock, so a concurrent
        cancellation or override is seen before the transition is validated.
        Approval re-runs the conflict check against the other bookings of the
        venue.

        Args:
            booking_id: Booking to update
            status: Target status
            actor_id: User performing the transition
            reason: Approval notes, denial reason or cancellation reason

        Returns:
            Updated booking

        Raises:
            NotFoundError: If booking not found
            InvalidStatusTransitionError: If the transition is not allowed
            BookingConflictError: If approving would double-book the venue
        """
        booking = await self._get_booking_for_update(booking_id)
        current = BookingStatus(booking.status)
        target = BookingStatus(status)

        if not can_transition(current, target):
            logger.warning(
                "Booking status transition rejected",
                extra={
                    "booking_id": str(booking_id),
                    "current_status": current.value,
                    "requested_status": target.value,
                }
            )
            raise InvalidStatusTransitionError(str(booking_id), current.value, target.value)

        if target == BookingStatus.APPROVED:
            conflicts = await self._find_conflicts(
                booking.venue_id,
                booking.start_date_time,
                booking.end_date_time,
                exclude_booking_id=booking.id,
                with_details=True,
            )
            if conflicts:
                raise await self._conflict_error(
                    booking.venue, conflicts, booking.start_date_time, booking.end_date_time
                )
            booking.approver_id = actor_id
            booking.approval_notes = reason
        elif target == BookingStatus.DENIED:
            booking.approver_id = actor_id
            booking.denial_reason = reason
        elif target == BookingStatus.CANCELLED:
            booking.cancellation_reason = reason

        booking.status = target
        self.db.add(booking)
        await self.db.commit()

        metrics_collector.record_status_transition(target.value)
        logger.info(
            "Booking status updated",
            extra={
                "booking_id": str(booking_id),
                "from_status": current.value,
                "to_status": target.value,
                "actor_id": actor_id,
            }
        )

        return await self.get_booking_by_id_or_raise(booking_id)

    async def reschedule_booking(
        self,
        booking_id: UUID,
        start_date_time: datetime,
        end_date_time: datetime,
    ) -> Booking:
        """
        Move a booking to a new window at the same venue.

        Raises:
            NotFoundError: If booking not found
            ConflictError: If the booking is already denied, cancelled or completed
            VenueUnavailableError: If the new window overlaps a venue blackout
            BookingConflictError: If the new window overlaps another booking
        """
        booking = await self._get_booking_for_update(booking_id)
        current = BookingStatus(booking.status)

        if current in TERMINAL_STATUSES:
            raise ConflictError(
                detail=f"Booking {booking_id} is {current.value} and cannot be rescheduled",
                conflicting_resource={"booking_id": str(booking_id), "status": current.value},
            )

        if not booking.is_admin_booking:
            self._check_duration(start_date_time, end_date_time)

        venue = booking.venue
        if not booking.is_admin_booking:
            await self._check_blackouts(venue, start_date_time, end_date_time)

        conflicts = await self._find_conflicts(
            venue.id, start_date_time, end_date_time, exclude_booking_id=booking.id, with_details=True
        )
        if conflicts:
            raise await self._conflict_error(venue, conflicts, start_date_time, end_date_time)

        previous_start, previous_end = booking.start_date_time, booking.end_date_time
        booking.start_date_time = start_date_time
        booking.end_date_time = end_date_time
        self.db.add(booking)
        await self.db.commit()

        logger.info(
            "Booking rescheduled",
            extra={
                "booking_id": str(booking_id),
                "venue_id": str(venue.id),
                "previous_start": previous_start.isoformat(),
                "previous_end": previous_end.isoformat(),
                "start": start_date_time.isoformat(),
                "end": end_date_time.isoformat(),
            }
        )

        return await self.get_booking_by_id_or_raise(booking_id)

    async def list_bookings(
        self,
        venue_id: Optional[UUID] = None,
        team_id: Optional[UUID] = None,
        requester_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start_from: Optional[datetime] = None,
        end_before: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Booking]:
        """List bookings with venue and team loaded, ordered by start time."""
        stmt = select(Booking).options(selectinload(Booking.venue), selectinload(Booking.team))

        if venue_id is not None:
            stmt = stmt.where(Booking.venue_id == venue_id)
        if team_id is not None:
            stmt = stmt.where(Booking.team_id == team_id)
        if requester_id is not None:
            stmt = stmt.where(Booking.requester_id == requester_id)
        if status is not None:
            stmt = stmt.where(Booking.status == BookingStatus(status))
        if start_from is not None:
            stmt = stmt.where(Booking.end_date_time > start_from)
        if end_before is not None:
            stmt = stmt.where(Booking.start_date_time < end_before)

        stmt = stmt.order_by(Booking.start_date_time).limit(limit).offset(offset)
        stmt = stmt.execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def _get_booking_for_update(self, booking_id: UUID) -> Booking:
        booking = await self.get_booking_by_id_or_raise(booking_id)
        await lock_venue(self.db, booking.venue_id)
        # Status read before the lock may be stale
        return await self.get_booking_by_id_or_raise(booking_id)

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        """Get booking by ID with venue and team loaded."""
        stmt = (
            select(Booking)
            .options(selectinload(Booking.venue), selectinload(Booking.team))
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(self, booking_id: UUID) -> Booking:
        """Get booking by ID or raise NotFoundError."""
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning(
                "Booking not found",
                extra={"booking_id": str(booking_id)}
            )
            raise NotFoundError(
                resource_type="booking",
                resource_id=str(booking_id)
            )
        return booking

    async def complete_elapsed_bookings(self, now: Optional[datetime] = None, batch_size: int = 100) -> int:
        """
        Mark approved bookings whose window has ended as completed.

        Args:
            now: Reference time (naive UTC); defaults to the current time
            batch_size: Number of bookings to process in one batch

        Returns:
            Number of bookings completed
        """
        current_time = now or datetime.utcnow()

        stmt = (
            select(Booking)
            .where(
                Booking.status == BookingStatus.APPROVED,
                Booking.end_date_time <= current_time
            )
            .order_by(Booking.end_date_time)
            .limit(batch_size)
        )

        result = await self.db.execute(stmt)
        elapsed = list(result.scalars())

        for booking in elapsed:
            booking.status = BookingStatus.COMPLETED
            self.db.add(booking)

        if elapsed:
            await self.db.commit()
            for _ in elapsed:
                metrics_collector.record_status_transition(BookingStatus.COMPLETED.value)
            logger.info(
                "Elapsed bookings completed",
                extra={
                    "completed_count": len(elapsed),
                    "batch_size": batch_size,
                    "reference_time": current_time.isoformat(),
                }
            )

        metrics_collector.set_completed_last_run(len(elapsed))
        return len(elapsed)
