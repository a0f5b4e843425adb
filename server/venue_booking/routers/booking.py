"""Booking router for regular booking operations."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import ROLE_CUSTOMER, STAFF_ROLES, RequiredAuth, has_any_role
from ..core.exceptions import AuthorizationError, ProblemDetailsException
from ..models.booking import BookingStatus
from ..schemas.booking import (
    BookingWithDetails,
    CreateBookingRequest,
    RescheduleBookingRequest,
    UpdateBookingStatusRequest,
)
from ..schemas.common import to_naive_utc
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["booking"])

DB_DEPENDENCY = Depends(get_db)

# Transitions only managers and superadmins may perform
STAFF_TRANSITIONS = frozenset({
    BookingStatus.PENDING,
    BookingStatus.APPROVED,
    BookingStatus.DENIED,
    BookingStatus.COMPLETED,
})


def _is_staff(user: dict) -> bool:
    return has_any_role(user, *STAFF_ROLES)


def _customer_only(user: dict) -> bool:
    """Customers without a staff role only see their own bookings."""
    return has_any_role(user, ROLE_CUSTOMER) and not _is_staff(user)


def _ensure_owner_or_staff(user: dict, booking) -> None:
    if booking.requester_id != user["user_id"] and not _is_staff(user):
        raise AuthorizationError(
            detail="Only the requester or a manager may change this booking",
            required_roles=list(STAFF_ROLES),
        )


def _to_response(booking) -> dict:
    return BookingWithDetails.model_validate(booking).to_json()


@router.post("", response_model=BookingWithDetails, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """
    Request a booking for a team at a venue.

    Conflicts are never overridden here; an overlapping window is answered
    with 409 and suggested alternatives.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.create_booking(request, requester_id=user["user_id"])
        booking = await booking_service.get_booking_by_id_or_raise(booking.id)

        return JSONResponse(status_code=201, content=_to_response(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "venue_id": str(request.venue_id),
                "team_id": str(request.team_id),
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[BookingWithDetails])
async def list_bookings(
    venue_id: Optional[UUID] = Query(None, alias="venueId"),
    team_id: Optional[UUID] = Query(None, alias="teamId"),
    requester_id: Optional[str] = Query(None, alias="requesterId"),
    status: Optional[BookingStatus] = Query(None),
    start_from: Optional[datetime] = Query(None, alias="from"),
    end_before: Optional[datetime] = Query(None, alias="to"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """List bookings, filtered by venue, team, requester, status and time range."""
    booking_service = BookingService(db)

    if _customer_only(user):
        requester_id = user["user_id"]

    try:
        bookings = await booking_service.list_bookings(
            venue_id=venue_id,
            team_id=team_id,
            requester_id=requester_id,
            status=status,
            start_from=to_naive_utc(start_from) if start_from else None,
            end_before=to_naive_utc(end_before) if end_before else None,
            limit=limit,
            offset=offset,
        )

        return JSONResponse(status_code=200, content=[_to_response(b) for b in bookings])

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking listing",
            extra={"error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{booking_id}", response_model=BookingWithDetails)
async def get_booking(
    booking_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """Get a booking with its venue and team."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_by_id_or_raise(booking_id)

        if _customer_only(user) and booking.requester_id != user["user_id"]:
            raise AuthorizationError(detail="Customers may only view their own bookings")

        return JSONResponse(status_code=200, content=_to_response(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking retrieval",
            extra={"booking_id": str(booking_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{booking_id}/status", response_model=BookingWithDetails)
async def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """
    Move a booking through its lifecycle.

    Approving, denying and completing need a manager or superadmin; the
    requester may also cancel their own booking.
    """
    booking_service = BookingService(db)

    try:
        if request.status in STAFF_TRANSITIONS:
            if not _is_staff(user):
                raise AuthorizationError(required_roles=list(STAFF_ROLES))
        else:
            booking = await booking_service.get_booking_by_id_or_raise(booking_id)
            _ensure_owner_or_staff(user, booking)

        booking = await booking_service.transition_status(
            booking_id,
            request.status,
            actor_id=user["user_id"],
            reason=request.reason,
        )

        return JSONResponse(status_code=200, content=_to_response(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking status update",
            extra={
                "booking_id": str(booking_id),
                "requested_status": request.status.value,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{booking_id}/schedule", response_model=BookingWithDetails)
async def reschedule_booking(
    booking_id: UUID,
    request: RescheduleBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """Move a booking to a new window at the same venue."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_by_id_or_raise(booking_id)
        _ensure_owner_or_staff(user, booking)

        booking = await booking_service.reschedule_booking(
            booking_id,
            request.start_date_time,
            request.end_date_time,
        )

        return JSONResponse(status_code=200, content=_to_response(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking reschedule",
            extra={"booking_id": str(booking_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")
