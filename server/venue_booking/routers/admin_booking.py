"""Administrator booking router: conflict checks and override bookings."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import SuperAdminAuth
from ..core.exceptions import ProblemDetailsException
from ..schemas.booking import (
    AdminBookingRequest,
    AdminBookingResponse,
    Booking,
    BookingWithDetails,
    CheckConflictsRequest,
    ConflictCheckResponse,
    SuggestedSlot,
)
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/bookings", tags=["admin"])

DB_DEPENDENCY = Depends(get_db)


@router.post("/check-conflicts", response_model=ConflictCheckResponse)
async def check_conflicts(
    request: CheckConflictsRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = SuperAdminAuth,
) -> JSONResponse:
    """
    Report bookings that overlap a window at a venue.

    When anything overlaps, alternative windows of the same length are
    suggested alongside the conflicting bookings.
    """
    booking_service = BookingService(db)

    try:
        report = await booking_service.check_booking_conflicts_with_details(
            venue_id=request.venue_id,
            start_date_time=request.start_date_time,
            end_date_time=request.end_date_time,
            exclude_booking_id=request.exclude_booking_id,
        )

        response_data = ConflictCheckResponse(
            has_conflict=report.has_conflict,
            conflicting_bookings=[BookingWithDetails.model_validate(b) for b in report.conflicting_bookings],
            suggested_slots=[SuggestedSlot.model_validate(slot) for slot in report.suggested_slots],
        )

        logger.info(
            "Admin conflict check completed",
            extra={
                "venue_id": str(request.venue_id),
                "has_conflict": report.has_conflict,
                "conflict_count": len(report.conflicting_bookings),
                "admin_id": user["user_id"],
            }
        )

        return JSONResponse(status_code=200, content=response_data.to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in admin conflict check",
            extra={"venue_id": str(request.venue_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("", response_model=AdminBookingResponse, status_code=201)
async def create_admin_booking(
    request: AdminBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = SuperAdminAuth,
) -> JSONResponse:
    """
    Create an approved booking as an administrator.

    With ``forceOverride`` conflicting bookings are cancelled; without it a
    conflict is answered with 409 and suggested alternatives.
    """
    booking_service = BookingService(db)

    try:
        result = await booking_service.create_admin_booking(request, admin_id=user["user_id"])

        overridden = result.overridden_booking
        response_data = AdminBookingResponse(
            booking=Booking.model_validate(result.booking),
            overridden_booking=Booking.model_validate(overridden) if overridden else None,
            overridden_bookings=[Booking.model_validate(b) for b in result.overridden_bookings],
            message=result.message,
        )

        return JSONResponse(status_code=201, content=response_data.to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in admin booking creation",
            extra={
                "venue_id": str(request.venue_id),
                "force_override": request.force_override,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")
