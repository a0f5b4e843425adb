"""Venue router: venues, availability and blackout periods."""

import logging
from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import RequiredAuth, SuperAdminAuth
from ..core.exceptions import ProblemDetailsException
from ..schemas.venue import (
    AvailabilitySlot,
    CreateBlackoutRequest,
    CreateVenueRequest,
    Venue,
    VenueAvailability,
    VenueBlackout,
)
from ..services.venue_service import VenueService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/venues", tags=["venue"])

DB_DEPENDENCY = Depends(get_db)


@router.post("", response_model=Venue, status_code=201)
async def create_venue(
    request: CreateVenueRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = SuperAdminAuth,
) -> JSONResponse:
    """Create a venue (superadmin only)."""
    venue_service = VenueService(db)

    try:
        venue = await venue_service.create_venue(request)
        return JSONResponse(status_code=201, content=Venue.model_validate(venue).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in venue creation",
            extra={"venue_name": request.name, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[Venue])
async def list_venues(
    active_only: bool = Query(False, alias="activeOnly"),
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """List venues."""
    venues = await VenueService(db).list_venues(active_only=active_only)
    return JSONResponse(status_code=200, content=[Venue.model_validate(v).to_json() for v in venues])


@router.get("/{venue_id}", response_model=Venue)
async def get_venue(
    venue_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """Get a venue by ID."""
    venue = await VenueService(db).get_venue_by_id_or_raise(venue_id)
    return JSONResponse(status_code=200, content=Venue.model_validate(venue).to_json())


@router.get("/{venue_id}/availability", response_model=VenueAvailability)
async def get_venue_availability(
    venue_id: UUID,
    day: date = Query(..., alias="date", description="Day to lay out (YYYY-MM-DD)"),
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """Hourly availability of a venue across its working hours on one day."""
    venue_service = VenueService(db)

    try:
        slots = await venue_service.get_available_time_slots(venue_id, day)

        response_data = VenueAvailability(
            venue_id=venue_id,
            day=day,
            slots=[AvailabilitySlot.model_validate(slot) for slot in slots],
        )
        return JSONResponse(status_code=200, content=response_data.to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in venue availability",
            extra={"venue_id": str(venue_id), "day": day.isoformat(), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{venue_id}/blackouts", response_model=VenueBlackout, status_code=201)
async def create_blackout(
    venue_id: UUID,
    request: CreateBlackoutRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = SuperAdminAuth,
) -> JSONResponse:
    """Block a venue for a period (superadmin only)."""
    venue_service = VenueService(db)

    try:
        blackout = await venue_service.create_blackout(venue_id, request, created_by=user["user_id"])
        return JSONResponse(status_code=201, content=VenueBlackout.model_validate(blackout).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in blackout creation",
            extra={"venue_id": str(venue_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{venue_id}/blackouts", response_model=List[VenueBlackout])
async def list_blackouts(
    venue_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """List blackout periods of a venue."""
    venue_service = VenueService(db)
    await venue_service.get_venue_by_id_or_raise(venue_id)
    blackouts = await venue_service.get_blackouts(venue_id)
    return JSONResponse(
        status_code=200,
        content=[VenueBlackout.model_validate(b).to_json() for b in blackouts]
    )
