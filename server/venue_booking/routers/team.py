"""Team router for team management operations."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import RequiredAuth, SuperAdminAuth
from ..core.exceptions import ProblemDetailsException
from ..schemas.team import CreateTeamRequest, Team
from ..services.team_service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teams", tags=["team"])

DB_DEPENDENCY = Depends(get_db)


@router.post("", response_model=Team, status_code=201)
async def create_team(
    request: CreateTeamRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = SuperAdminAuth,
) -> JSONResponse:
    """
    Create a new team.

    Team names are unique; a duplicate name is answered with 409.
    """
    team_service = TeamService(db)

    try:
        team = await team_service.create_team(request)
        return JSONResponse(status_code=201, content=Team.model_validate(team).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in team creation",
            extra={"team_name": request.name, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[Team])
async def list_teams(
    active_only: bool = Query(False, alias="activeOnly"),
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """List teams."""
    teams = await TeamService(db).list_teams(active_only=active_only)
    return JSONResponse(status_code=200, content=[Team.model_validate(t).to_json() for t in teams])


@router.get("/{team_id}", response_model=Team)
async def get_team(
    team_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: dict = RequiredAuth,
) -> JSONResponse:
    """Get a team by ID."""
    team = await TeamService(db).get_team_by_id_or_raise(team_id)
    return JSONResponse(status_code=200, content=Team.model_validate(team).to_json())
