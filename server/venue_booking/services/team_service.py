"""Team service for business logic operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.team import Team
from ..schemas.team import CreateTeamRequest

logger = logging.getLogger(__name__)


class TeamService:
    """Service for team-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_team(self, request: CreateTeamRequest) -> Team:
        """
        Create a new team.

        Args:
            request: Team creation request

        Returns:
            Created team entity

        Raises:
            ConflictError: If a team with the same name already exists
        """
        existing_team = await self.get_team_by_name(request.name)
        if existing_team:
            logger.warning(
                "Team creation failed - name already exists",
                extra={"team_name": request.name, "existing_team_id": str(existing_team.id)}
            )
            raise ConflictError(
                detail=f"Team with name '{request.name}' already exists",
                conflicting_resource={"id": str(existing_team.id), "name": existing_team.name}
            )

        team = Team(name=request.name, description=request.description)

        try:
            self.db.add(team)
            await self.db.commit()
            await self.db.refresh(team)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Team creation failed due to integrity constraint",
                extra={"team_name": request.name, "error": str(e)}
            )
            raise ConflictError(detail="Team creation failed due to constraint violation") from e

        logger.info(
            "Team created successfully",
            extra={"team_id": str(team.id), "team_name": team.name}
        )

        return team

    async def list_teams(self, active_only: bool = False) -> list[Team]:
        """List teams ordered by name."""
        stmt = select(Team).order_by(Team.name)
        if active_only:
            stmt = stmt.where(Team.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_team_by_id(self, team_id: UUID) -> Optional[Team]:
        """Get team by ID."""
        stmt = select(Team).where(Team.id == team_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_team_by_name(self, name: str) -> Optional[Team]:
        """Get team by name."""
        stmt = select(Team).where(Team.name == name)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_team_by_id_or_raise(self, team_id: UUID) -> Team:
        """
        Get team by ID or raise NotFoundError.

        Args:
            team_id: Team ID to search for

        Returns:
            Team entity

        Raises:
            NotFoundError: If team not found
        """
        team = await self.get_team_by_id(team_id)
        if not team:
            logger.warning("Team not found", extra={"team_id": str(team_id)})
            raise NotFoundError(resource_type="team", resource_id=str(team_id))
        return team
