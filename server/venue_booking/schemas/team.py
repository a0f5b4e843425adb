"""Team-related Pydantic schemas."""

from uuid import UUID

from pydantic import Field

from .common import ApiModel


class CreateTeamRequest(ApiModel):
    """Request schema for creating a team."""

    name: str = Field(..., min_length=1, max_length=100, description="Team name")
    description: str | None = Field(None, max_length=2000, description="Team description")


class Team(ApiModel):
    """Team response schema."""

    id: UUID = Field(..., description="Unique team ID")
    name: str = Field(..., description="Team name")
    description: str | None = Field(None, description="Team description")
    is_active: bool = Field(..., description="Whether the team can book venues")
