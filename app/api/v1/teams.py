"""
Team API Endpoints

Standing project teams, their rosters, and drawing a roster into an iteration.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ...database import get_db
from ...core.auth import get_current_user_id
from ...services.team_service import TeamService, TeamSummary
from .schemas import (
    MemberResponse,
    TeamCreateRequest,
    TeamImportRequest,
    TeamMemberCreateRequest,
    TeamMemberResponse,
    TeamResponse,
)

router = APIRouter()


@router.post("/projects/{project_id}/teams", response_model=TeamResponse, status_code=201)
async def create_team(
    project_id: str,
    request: TeamCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Create a team for a project"""

    service = TeamService(db)
    return await service.create_team(current_user_id, project_id, request.name, request.description)


@router.get("/projects/{project_id}/teams", response_model=List[TeamSummary])
async def list_teams(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get a project's teams with their roster sizes"""

    service = TeamService(db)
    return await service.list_teams(current_user_id, project_id)


@router.post("/teams/{team_id}/members", response_model=TeamMemberResponse, status_code=201)
async def add_team_member(
    team_id: str,
    request: TeamMemberCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Add a person to a team roster"""

    service = TeamService(db)
    return await service.add_team_member(
        current_user_id, team_id, request.name, request.role, request.email
    )


@router.get("/teams/{team_id}/members", response_model=List[TeamMemberResponse])
async def list_team_members(
    team_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get a team's roster"""

    service = TeamService(db)
    return await service.list_team_members(current_user_id, team_id)


@router.post(
    "/iterations/{iteration_id}/teams/{team_id}/members",
    response_model=List[MemberResponse],
    status_code=201
)
async def add_team_to_iteration(
    iteration_id: str,
    team_id: str,
    request: Optional[TeamImportRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Add a team's roster to an iteration as members"""

    defaults = request.model_dump(exclude_none=True, mode="json") if request else {}

    service = TeamService(db)
    return await service.add_team_to_iteration(current_user_id, iteration_id, team_id, defaults)
