from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import select, func

from ..core.exceptions import TeamNotFoundError, ValidationError
from ..models.member import Member, WorkMode
from ..models.team import Team, TeamMember
from .base_service import CapacityBaseService
from .capacity import validate_availability, validate_leaves
from .member_service import _parse_work_mode, _required_text
from .recompute import RecomputeTrigger

# Type aliases
ProjectId = str
TeamId = str
IterationId = str
UserId = str


class TeamSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: TeamId
    project_id: ProjectId
    name: str
    description: Optional[str] = None
    member_count: int = 0


class TeamService(CapacityBaseService):
    """
    Standing project teams and their rosters.

    A roster lives outside any iteration. Drawing a team into an iteration
    copies each roster entry into an iteration member with its own leaves
    and availability, computed like any other added member.
    """

    async def create_team(
        self,
        user_id: UserId,
        project_id: ProjectId,
        name: Optional[str],
        description: Optional[str] = None
    ) -> Team:
        async with self._transaction("Team creation"):
            await self._authorize(user_id, project_id)

            team = Team(
                project_id=project_id,
                name=_required_text("name", name),
                description=description.strip() if description and description.strip() else None,
                created_by=user_id
            )
            self.db.add(team)
            await self.db.flush()

        await self.db.refresh(team)
        self._logger.info("Created team %s for project %s", team.id, project_id)
        return team

    async def list_teams(self, user_id: UserId, project_id: ProjectId) -> List[TeamSummary]:
        """Teams of a project with their roster sizes, ordered by name."""

        await self._authorize(user_id, project_id)

        stmt = (
            select(Team, func.count(TeamMember.id))
            .outerjoin(TeamMember, TeamMember.team_id == Team.id)
            .where(Team.project_id == project_id)
            .group_by(Team.id)
            .order_by(Team.name)
        )
        result = await self.db.execute(stmt)

        summaries = []
        for team, member_count in result.all():
            summary = TeamSummary.model_validate(team)
            summary.member_count = member_count
            summaries.append(summary)
        return summaries

    async def add_team_member(
        self,
        user_id: UserId,
        team_id: TeamId,
        name: Optional[str],
        role: Optional[str],
        email: Optional[str] = None
    ) -> TeamMember:
        async with self._transaction("Team member creation"):
            team = await self._get_team(team_id)
            await self._authorize(user_id, team.project_id)

            entry = TeamMember(
                team_id=team.id,
                name=_required_text("name", name),
                role=_required_text("role", role),
                email=email.strip() if email and email.strip() else None
            )
            self.db.add(entry)
            await self.db.flush()

        await self.db.refresh(entry)
        self._logger.info("Added %s to team %s", entry.id, team_id)
        return entry

    async def list_team_members(self, user_id: UserId, team_id: TeamId) -> List[TeamMember]:
        team = await self._get_team(team_id)
        await self._authorize(user_id, team.project_id)

        result = await self.db.execute(
            select(TeamMember).where(TeamMember.team_id == team_id).order_by(TeamMember.name)
        )
        return list(result.scalars().all())

    async def add_team_to_iteration(
        self,
        user_id: UserId,
        iteration_id: IterationId,
        team_id: TeamId,
        defaults: Optional[Dict[str, Any]] = None
    ) -> List[Member]:
        """Add every roster entry of a team to an iteration as a member.

        ``defaults`` may carry ``work_mode``, ``leaves`` and
        ``availability_percent`` for the new members. Roster entries already
        drawn into the iteration are skipped. Returns the members created.
        """

        defaults = defaults or {}
        unknown = set(defaults) - {"work_mode", "leaves", "availability_percent"}

        async with self._transaction("Team roster import"):
            iteration = await self._get_iteration(iteration_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            if unknown:
                raise ValidationError(f"Unknown member defaults: {', '.join(sorted(unknown))}")

            team = await self._get_team(team_id)
            if team.project_id != iteration.project_id:
                raise ValidationError(
                    f"Team {team_id} does not belong to project {iteration.project_id}",
                    code="TEAM_NOT_IN_PROJECT"
                )

            work_mode = _parse_work_mode(defaults.get("work_mode", WorkMode.OFFICE))
            leaves = validate_leaves(defaults.get("leaves", 0))
            availability = validate_availability(defaults.get("availability_percent", 100))

            result = await self.db.execute(
                select(TeamMember).where(TeamMember.team_id == team_id).order_by(TeamMember.name)
            )
            roster = list(result.scalars().all())

            drawn = await self.db.execute(
                select(Member.team_member_id).where(
                    Member.iteration_id == iteration.id,
                    Member.team_member_id.is_not(None)
                )
            )
            already_drawn = set(drawn.scalars().all())

            created: List[Member] = []
            for entry in roster:
                if entry.id in already_drawn:
                    continue
                member = Member(
                    iteration_id=iteration.id,
                    name=entry.name,
                    role=entry.role,
                    work_mode=work_mode,
                    leaves=leaves,
                    availability_percent=availability,
                    team_id=team.id,
                    team_member_id=entry.id,
                    created_by=user_id
                )
                self.db.add(member)
                await self.coordinator.propagate(RecomputeTrigger.MEMBER_ADDED, iteration, member)
                created.append(member)

        for member in created:
            await self.db.refresh(member)
        self._logger.info(
            "Added %d members from team %s to iteration %s", len(created), team_id, iteration_id
        )
        return created

    # Private methods

    async def _get_team(self, team_id: TeamId) -> Team:
        result = await self.db.execute(select(Team).where(Team.id == team_id))
        team = result.scalar_one_or_none()

        if team is None:
            raise TeamNotFoundError(team_id)
        return team
