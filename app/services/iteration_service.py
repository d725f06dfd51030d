from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select, delete, desc

from ..core.exceptions import MissingFieldsError, ValidationError
from ..models.iteration import Iteration
from ..models.member import Member
from .base_service import CapacityBaseService
from .calendar import IterationWeek, iteration_weeks, working_days
from .capacity import ONE_DECIMAL, round_half_up
from .recompute import RecomputeTrigger

# Type aliases
ProjectId = str
IterationId = str
UserId = str

UPDATABLE_FIELDS = ("name", "start_date", "end_date", "committed_story_points")


class IterationCapacity(BaseModel):
    iteration_id: IterationId
    working_days: int
    committed_story_points: int
    member_count: int
    total_capacity_days: float
    weeks: List[IterationWeek]


class IterationService(CapacityBaseService):
    """
    Iteration lifecycle: create, update and delete iterations.

    Owns the working-days calendar value. A date change recomputes it and,
    through the recompute coordinator, every member's effective capacity in
    the same transaction.
    """

    async def create_iteration(
        self,
        user_id: UserId,
        project_id: ProjectId,
        name: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        committed_story_points: Optional[int] = 0
    ) -> Iteration:
        """Create an iteration and compute its working days."""

        self._logger.info("Creating iteration '%s' for project %s", name, project_id)

        async with self._transaction("Iteration creation"):
            await self._authorize(user_id, project_id)

            missing = [
                field for field, value in (("name", name), ("start_date", start_date), ("end_date", end_date))
                if value is None or (isinstance(value, str) and not value.strip())
            ]
            if missing:
                raise MissingFieldsError(missing)

            points = self._validate_story_points(committed_story_points)

            iteration = Iteration(
                project_id=project_id,
                name=name.strip(),
                start_date=start_date,
                end_date=end_date,
                working_days=working_days(start_date, end_date),
                committed_story_points=points,
                created_by=user_id
            )
            self.db.add(iteration)
            await self.db.flush()

        await self.db.refresh(iteration)
        self._logger.info("Created iteration %s with %d working days", iteration.id, iteration.working_days)
        return iteration

    async def update_iteration(
        self,
        user_id: UserId,
        iteration_id: IterationId,
        fields: Dict[str, Any]
    ) -> Iteration:
        """Apply a partial update; date changes cascade to member capacity."""

        async with self._transaction("Iteration update"):
            iteration = await self._get_iteration(iteration_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            unknown = set(fields) - set(UPDATABLE_FIELDS)
            if unknown:
                raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

            if "name" in fields:
                if fields["name"] is None or not str(fields["name"]).strip():
                    raise MissingFieldsError(["name"])
                iteration.name = str(fields["name"]).strip()

            if "committed_story_points" in fields:
                iteration.committed_story_points = self._validate_story_points(
                    fields["committed_story_points"]
                )

            dates_changed = False
            for field in ("start_date", "end_date"):
                if field in fields:
                    if fields[field] is None:
                        raise MissingFieldsError([field])
                    if fields[field] != getattr(iteration, field):
                        setattr(iteration, field, fields[field])
                        dates_changed = True

            if dates_changed:
                await self.coordinator.propagate(RecomputeTrigger.ITERATION_DATES_CHANGED, iteration)
            else:
                await self.db.flush()

        await self.db.refresh(iteration)
        self._logger.info("Updated iteration %s", iteration_id)
        return iteration

    async def delete_iteration(self, user_id: UserId, iteration_id: IterationId) -> None:
        """Delete an iteration and every row that depends on it."""

        async with self._transaction("Iteration deletion"):
            iteration = await self._get_iteration(iteration_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            await self.coordinator.propagate(RecomputeTrigger.ITERATION_DELETED, iteration)
            await self.db.execute(delete(Iteration).where(Iteration.id == iteration_id))

        self._logger.info("Deleted iteration %s", iteration_id)

    async def get_iteration(self, user_id: UserId, iteration_id: IterationId) -> Iteration:
        iteration = await self._get_iteration(iteration_id)
        await self._authorize(user_id, iteration.project_id)
        return iteration

    async def list_iterations(self, user_id: UserId, project_id: ProjectId) -> List[Iteration]:
        """Iterations of a project, most recent first."""

        await self._authorize(user_id, project_id)

        stmt = (
            select(Iteration)
            .where(Iteration.project_id == project_id)
            .order_by(desc(Iteration.start_date))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_iteration_capacity(self, user_id: UserId, iteration_id: IterationId) -> Dict[str, Any]:
        """Capacity view of a single iteration: its weeks, members and total."""

        iteration = await self.get_iteration(user_id, iteration_id)

        result = await self.db.execute(
            select(Member).where(Member.iteration_id == iteration_id).order_by(Member.name)
        )
        members = list(result.scalars().all())

        summary = IterationCapacity(
            iteration_id=iteration.id,
            working_days=iteration.working_days,
            committed_story_points=iteration.committed_story_points,
            member_count=len(members),
            total_capacity_days=self._total_capacity(members),
            weeks=iteration_weeks(iteration.start_date, iteration.end_date)
        )
        return {"iteration": iteration, "members": members, "summary": summary}

    def _total_capacity(self, members: List[Member]) -> float:
        total = sum((Decimal(str(m.effective_capacity_days or 0)) for m in members), Decimal(0))
        return float(round_half_up(total, ONE_DECIMAL))

    def _validate_story_points(self, points: Optional[int]) -> int:
        if points is None:
            return 0
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            raise ValidationError(f"Committed story points must be a non-negative integer, got {points!r}")
        return points
