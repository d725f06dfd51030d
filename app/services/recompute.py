"""
Propagation of capacity recomputation.

| Trigger                   | Effect                                                   |
|---------------------------|----------------------------------------------------------|
| ITERATION_DATES_CHANGED   | iteration.working_days, then every member's capacity     |
| MEMBER_INPUTS_CHANGED     | that member's capacity only                              |
| MEMBER_ADDED              | that member's capacity, once                             |
| MEMBER_DELETED            | remove the member's weekly and daily rows                |
| ITERATION_DELETED         | remove members, weekly and daily rows (no recompute)     |

The coordinator only flushes; the calling service owns the transaction, so a
failure here rolls back the triggering write as well.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.iteration import Iteration
from ..models.member import Member
from ..models.availability import WeeklyAvailability, DailyAttendance
from ..utils.logging import get_logger
from .calendar import working_days
from .capacity import effective_capacity

logger = get_logger(__name__)


class RecomputeTrigger(str, Enum):
    ITERATION_DATES_CHANGED = "iteration_dates_changed"
    MEMBER_INPUTS_CHANGED = "member_inputs_changed"
    MEMBER_ADDED = "member_added"
    MEMBER_DELETED = "member_deleted"
    ITERATION_DELETED = "iteration_deleted"


class RecomputeCoordinator:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def propagate(
        self,
        trigger: RecomputeTrigger,
        iteration: Iteration,
        member: Optional[Member] = None
    ) -> None:
        if trigger == RecomputeTrigger.ITERATION_DATES_CHANGED:
            await self.recompute_iteration(iteration)
        elif trigger in (RecomputeTrigger.MEMBER_INPUTS_CHANGED, RecomputeTrigger.MEMBER_ADDED):
            self.recompute_member(member, iteration)
        elif trigger == RecomputeTrigger.MEMBER_DELETED:
            await self.remove_member_records([member.id])
        elif trigger == RecomputeTrigger.ITERATION_DELETED:
            await self.remove_iteration_dependents(iteration)
        else:
            raise ValueError(f"Unknown recompute trigger: {trigger}")
        await self.db.flush()

    def recompute_member(self, member: Member, iteration: Iteration) -> float:
        member.effective_capacity_days = effective_capacity(
            iteration.working_days,
            member.leaves,
            member.availability_percent
        )
        return member.effective_capacity_days

    async def recompute_iteration(self, iteration: Iteration) -> List[Member]:
        iteration.working_days = working_days(iteration.start_date, iteration.end_date)

        result = await self.db.execute(
            select(Member).where(Member.iteration_id == iteration.id)
        )
        members = list(result.scalars().all())
        for member in members:
            self.recompute_member(member, iteration)

        logger.debug(
            "Recomputed %d members of iteration %s against %d working days",
            len(members), iteration.id, iteration.working_days
        )
        return members

    async def remove_member_records(self, member_ids: List[str]) -> None:
        if not member_ids:
            return
        await self.db.execute(
            delete(DailyAttendance).where(DailyAttendance.member_id.in_(member_ids))
        )
        await self.db.execute(
            delete(WeeklyAvailability).where(WeeklyAvailability.member_id.in_(member_ids))
        )

    async def remove_iteration_dependents(self, iteration: Iteration) -> None:
        result = await self.db.execute(
            select(Member.id).where(Member.iteration_id == iteration.id)
        )
        member_ids = list(result.scalars().all())

        await self.remove_member_records(member_ids)
        # Weekly rows are keyed by iteration too; catch any left by removed members
        await self.db.execute(
            delete(WeeklyAvailability).where(WeeklyAvailability.iteration_id == iteration.id)
        )
        await self.db.execute(
            delete(Member).where(Member.iteration_id == iteration.id)
        )
        logger.debug("Removed %d members of iteration %s", len(member_ids), iteration.id)
