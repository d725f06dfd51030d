from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete

from ..core.exceptions import MissingFieldsError, ValidationError
from ..models.member import Member, WorkMode
from .base_service import CapacityBaseService
from .capacity import validate_availability, validate_leaves
from .recompute import RecomputeTrigger

# Type aliases
IterationId = str
MemberId = str
UserId = str

UPDATABLE_FIELDS = ("name", "role", "work_mode", "leaves", "availability_percent")
CAPACITY_FIELDS = ("leaves", "availability_percent")


def _parse_work_mode(work_mode: Any) -> str:
    try:
        return WorkMode(work_mode).value
    except ValueError:
        allowed = ", ".join(mode.value for mode in WorkMode)
        raise ValidationError(f"Work mode must be one of {allowed}, got {work_mode!r}")


def _required_text(field: str, value: Any) -> str:
    if value is None or not str(value).strip():
        raise MissingFieldsError([field])
    return str(value).strip()


class MemberService(CapacityBaseService):
    """Members of an iteration and their effective capacity in days."""

    async def add_member(
        self,
        user_id: UserId,
        iteration_id: IterationId,
        name: Optional[str],
        role: Optional[str],
        work_mode: Optional[str] = None,
        leaves: int = 0,
        availability_percent: int = 100
    ) -> Member:
        """Add a member and compute their capacity against the iteration."""

        async with self._transaction("Member creation"):
            iteration = await self._get_iteration(iteration_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            member = Member(
                iteration_id=iteration.id,
                name=_required_text("name", name),
                role=_required_text("role", role),
                work_mode=_parse_work_mode(WorkMode.OFFICE if work_mode is None else work_mode),
                leaves=validate_leaves(leaves),
                availability_percent=validate_availability(availability_percent),
                created_by=user_id
            )
            self.db.add(member)
            await self.coordinator.propagate(RecomputeTrigger.MEMBER_ADDED, iteration, member)

        await self.db.refresh(member)
        self._logger.info(
            "Added member %s to iteration %s with %.1f capacity days",
            member.id, iteration_id, member.effective_capacity_days
        )
        return member

    async def update_member(
        self,
        user_id: UserId,
        member_id: MemberId,
        fields: Dict[str, Any]
    ) -> Member:
        """Partial update. Only leaves and availability changes recompute capacity."""

        async with self._transaction("Member update"):
            member, iteration = await self._get_member_with_iteration(member_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            unknown = set(fields) - set(UPDATABLE_FIELDS)
            if unknown:
                raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

            if "name" in fields:
                member.name = _required_text("name", fields["name"])
            if "role" in fields:
                member.role = _required_text("role", fields["role"])
            if "work_mode" in fields:
                member.work_mode = _parse_work_mode(fields["work_mode"])
            if "leaves" in fields:
                member.leaves = validate_leaves(fields["leaves"])
            if "availability_percent" in fields:
                member.availability_percent = validate_availability(fields["availability_percent"])

            if any(field in fields for field in CAPACITY_FIELDS):
                await self.coordinator.propagate(RecomputeTrigger.MEMBER_INPUTS_CHANGED, iteration, member)
            else:
                await self.db.flush()

        await self.db.refresh(member)
        self._logger.info("Updated member %s", member_id)
        return member

    async def delete_member(self, user_id: UserId, member_id: MemberId) -> None:
        """Delete a member with their weekly and daily records."""

        async with self._transaction("Member deletion"):
            member, iteration = await self._get_member_with_iteration(member_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            await self.coordinator.propagate(RecomputeTrigger.MEMBER_DELETED, iteration, member)
            await self.db.execute(delete(Member).where(Member.id == member_id))

        self._logger.info("Deleted member %s", member_id)

    async def get_member(self, user_id: UserId, member_id: MemberId) -> Member:
        member, iteration = await self._get_member_with_iteration(member_id)
        await self._authorize(user_id, iteration.project_id)
        return member

    async def list_members(self, user_id: UserId, iteration_id: IterationId) -> List[Member]:
        iteration = await self._get_iteration(iteration_id)
        await self._authorize(user_id, iteration.project_id)

        stmt = select(Member).where(Member.iteration_id == iteration_id).order_by(Member.name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
