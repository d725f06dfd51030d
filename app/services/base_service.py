from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.access import AccessPolicy, ProjectMembershipAccessPolicy
from ..core.exceptions import (
    CapacityServiceError,
    ConflictError,
    InternalError,
    IterationNotFoundError,
    MemberNotFoundError,
)
from ..models.iteration import Iteration
from ..models.member import Member
from ..utils.logging import get_logger
from .recompute import RecomputeCoordinator


class CapacityBaseService:
    """
    Shared plumbing for the capacity services.

    Each public write runs inside ``self._transaction``: it commits on success
    and rolls back on any failure, including failures in recomputation.
    Writes that read an iteration's working days take a row lock on the
    iteration first so concurrent date edits and member adds serialize.
    """

    def __init__(self, db: AsyncSession, access_policy: Optional[AccessPolicy] = None) -> None:
        self.db = db
        self.access_policy = access_policy or ProjectMembershipAccessPolicy(db)
        self.coordinator = RecomputeCoordinator(db)
        self._logger = get_logger(self.__class__.__module__)

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[None]:
        try:
            yield
            await self.db.commit()
        except CapacityServiceError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            self._logger.error("%s failed on a constraint: %s", action, str(e))
            raise ConflictError(f"{action} conflicts with an existing record")
        except Exception as e:
            await self.db.rollback()
            self._logger.error("%s failed: %s", action, str(e))
            raise InternalError(f"{action} failed: {str(e)}")

    async def _authorize(self, user_id: str, project_id: str) -> None:
        await self.access_policy.ensure_project_access(user_id, project_id)

    async def _get_iteration(self, iteration_id: str, lock: bool = False) -> Iteration:
        stmt = select(Iteration).where(Iteration.id == iteration_id)
        if lock:
            stmt = stmt.with_for_update()

        result = await self.db.execute(stmt)
        iteration = result.scalar_one_or_none()

        if iteration is None:
            raise IterationNotFoundError(iteration_id)
        return iteration

    async def _get_member(self, member_id: str) -> Member:
        result = await self.db.execute(select(Member).where(Member.id == member_id))
        member = result.scalar_one_or_none()

        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    async def _get_member_with_iteration(self, member_id: str, lock: bool = False):
        member = await self._get_member(member_id)
        iteration = await self._get_iteration(member.iteration_id, lock=lock)
        return member, iteration
