from abc import ABC, abstractmethod

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.access import ProjectMembership
from .exceptions import AccessDeniedError


class AccessPolicy(ABC):
    """Answers whether a user may read or write a project's capacity data."""

    @abstractmethod
    async def has_project_access(self, user_id: str, project_id: str) -> bool:
        ...

    async def ensure_project_access(self, user_id: str, project_id: str) -> None:
        if not await self.has_project_access(user_id, project_id):
            raise AccessDeniedError(project_id)


class ProjectMembershipAccessPolicy(AccessPolicy):
    """Grants access to active members of the project."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def has_project_access(self, user_id: str, project_id: str) -> bool:
        stmt = select(ProjectMembership.id).where(
            and_(
                ProjectMembership.user_id == user_id,
                ProjectMembership.project_id == project_id,
                ProjectMembership.is_active == True
            )
        )

        result = await self.db.execute(stmt)
        return result.first() is not None
