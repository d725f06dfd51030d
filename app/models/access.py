from sqlalchemy import Column, String, Boolean, UniqueConstraint
from .base import BaseModel


class ProjectMembership(BaseModel):
    __tablename__ = "project_memberships"

    project_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(String, default="collaborator")  # collaborator, owner
    is_active = Column(Boolean, default=True)

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_membership"),
    )
