from enum import Enum

from sqlalchemy import Column, String, Integer, Float, ForeignKey, Index
from .base import BaseModel
from . import team  # noqa: F401  (tables referenced by foreign key)


class WorkMode(str, Enum):
    OFFICE = "office"
    REMOTE = "remote"
    HYBRID = "hybrid"


class Member(BaseModel):
    __tablename__ = "members"

    iteration_id = Column(String(36), ForeignKey("iterations.id"), nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    work_mode = Column(String, nullable=False, default=WorkMode.OFFICE.value)  # informational only

    # Capacity inputs
    leaves = Column(Integer, nullable=False, default=0)
    availability_percent = Column(Integer, nullable=False, default=100)

    # Derived from the owning iteration's working_days
    effective_capacity_days = Column(Float, nullable=False, default=0.0)

    # Set when the member was drawn from a team roster
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    team_member_id = Column(String(36), ForeignKey("team_members.id"), nullable=True)

    created_by = Column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_members_iteration_id", "iteration_id"),
    )
