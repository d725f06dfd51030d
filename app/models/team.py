from sqlalchemy import Column, String, Text, ForeignKey, Index
from .base import BaseModel


class Team(BaseModel):
    __tablename__ = "teams"

    project_id = Column(String(64), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_teams_project_id", "project_id"),
    )


class TeamMember(BaseModel):
    """A person on a project team's standing roster, independent of any iteration."""

    __tablename__ = "team_members"

    team_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    email = Column(String, nullable=True)

    __table_args__ = (
        Index("ix_team_members_team_id", "team_id"),
    )
