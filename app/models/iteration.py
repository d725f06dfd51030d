from sqlalchemy import Column, String, Integer, Date, Index
from .base import BaseModel


class Iteration(BaseModel):
    __tablename__ = "iterations"

    project_id = Column(String(64), nullable=False)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Derived from start_date/end_date, never written by callers
    working_days = Column(Integer, nullable=False, default=0)
    committed_story_points = Column(Integer, nullable=False, default=0)

    created_by = Column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_iterations_project_id", "project_id"),
    )
