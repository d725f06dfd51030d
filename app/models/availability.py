from sqlalchemy import Column, String, Integer, Date, Text, ForeignKey, UniqueConstraint, Index
from .base import BaseModel


def availability_key(member_id: str, week_index: int) -> str:
    """Composite id shared by a member's daily attendance rows for one week."""
    return f"{member_id}:{week_index}"


def split_availability_key(availability_id: str):
    member_id, _, week = availability_id.rpartition(":")
    if not member_id or not week.isdigit():
        return None
    return member_id, int(week)


class WeeklyAvailability(BaseModel):
    __tablename__ = "weekly_availability"

    iteration_id = Column(String(36), ForeignKey("iterations.id"), nullable=False)
    member_id = Column(String(36), ForeignKey("members.id"), nullable=False)
    week_index = Column(Integer, nullable=False)  # 1-based

    availability_percent = Column(Integer, nullable=False, default=100)
    days_present = Column(Integer, nullable=False)
    days_total = Column(Integer, nullable=False, default=5)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("iteration_id", "week_index", "member_id", name="uq_weekly_availability_key"),
        Index("ix_weekly_availability_member_id", "member_id"),
    )


class DailyAttendance(BaseModel):
    __tablename__ = "daily_attendance"

    availability_id = Column(String(64), nullable=False)
    member_id = Column(String(36), ForeignKey("members.id"), nullable=False)
    week_index = Column(Integer, nullable=False)

    date = Column(Date, nullable=False)
    day_of_week = Column(String(16), nullable=False)
    status = Column(String(1), nullable=False)  # P or A

    __table_args__ = (
        UniqueConstraint("availability_id", "date", name="uq_daily_attendance_day"),
        Index("ix_daily_attendance_member_id", "member_id"),
    )
