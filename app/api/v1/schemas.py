from datetime import date as Date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from ...models.member import WorkMode
from ...services.iteration_service import IterationCapacity


class IterationCreateRequest(BaseModel):
    name: Optional[str] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    committed_story_points: int = Field(default=0, ge=0)


class IterationUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    committed_story_points: Optional[int] = Field(default=None, ge=0)


class IterationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    name: str
    start_date: Date
    end_date: Date
    working_days: int
    committed_story_points: int
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberCreateRequest(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    work_mode: WorkMode = WorkMode.OFFICE
    # Checked by the service validators, not coerced here
    leaves: Any = 0
    availability_percent: Any = 100


class MemberUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    role: Optional[str] = None
    work_mode: Optional[WorkMode] = None
    leaves: Any = None
    availability_percent: Any = None


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    iteration_id: str
    name: str
    role: str
    work_mode: str
    leaves: int
    availability_percent: int
    effective_capacity_days: float
    team_id: Optional[str] = None
    team_member_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IterationCapacityResponse(BaseModel):
    iteration: IterationResponse
    members: List[MemberResponse]
    summary: IterationCapacity


class WeeklyAvailabilityItem(BaseModel):
    member_id: str
    week_index: StrictInt
    availability_percent: Any
    days_present: Optional[StrictInt] = None
    days_total: Optional[StrictInt] = None
    notes: Optional[str] = None


class WeeklyAvailabilityRequest(BaseModel):
    availability: List[WeeklyAvailabilityItem]


class WeeklyAvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    iteration_id: str
    member_id: str
    week_index: int
    availability_percent: int
    days_present: int
    days_total: int
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class AttendanceItem(BaseModel):
    date: Date
    day_of_week: Optional[str] = None
    status: str


class DailyAttendanceRequest(BaseModel):
    attendance: List[AttendanceItem]


class DailyAttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    availability_id: str
    member_id: str
    week_index: int
    date: Date
    day_of_week: str
    status: str


class TeamCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class TeamMemberCreateRequest(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None


class TeamMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    team_id: str
    name: str
    role: str
    email: Optional[str] = None


class TeamImportRequest(BaseModel):
    """Defaults applied to every member drawn from the roster."""
    model_config = ConfigDict(extra="forbid")

    work_mode: Optional[WorkMode] = None
    leaves: Any = None
    availability_percent: Any = None
