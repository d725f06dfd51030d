"""
Availability API Endpoints

Weekly availability overrides and the daily attendance ledger. Both are
refinement layers: saving them never changes a member's effective capacity.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...core.auth import get_current_user_id
from ...services.availability_service import WeeklyAvailabilityService
from ...services.attendance_service import DailyAttendanceService
from .schemas import (
    DailyAttendanceRequest,
    DailyAttendanceResponse,
    WeeklyAvailabilityRequest,
    WeeklyAvailabilityResponse,
)

router = APIRouter()


@router.post("/iterations/{iteration_id}/availability", response_model=dict)
async def save_weekly_availability(
    iteration_id: str,
    request: WeeklyAvailabilityRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Upsert weekly availability rows for an iteration as one batch"""

    service = WeeklyAvailabilityService(db)
    result = await service.save_weekly_availability(
        current_user_id,
        iteration_id,
        [item.model_dump(exclude_unset=True) for item in request.availability]
    )

    return {
        "message": "Availability saved successfully",
        "data": result.model_dump()
    }


@router.get("/iterations/{iteration_id}/availability", response_model=List[WeeklyAvailabilityResponse])
async def get_weekly_availability(
    iteration_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get weekly availability rows ordered by week"""

    service = WeeklyAvailabilityService(db)
    return await service.get_weekly_availability(current_user_id, iteration_id)


@router.post("/members/{member_id}/weeks/{week_index}/attendance", response_model=dict)
async def save_daily_attendance(
    member_id: str,
    week_index: int,
    request: DailyAttendanceRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Replace a member's attendance for one week"""

    service = DailyAttendanceService(db)
    result = await service.save_daily_attendance(
        current_user_id,
        member_id,
        week_index,
        [item.model_dump() for item in request.attendance]
    )

    return {
        "message": "Daily attendance saved successfully",
        "data": result.model_dump()
    }


@router.get("/availability/{availability_id}/daily", response_model=List[DailyAttendanceResponse])
async def get_daily_attendance(
    availability_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get a member-week's attendance ordered by date"""

    service = DailyAttendanceService(db)
    return await service.get_daily_attendance(current_user_id, availability_id)


@router.post("/members/{member_id}/weeks/{week_index}/reconcile", response_model=WeeklyAvailabilityResponse)
async def reconcile_week(
    member_id: str,
    week_index: int,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Rewrite a member's weekly availability from their recorded attendance"""

    service = DailyAttendanceService(db)
    return await service.reconcile_week(current_user_id, member_id, week_index)
