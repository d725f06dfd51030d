from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...core.auth import get_current_user_id
from ...services.member_service import MemberService
from .schemas import MemberCreateRequest, MemberResponse, MemberUpdateRequest

router = APIRouter()


@router.post("/iterations/{iteration_id}/members", response_model=MemberResponse, status_code=201)
async def add_member(
    iteration_id: str,
    request: MemberCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Add a member to an iteration and compute their effective capacity"""

    service = MemberService(db)
    return await service.add_member(
        user_id=current_user_id,
        iteration_id=iteration_id,
        name=request.name,
        role=request.role,
        work_mode=request.work_mode.value,
        leaves=request.leaves,
        availability_percent=request.availability_percent
    )


@router.get("/iterations/{iteration_id}/members", response_model=List[MemberResponse])
async def list_members(
    iteration_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get members of an iteration"""

    service = MemberService(db)
    return await service.list_members(current_user_id, iteration_id)


@router.get("/members/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get member details"""

    service = MemberService(db)
    return await service.get_member(current_user_id, member_id)


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: str,
    request: MemberUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Update a member; leaves and availability changes recompute capacity"""

    fields = request.model_dump(exclude_unset=True, mode="json")

    service = MemberService(db)
    return await service.update_member(current_user_id, member_id, fields)


@router.delete("/members/{member_id}", response_model=dict)
async def delete_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Delete a member with their availability and attendance"""

    service = MemberService(db)
    await service.delete_member(current_user_id, member_id)

    return {
        "message": "Member deleted successfully",
        "member_id": member_id
    }
