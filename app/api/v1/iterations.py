from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...core.auth import get_current_user_id
from ...services.iteration_service import IterationService
from .schemas import (
    IterationCapacityResponse,
    IterationCreateRequest,
    IterationResponse,
    IterationUpdateRequest,
)

router = APIRouter()


@router.post("/projects/{project_id}/iterations", response_model=IterationResponse, status_code=201)
async def create_iteration(
    project_id: str,
    request: IterationCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Create an iteration; working days are computed from its dates"""

    service = IterationService(db)
    return await service.create_iteration(
        user_id=current_user_id,
        project_id=project_id,
        name=request.name,
        start_date=request.start_date,
        end_date=request.end_date,
        committed_story_points=request.committed_story_points
    )


@router.get("/projects/{project_id}/iterations", response_model=List[IterationResponse])
async def list_iterations(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get iterations for a project"""

    service = IterationService(db)
    return await service.list_iterations(current_user_id, project_id)


@router.get("/iterations/{iteration_id}", response_model=IterationResponse)
async def get_iteration(
    iteration_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get iteration details"""

    service = IterationService(db)
    return await service.get_iteration(current_user_id, iteration_id)


@router.get("/iterations/{iteration_id}/capacity", response_model=IterationCapacityResponse)
async def get_iteration_capacity(
    iteration_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Get the members, weeks and total capacity of an iteration"""

    service = IterationService(db)
    return await service.get_iteration_capacity(current_user_id, iteration_id)


@router.patch("/iterations/{iteration_id}", response_model=IterationResponse)
async def update_iteration(
    iteration_id: str,
    request: IterationUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Update an iteration; date changes recompute every member's capacity"""

    service = IterationService(db)
    return await service.update_iteration(
        current_user_id,
        iteration_id,
        request.model_dump(exclude_unset=True)
    )


@router.delete("/iterations/{iteration_id}", response_model=dict)
async def delete_iteration(
    iteration_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """Delete an iteration with its members, availability and attendance"""

    service = IterationService(db)
    await service.delete_iteration(current_user_id, iteration_id)

    return {
        "message": "Iteration deleted successfully",
        "iteration_id": iteration_id
    }
