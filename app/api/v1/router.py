from fastapi import APIRouter
from .iterations import router as iterations_router
from .members import router as members_router
from .availability import router as availability_router
from .teams import router as teams_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(iterations_router, tags=["iterations"])
api_router.include_router(members_router, tags=["members"])
api_router.include_router(availability_router, tags=["availability"])
api_router.include_router(teams_router, tags=["teams"])
