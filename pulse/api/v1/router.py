from fastapi import APIRouter

from pulse.api.v1.endpoints import dashboard, organizations, surveys

api_v1_router = APIRouter()

api_v1_router.include_router(surveys.router, prefix="/surveys", tags=["surveys"])
api_v1_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_v1_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
