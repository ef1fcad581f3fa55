"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import analytics, coach, data, goals

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    data.router, prefix="/data", tags=["Metric data"]
)
api_router.include_router(
    coach.router, prefix="/coach", tags=["Coach"]
)
api_router.include_router(
    analytics.router, prefix="/analytics", tags=["Analytics"]
)
api_router.include_router(
    goals.router, prefix="/goals", tags=["Goals"]
)
