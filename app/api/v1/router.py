"""API v1 router aggregation.

Only operational endpoints are mounted; the document core is driven
through app.api.v1.dependencies.DocflowServices.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
