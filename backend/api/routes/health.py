"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.config import Settings

from ..dependencies import ServiceContainer, get_container, get_settings_dependency

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings_dependency),
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=settings.app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    container: ServiceContainer = Depends(get_container),
):
    """
    Readiness check endpoint.

    Returns 503 when the identity store is unreachable.
    """
    if await container.store.ping():
        return ReadinessResponse(status="ready", database="connected")
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(status="not_ready", database="unreachable").model_dump(),
    )
