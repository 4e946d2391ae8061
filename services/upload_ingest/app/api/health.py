"""Health check and readiness routes."""

import os
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from services.upload_ingest.app.dependencies import AppSettings, CacheResource, QueueResource

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"]
    service: str
    version: str = "0.1.0"


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: AppSettings) -> HealthResponse:
    """Basic health check - returns if the service is running."""
    return HealthResponse(status="healthy", service=settings.service_name)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    settings: AppSettings,
    cache: CacheResource,
    queue: QueueResource,
) -> ReadinessResponse:
    """Readiness check - verifies the staging area and backing services."""
    staging_root = settings.staging_root
    checks = {
        "staging": staging_root.is_dir() and os.access(staging_root, os.W_OK),
        "queue": await queue.health_check(),
    }
    # presence is tracked by the platform in external mode, the cache is unused
    if settings.presence_enabled:
        checks["cache"] = await cache.health_check()

    return ReadinessResponse(ready=all(checks.values()), checks=checks)
