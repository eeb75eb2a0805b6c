"""
Health checks for the curation service (liveness and storage readiness).
"""
from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel
from typing import Dict, Optional
from datetime import datetime, timezone
import asyncio
import time

from curation.config import settings
from curation.utils.datetime_utils import to_iso_string
from curation.utils.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)

SERVICE_START_TIME = time.time()

# Probe id that never matches a real place
PROBE_PLACE_ID = "__healthcheck__"


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class HealthResponse(BaseModel):
    """Simple health check response model"""
    status: str
    service: str
    version: str
    timestamp: datetime
    storage_backend: str
    pending_saves: int
    uptime_seconds: float

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "service": "Place Curation Service",
                "version": "0.1.0",
                "timestamp": "2025-12-16T12:00:00Z",
                "storage_backend": "filesystem",
                "pending_saves": 0,
                "uptime_seconds": 3600.5
            }
        }


class DependencyStatus(BaseModel):
    """Status of a single storage backend"""
    name: str
    status: str  # "healthy", "unhealthy"
    response_time_ms: Optional[float] = None
    message: Optional[str] = None
    last_checked: str


class ReadinessResponse(BaseModel):
    """Readiness probe response"""
    status: str  # "ready", "not_ready"
    ready: bool
    dependencies: Dict[str, DependencyStatus]
    timestamp: str


# ============================================================================
# DEPENDENCY CHECKS
# ============================================================================

async def check_backend(backend) -> DependencyStatus:
    """Round-trip an existence probe through one storage backend"""
    start = time.time()

    try:
        await asyncio.wait_for(backend.exists(PROBE_PLACE_ID), timeout=2.0)

        return DependencyStatus(
            name=backend.name,
            status="healthy",
            response_time_ms=(time.time() - start) * 1000,
            message="Reachable",
            last_checked=to_iso_string(),
        )

    except asyncio.TimeoutError:
        return DependencyStatus(
            name=backend.name,
            status="unhealthy",
            message="Probe timeout (>2s)",
            last_checked=to_iso_string(),
        )
    except Exception as e:
        return DependencyStatus(
            name=backend.name,
            status="unhealthy",
            message=str(e),
            last_checked=to_iso_string(),
        )


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check(request: Request) -> HealthResponse:
    service = request.app.state.curation_service

    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        timestamp=datetime.now(timezone.utc),
        storage_backend=service.persistence.primary.name,
        pending_saves=service.pending_saves,
        uptime_seconds=round(time.time() - SERVICE_START_TIME, 2),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    tags=["Health"],
    summary="Storage readiness probe",
)
async def readiness_check(request: Request, response: Response) -> ReadinessResponse:
    """
    Ready when the primary backend answers. The backup backend is reported
    but never blocks readiness, matching its best-effort role on save.
    """
    persistence = request.app.state.curation_service.persistence

    dependencies = {"primary": await check_backend(persistence.primary)}
    if persistence.backup is not None:
        dependencies["backup"] = await check_backend(persistence.backup)

    ready = dependencies["primary"].status == "healthy"
    if not ready:
        logger.warning(
            "health.readiness.failed",
            extra={"dependencies": {k: v.status for k, v in dependencies.items()}},
        )

    response.status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        ready=ready,
        dependencies=dependencies,
        timestamp=to_iso_string(),
    )
