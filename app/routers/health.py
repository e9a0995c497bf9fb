# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# =============================================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.dependencies import PropertyRepositoryDep
from app.exceptions import PersistenceFaultError

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: str
    environment: str
    version: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
def health_check(request: Request, repository: PropertyRepositoryDep):
    """
    Health check endpoint.

    Reports whether the property store is reachable.
    Returns 503 when it is not, so load balancers can drain the instance.
    """
    try:
        repository.ping()
    except PersistenceFaultError as e:
        logger.error(f"Health check failed: {e}")
        body = HealthResponse(
            status="unhealthy",
            database="disconnected",
            timestamp=_now(),
            environment=request.app.state.settings.ENVIRONMENT,
            version=API_VERSION,
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    return HealthResponse(
        status="healthy",
        database="connected",
        timestamp=_now(),
        environment=request.app.state.settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    Used by Kubernetes/Docker for restart decisions.
    """
    return LivenessResponse(
        status="alive",
        timestamp=_now(),
    )
