"""
System / health API router.

Handles the root endpoint, health probes and the detailed status view.
"""

import logging

from fastapi import APIRouter, HTTPException

from api.cache import get_route_cache
from api.config import API_VERSION, settings
from api.middleware import get_request_id
from api.resilience import get_all_circuit_breaker_status

router = APIRouter(tags=["System"])

logger = logging.getLogger(__name__)


@router.get("/")
async def root():
    """API root endpoint with the available endpoint groups."""
    return {
        "name": "SEALANE API",
        "version": API_VERSION,
        "status": "operational",
        "docs": "/api/docs",
        "endpoints": {
            "health": "/api/health",
            "routes": "/api/routes/...",
            "segments": "/api/segments/...",
            "ports": "/api/ports/...",
        }
    }


@router.get("/api/health")
async def health_check():
    """
    Health check for load balancers and orchestrators.

    Reports database, cache and routing backend status.
    """
    from api.health import perform_full_health_check
    result = await perform_full_health_check()
    result["request_id"] = get_request_id()
    return result


@router.get("/api/health/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint."""
    from api.health import perform_liveness_check
    return await perform_liveness_check()


@router.get("/api/health/ready")
async def readiness_check():
    """Kubernetes readiness probe endpoint; 503 until the database answers."""
    from api.health import perform_readiness_check
    result = await perform_readiness_check()

    if result.get("status") != "ready":
        raise HTTPException(status_code=503, detail="Service not ready")

    return result


@router.get("/api/status")
async def detailed_status():
    """Health plus cache statistics, circuit breakers and configuration summary."""
    from api.health import perform_full_health_check
    health = await perform_full_health_check()
    return {
        **health,
        "environment": settings.environment,
        "cache": get_route_cache().health(),
        "circuit_breakers": get_all_circuit_breaker_status(),
        "config": {
            "redis_enabled": settings.redis_enabled,
            "rate_limit_enabled": settings.rate_limit_enabled,
        },
    }
