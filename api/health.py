"""
Health checks for SEALANE API.

Component checks for the database, the route cache and the routing backend,
shaped for Kubernetes liveness/readiness probes and load balancers.
"""
import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum
from dataclasses import dataclass

from api.config import API_VERSION
from api.cache import get_route_cache
from api.resilience import get_all_circuit_breaker_status
from src.data.landmasses import get_landmass_status

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""
    name: str
    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def check_database_health() -> ComponentHealth:
    """Check database connectivity with a trivial query."""
    start = time.perf_counter()

    try:
        from api.database import check_db
        check_db()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Connection failed: {type(e).__name__}",
        )

    return ComponentHealth(
        name="database",
        status=HealthStatus.HEALTHY,
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
        message="Database connected",
    )


def check_cache_health() -> ComponentHealth:
    """
    Check the route cache.

    Redis problems only degrade the service: reads fall through to the
    database.
    """
    info = get_route_cache().health()
    status = {
        "healthy": HealthStatus.HEALTHY,
        "disabled": HealthStatus.HEALTHY,
    }.get(info.get("status"), HealthStatus.DEGRADED)
    return ComponentHealth(
        name="cache",
        status=status,
        message=f"Backend: {info.get('backend')}",
        details=info,
    )


def check_routing_health() -> ComponentHealth:
    """Routing backend breaker state plus the landmass set in use."""
    breakers = get_all_circuit_breaker_status()
    open_breakers = [name for name, b in breakers.items() if b["state"] == "open"]
    return ComponentHealth(
        name="routing",
        status=HealthStatus.DEGRADED if open_breakers else HealthStatus.HEALTHY,
        message=f"Circuit open: {', '.join(open_breakers)}" if open_breakers else "Routing available",
        details={"circuit_breakers": breakers, "landmasses": get_landmass_status()["landmasses"]},
    )


async def perform_full_health_check() -> Dict[str, Any]:
    """Comprehensive health check of all components."""
    start = time.perf_counter()

    components = [check_database_health(), check_cache_health(), check_routing_health()]

    unhealthy_count = sum(1 for c in components if c.status == HealthStatus.UNHEALTHY)
    degraded_count = sum(1 for c in components if c.status == HealthStatus.DEGRADED)

    if unhealthy_count > 0:
        overall_status = HealthStatus.UNHEALTHY
    elif degraded_count > 0:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return {
        "status": overall_status.value,
        "timestamp": _timestamp(),
        "version": API_VERSION,
        "check_duration_ms": round((time.perf_counter() - start) * 1000, 2),
        "components": {
            c.name: {
                "status": c.status.value,
                "latency_ms": c.latency_ms,
                "message": c.message,
                **({"details": c.details} if c.details else {}),
            }
            for c in components
        },
    }


async def perform_liveness_check() -> Dict[str, Any]:
    """Fast check that the process is alive; no dependency checks."""
    return {
        "status": "alive",
        "timestamp": _timestamp(),
    }


async def perform_readiness_check() -> Dict[str, Any]:
    """Ready to accept traffic when the database answers."""
    db_health = check_database_health()
    is_ready = db_health.status == HealthStatus.HEALTHY

    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": _timestamp(),
        "database": db_health.status.value,
    }
