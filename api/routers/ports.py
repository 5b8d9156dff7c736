"""
Port catalog and sea-route generation API router.

The catalog is read-only reference data. Listing responses for the first
pages and for popular search prefixes are cached.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func

from api.cache import RouteCache, get_route_cache, ports_key
from api.config import settings
from api.database import get_db
from api.models import Port
from api.rate_limit import limiter, get_rate_limit_string
from api.routing_backend import SearouteBackend, get_routing_backend
from api.schemas import RouteRequest, RouteResponse
from src.errors import InputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ports", tags=["Ports"])


def _is_cacheable(search: str) -> bool:
    if not search:
        return True
    return any(search.startswith(term) for term in settings.popular_port_searches_list)


@router.get("")
@limiter.limit(get_rate_limit_string())
async def list_ports(
    request: Request,
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    search: str = Query(""),
    db=Depends(get_db),
    cache: RouteCache = Depends(get_route_cache),
):
    """Active ports ordered by name, optionally filtered by name prefix."""
    search = search.strip().lower()
    key = ports_key(search, offset, limit)
    cacheable = _is_cacheable(search)

    if cacheable:
        cached = cache.get_json(key)
        if cached is not None:
            return cached

    query = db.query(Port).filter(Port.port_status.is_(True))
    if search:
        query = query.filter(func.lower(Port.port_name).like(f"{search}%"))

    total = query.count()
    rows = query.order_by(Port.port_name).offset(offset).limit(limit).all()

    response = {
        "ports": [row.to_dict() for row in rows],
        "total": total,
        "offset": offset,
        "limit": limit,
        "hasMore": offset + len(rows) < total,
        "search": search,
    }

    if cacheable:
        cache.set_json(key, response, settings.ports_cache_ttl)
    return response


@router.post("/route", response_model=RouteResponse)
@limiter.limit(get_rate_limit_string())
async def generate_route(
    request: Request,
    body: RouteRequest,
    backend: SearouteBackend = Depends(get_routing_backend),
):
    """
    Shortest path on the maritime network between two points.

    Coordinates are returned as [lon, lat]; failures answer 502
    "No sea route found".
    """
    target = body.target
    if target is None:
        raise InputError("Destination coordinates are required", field="dest")

    geometry = await asyncio.to_thread(
        backend.generate,
        body.origin.lat,
        body.origin.lng,
        target.lat,
        target.lng,
        body.units,
    )
    logger.info(f"Sea route with {len(geometry.coordinates)} points")
    return RouteResponse(coordinates=geometry.coordinates)
