"""
Route segment persistence API router.

Saves hand-edited or generated routes as versioned segments and serves the
active version, cache first.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.cache import RouteCache, get_route_cache, segment_key
from api.config import settings
from api.database import get_db
from api.rate_limit import limiter, get_rate_limit_string
from api.schemas import SegmentSaveRequest, SegmentSaveResponse
from api.segment_store import (
    SegmentCandidate,
    SegmentVersionStore,
    format_timestamp,
    serialize_segment,
)
from src.errors import InputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/segments", tags=["Segments"])


def _port_dict(port) -> Optional[dict]:
    return port.model_dump(exclude_none=True) if port is not None else None


@router.get("/get")
@limiter.limit(get_rate_limit_string())
async def get_segment(
    request: Request,
    origin_port_id: Optional[str] = Query(None, alias="originPortId"),
    destination_port_id: Optional[str] = Query(None, alias="destinationPortId"),
    db=Depends(get_db),
    cache: RouteCache = Depends(get_route_cache),
):
    """
    Active version of the segment between two ports.

    Returns `{"found": false}` when nothing has been saved yet.
    """
    if not origin_port_id or not destination_port_id:
        raise InputError(
            "Origin and destination port IDs are required",
            field="originPortId" if not origin_port_id else "destinationPortId",
        )
    if origin_port_id == destination_port_id:
        raise InputError("Origin and destination ports cannot be the same", field="destinationPortId")

    segment_id = f"{origin_port_id}-{destination_port_id}"
    key = segment_key(segment_id)

    cached = cache.get_json(key)
    if cached is not None:
        return cached

    row = SegmentVersionStore(db).get_by_ports(origin_port_id, destination_port_id)
    if row is None:
        response = {"found": False}
        cache.set_json(key, response, settings.segment_not_found_ttl)
        return response

    response = {"found": True, "segment": serialize_segment(row)}
    cache.set_json(key, response, settings.segment_cache_ttl)
    return response


@router.post("/save", response_model=SegmentSaveResponse)
@limiter.limit(get_rate_limit_string())
async def save_segment(
    request: Request,
    body: SegmentSaveRequest,
    db=Depends(get_db),
    cache: RouteCache = Depends(get_route_cache),
):
    """
    Save a route as the new active version of its segment.

    Validation failures return 400 with the offending field; nothing is
    written. Storage failures return 500 and leave the previous version
    active.
    """
    candidate = SegmentCandidate.create(
        origin_port_id=body.origin_port_id,
        destination_port_id=body.destination_port_id,
        origin_port=_port_dict(body.origin_port),
        destination_port=_port_dict(body.destination_port),
        route_coordinates=body.route_coordinates,
        route_type=body.route_type,
        created_by=body.created_by,
        metadata=body.metadata,
    )

    result = SegmentVersionStore(db, cache=cache).save(candidate)

    return SegmentSaveResponse(
        segment_id=result.segment_id,
        version=result.version,
        created_at=format_timestamp(result.created_at),
    )


@router.get("/{segment_id}/history")
async def get_segment_history(segment_id: str, db=Depends(get_db)):
    """All saved versions of a segment, newest first."""
    rows = SegmentVersionStore(db).history(segment_id)
    if not rows:
        raise HTTPException(status_code=404, detail=f"Segment {segment_id} not found")

    return {
        "segmentId": segment_id,
        "count": len(rows),
        "versions": [serialize_segment(row) for row in rows],
    }
