"""
Maritime routes API router.

Synthesizes port-to-port routes against the reference landmasses and
smooths hand-edited polylines.
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, Request

from api.rate_limit import limiter, get_rate_limit_string
from api.schemas import SmoothRequest, SmoothResponse, SynthesizeRequest
from src.errors import NeedMorePointsError
from src.routes.smoothing import CurveSmoother
from src.routes.synthesizer import Port, RouteSynthesizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/routes", tags=["Routes"])


@lru_cache()
def get_synthesizer() -> RouteSynthesizer:
    return RouteSynthesizer()


@router.post("/synthesize")
@limiter.limit(get_rate_limit_string())
async def synthesize_route(
    request: Request,
    body: SynthesizeRequest,
    synthesizer: RouteSynthesizer = Depends(get_synthesizer),
):
    """
    Build a route between two ports.

    Great-circle when the direct line is clear of land, otherwise a smoothed
    perpendicular detour. Coordinates are [lon, lat].
    """
    origin = Port(**body.origin_port.model_dump())
    destination = Port(**body.destination_port.model_dump())

    route = synthesizer.synthesize(origin, destination)
    return route.to_dict()


@router.post("/smooth", response_model=SmoothResponse)
@limiter.limit(get_rate_limit_string())
async def smooth_route(request: Request, body: SmoothRequest):
    """
    One smoothing pass over a polyline.

    Call again with the result to refine further. Fewer than three vertices
    is answered with the input unchanged and a message.
    """
    smoother = CurveSmoother()
    try:
        smoothed = smoother.smooth(body.vertices)
    except NeedMorePointsError as e:
        return SmoothResponse(vertices=body.vertices, added_points=0, message=e.message)

    return SmoothResponse(
        vertices=[list(v) for v in smoothed],
        added_points=smoother.added_points(body.vertices, smoothed),
    )
