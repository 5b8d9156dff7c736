"""
SEALANE API Pydantic schemas.

Re-exports all schema classes:
    from api.schemas import SegmentSaveRequest, RouteRequest, ...
"""

# Common
from .common import CamelModel, LatLng  # noqa: F401

# Segments
from .segments import PortInfo, SegmentSaveRequest, SegmentSaveResponse  # noqa: F401

# Routing
from .routing import (  # noqa: F401
    PortModel,
    RouteRequest,
    RouteResponse,
    SmoothRequest,
    SmoothResponse,
    SynthesizeRequest,
)
