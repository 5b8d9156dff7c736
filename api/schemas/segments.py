"""Route segment persistence API schemas."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from .common import CamelModel


class PortInfo(CamelModel):
    """Port snapshot stored with a segment."""
    id: Optional[str] = None
    name: Optional[str] = None
    code: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class SegmentSaveRequest(CamelModel):
    """
    Save request for a route segment.

    Fields are optional here so that missing values are reported by the
    segment validator as a 400 naming the field.
    """
    origin_port_id: Optional[str] = None
    destination_port_id: Optional[str] = None
    origin_port: Optional[PortInfo] = None
    destination_port: Optional[PortInfo] = None
    route_coordinates: Optional[List[List[float]]] = Field(None, description="[[lat, lng], ...]")
    route_type: str = "manual"
    created_by: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SegmentSaveResponse(CamelModel):
    success: bool = True
    segment_id: str
    version: int
    created_at: str
    message: str = "Route segment saved successfully"
