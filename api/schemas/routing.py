"""Route generation, synthesis and smoothing API schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .common import CamelModel, LatLng


class RouteRequest(BaseModel):
    """Route generation request; `dest` and `destination` are interchangeable."""
    origin: LatLng
    dest: Optional[LatLng] = None
    destination: Optional[LatLng] = None
    units: str = "kilometers"

    @property
    def target(self) -> Optional[LatLng]:
        return self.dest or self.destination


class RouteResponse(BaseModel):
    coordinates: List[List[float]] = Field(..., description="[[lon, lat], ...]")


class PortModel(CamelModel):
    id: str
    name: str
    code: Optional[str] = None
    latitude: float
    longitude: float


class SynthesizeRequest(CamelModel):
    origin_port: PortModel
    destination_port: PortModel


class SmoothRequest(BaseModel):
    vertices: List[List[float]] = Field(..., description="[[lat, lng], ...]")


class SmoothResponse(CamelModel):
    vertices: List[List[float]]
    added_points: int
    message: Optional[str] = None
