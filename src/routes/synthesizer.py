"""
Maritime route synthesis between two ports.

When the straight segment between the ports is clear of the reference
landmasses the route follows the great circle, discretized into at least
ten steps. Otherwise a single waypoint is displaced perpendicular to the
course from the midpoint and the three-point chain is smoothed.

Output coordinates are GeoJSON-style (lon, lat). Every consecutive pair is
classified as sea or land for rendering; that classification is metadata
and never re-triggers routing.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from src.config import RoutingSettings, routing_settings
from src.data.landmasses import LandCrossingClassifier, get_classifier
from src.errors import InputError
from src.routes.geodesy import (
    Distance,
    ZERO_DISTANCE,
    calculate_bearing,
    destination_point,
    great_circle_distance,
    midpoint,
    validate_coordinate,
)
from src.routes.smoothing import smooth

logger = logging.getLogger(__name__)

LonLat = Tuple[float, float]


class RouteKind(str, Enum):
    """Route classification."""
    SEA_ONLY = "sea_only"
    MIXED = "mixed"


@dataclass(frozen=True)
class Port:
    """Reference port data, owned by the external catalog."""
    id: str
    name: str
    latitude: float
    longitude: float
    code: Optional[str] = None

    def __post_init__(self):
        validate_coordinate(self.latitude, self.longitude, field=f"port {self.id}")

    @property
    def lon_lat(self) -> LonLat:
        return (self.longitude, self.latitude)


@dataclass
class RouteSegment:
    """One leg between consecutive route coordinates."""
    start: LonLat
    end: LonLat
    crosses_land: bool
    distance_nm: float
    distance_km: float

    @property
    def type(self) -> str:
        return "land" if self.crosses_land else "sea"

    @property
    def style(self) -> str:
        """Rendering hint: land legs are drawn dotted."""
        return "dotted" if self.crosses_land else "solid"

    def to_dict(self) -> dict:
        return {
            "start": list(self.start),
            "end": list(self.end),
            "type": self.type,
            "style": self.style,
            "crossesLand": self.crosses_land,
            "distanceNauticalMiles": self.distance_nm,
            "distanceKm": self.distance_km,
        }


@dataclass
class MaritimeRoute:
    """A synthesized route with per-segment metadata."""
    coordinates: List[LonLat]
    segments: List[RouteSegment] = field(default_factory=list)
    total_distance_nm: float = 0.0
    total_distance_km: float = 0.0
    kind: RouteKind = RouteKind.SEA_ONLY
    duration: str = ""
    detoured: bool = False

    @property
    def lat_lng(self) -> List[Tuple[float, float]]:
        """Coordinates flipped to (lat, lng) for display and persistence."""
        return [(lat, lon) for lon, lat in self.coordinates]

    def to_dict(self) -> dict:
        return {
            "coordinates": [list(c) for c in self.coordinates],
            "segments": [s.to_dict() for s in self.segments],
            "totalDistanceNauticalMiles": self.total_distance_nm,
            "totalDistanceKm": self.total_distance_km,
            "kind": self.kind.value,
            "duration": self.duration,
            "detoured": self.detoured,
        }


def estimate_duration(distance_nm: float, speed_knots: float = 20.0) -> str:
    """Whole days at sea at an average cruise speed, e.g. '3 days'."""
    days = math.ceil(distance_nm / (speed_knots * 24))
    return f"{days} day{'' if days == 1 else 's'}"


class RouteSynthesizer:
    """
    Builds sea-navigable coordinate sequences for port pairs.

    Usage:
        synthesizer = RouteSynthesizer()
        route = synthesizer.synthesize(miami, nassau)
        print(route.total_distance_nm, route.duration)
    """

    def __init__(
        self,
        classifier: Optional[LandCrossingClassifier] = None,
        settings: Optional[RoutingSettings] = None,
    ):
        self.classifier = classifier or get_classifier()
        self.settings = settings or routing_settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def synthesize(self, origin: Port, destination: Port) -> MaritimeRoute:
        """
        Produce the full route for a port pair.

        Raises:
            InputError: origin and destination are the same port or location
        """
        if origin.id == destination.id:
            raise InputError("Origin and destination ports cannot be the same", field="destinationPortId")
        if (origin.latitude, origin.longitude) == (destination.latitude, destination.longitude):
            raise InputError("Origin and destination share the same coordinates", field="destinationPort")

        start = origin.lon_lat
        end = destination.lon_lat

        if self.classifier.crosses_land(origin.latitude, origin.longitude,
                                        destination.latitude, destination.longitude):
            logger.info(f"Direct line {origin.name} -> {destination.name} crosses land, detouring")
            coordinates = self.detour_route(start, end)
            detoured = True
        else:
            coordinates = self.great_circle_route(start, end)
            detoured = False

        route = self.build_route(coordinates)
        route.detoured = detoured
        logger.info(
            f"Synthesized {origin.name} -> {destination.name}: {len(route.coordinates)} points, "
            f"{route.total_distance_nm:.1f} nm, {route.kind.value}"
        )
        return route

    def build_route(self, coordinates: Sequence[Sequence[float]]) -> MaritimeRoute:
        """
        Classify segments and compute totals for an existing (lon, lat) sequence.

        Raises:
            InputError: fewer than two coordinates
        """
        coords = [(float(c[0]), float(c[1])) for c in coordinates]
        if len(coords) < 2:
            raise InputError("A route needs at least 2 coordinates", field="coordinates")

        segments = self.classify_segments(coords)
        total = ZERO_DISTANCE
        for segment in segments:
            total = total + Distance(segment.distance_nm, segment.distance_km)

        kind = RouteKind.MIXED if any(s.crosses_land for s in segments) else RouteKind.SEA_ONLY
        return MaritimeRoute(
            coordinates=coords,
            segments=segments,
            total_distance_nm=total.nautical_miles,
            total_distance_km=total.kilometers,
            kind=kind,
            duration=estimate_duration(total.nautical_miles, self.settings.cruise_speed_knots),
        )

    # ------------------------------------------------------------------
    # Path construction
    # ------------------------------------------------------------------

    def great_circle_route(self, start: LonLat, end: LonLat) -> List[LonLat]:
        """Great-circle path discretized into max(10, floor(km / 100)) steps."""
        start_lon, start_lat = start
        end_lon, end_lat = end

        distance_km = great_circle_distance(start_lat, start_lon, end_lat, end_lon).kilometers
        bearing = calculate_bearing(start_lat, start_lon, end_lat, end_lon)
        steps = max(
            self.settings.min_direct_steps,
            int(math.floor(distance_km / self.settings.direct_step_km)),
        )

        coordinates: List[LonLat] = []
        for i in range(steps + 1):
            lat, lon = destination_point(start_lat, start_lon, distance_km * i / steps, bearing)
            coordinates.append((lon, lat))

        # Pin the endpoints so rounding never moves the ports
        coordinates[0] = (start_lon, start_lat)
        coordinates[-1] = (end_lon, end_lat)
        return coordinates

    def detour_waypoint(self, start: LonLat, end: LonLat) -> LonLat:
        """Midpoint displaced perpendicular (bearing + 90) by the detour offset."""
        start_lon, start_lat = start
        end_lon, end_lat = end

        mid_lat, mid_lon = midpoint(start_lat, start_lon, end_lat, end_lon)
        bearing = calculate_bearing(start_lat, start_lon, end_lat, end_lon)
        lat, lon = destination_point(mid_lat, mid_lon, self.settings.detour_offset_km, bearing + 90)
        return (lon, lat)

    def detour_route(self, start: LonLat, end: LonLat) -> List[LonLat]:
        """[start, displaced waypoint, end] smoothed into a curve."""
        waypoint = self.detour_waypoint(start, end)
        return smooth([start, waypoint, end])

    def classify_segments(self, coordinates: Sequence[LonLat]) -> List[RouteSegment]:
        segments = []
        for (lon1, lat1), (lon2, lat2) in zip(coordinates, coordinates[1:]):
            distance = great_circle_distance(lat1, lon1, lat2, lon2)
            segments.append(RouteSegment(
                start=(lon1, lat1),
                end=(lon2, lat2),
                crosses_land=self.classifier.crosses_land(lat1, lon1, lat2, lon2),
                distance_nm=distance.nautical_miles,
                distance_km=distance.kilometers,
            ))
        return segments
