"""
Route generation against the searoute maritime network.

Input is two (lat, lng) points; output is the GeoJSON-style coordinate list
([lon, lat] pairs) of the shortest path on the network. Backend failures,
timeouts and empty paths all become UpstreamRoutingError so the caller can
show "no sea route found".
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import searoute as sr

from api.resilience import CircuitBreaker, register_circuit_breaker, with_timeout
from src.errors import InputError, UpstreamRoutingError
from src.routes.geodesy import validate_coordinate

logger = logging.getLogger(__name__)

# API unit names -> searoute unit codes
UNITS = {
    "kilometers": "km",
    "nauticalMiles": "naut",
    "nautical miles": "naut",
    "miles": "mi",
}

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class RouteGeometry:
    coordinates: List[List[float]]  # [[lon, lat], ...]
    length: Optional[float]
    units: str


class SearouteBackend:
    """
    Shortest maritime path between two points.

    Usage:
        backend = SearouteBackend()
        geometry = backend.generate(25.76, -80.19, 25.03, -77.36)
        geometry.coordinates  # [[-80.19, 25.76], ...]
    """

    def __init__(
        self,
        breaker: Optional[CircuitBreaker] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.breaker = breaker or CircuitBreaker(name="searoute")
        register_circuit_breaker(self.breaker)
        self._compute = self.breaker(with_timeout(timeout_seconds)(self._searoute))

    @staticmethod
    def _searoute(origin: List[float], destination: List[float], units: str) -> dict:
        return sr.searoute(origin, destination, units=units,
                           append_orig_dest=True, include_ports=False)

    def generate(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float,
        units: str = "kilometers",
    ) -> RouteGeometry:
        """
        Raises:
            InputError: invalid coordinates or units
            UpstreamRoutingError: backend failure or no path (CircuitOpenError
                while the breaker is open)
        """
        validate_coordinate(origin_lat, origin_lng, field="origin")
        validate_coordinate(dest_lat, dest_lng, field="destination")
        unit_code = UNITS.get(units)
        if unit_code is None:
            raise InputError(f"Unsupported units: {units}", field="units")

        origin = [origin_lng, origin_lat]
        destination = [dest_lng, dest_lat]

        try:
            feature = self._compute(origin, destination, unit_code)
        except UpstreamRoutingError:
            raise
        except Exception as e:
            logger.error(f"Sea route calculation failed {origin} -> {destination}: {e}")
            raise UpstreamRoutingError("No sea route found") from e

        coordinates = _feature_coordinates(feature)
        if len(coordinates) < 2:
            logger.info(f"No sea route between {origin} and {destination}")
            raise UpstreamRoutingError("No sea route found")

        properties = feature.get("properties") or {}
        return RouteGeometry(
            coordinates=coordinates,
            length=properties.get("length"),
            units=units,
        )


def _feature_coordinates(feature) -> List[List[float]]:
    if not feature:
        return []
    geometry = feature.get("geometry") or {}
    if geometry.get("type", "LineString") != "LineString":
        return []
    return [[float(c[0]), float(c[1])] for c in geometry.get("coordinates") or []]


_backend: Optional[SearouteBackend] = None


def get_routing_backend() -> SearouteBackend:
    """FastAPI dependency: shared backend configured from settings."""
    global _backend
    if _backend is None:
        from api.config import settings
        _backend = SearouteBackend(
            breaker=CircuitBreaker(
                name="searoute",
                failure_threshold=settings.routing_breaker_failures,
                recovery_timeout=settings.routing_breaker_recovery,
            )
        )
    return _backend
