"""
Great-circle navigation primitives.

Haversine distance, initial bearing, destination point and midpoint on a
spherical Earth. All functions take and return degrees and are pure.
Coordinates are validated up front so bad input fails with InputError
instead of propagating NaN into route metadata.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from src.errors import InputError

EARTH_RADIUS_NM = 3440.065
EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Distance:
    """A distance expressed in both nautical miles and kilometers."""
    nautical_miles: float
    kilometers: float

    def __add__(self, other: "Distance") -> "Distance":
        return Distance(
            self.nautical_miles + other.nautical_miles,
            self.kilometers + other.kilometers,
        )


ZERO_DISTANCE = Distance(0.0, 0.0)


def validate_coordinate(lat: float, lon: float, field: str = "coordinates") -> None:
    """
    Reject latitudes outside [-90, 90], longitudes outside [-180, 180] and NaN.

    Raises:
        InputError: naming the offending field
    """
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise InputError(f"Coordinate is not numeric: ({lat!r}, {lon!r})", field=field)

    if math.isnan(lat) or math.isnan(lon):
        raise InputError("Coordinate contains NaN", field=field)
    if not -90.0 <= lat <= 90.0:
        raise InputError(f"Latitude out of range [-90, 90]: {lat}", field=field)
    if not -180.0 <= lon <= 180.0:
        raise InputError(f"Longitude out of range [-180, 180]: {lon}", field=field)


def _central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine central angle in radians between two validated points."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    # Rounding can push antipodal inputs a hair past 1.0
    a = min(1.0, max(0.0, a))
    return 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def great_circle_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> Distance:
    """
    Calculate great circle distance between two points.

    Args:
        lat1, lon1: First point in degrees
        lat2, lon2: Second point in degrees

    Returns:
        Distance in nautical miles and kilometers
    """
    validate_coordinate(lat1, lon1)
    validate_coordinate(lat2, lon2)
    c = _central_angle(lat1, lon1, lat2, lon2)
    return Distance(EARTH_RADIUS_NM * c, EARTH_RADIUS_KM * c)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great circle distance in nautical miles."""
    return great_circle_distance(lat1, lon1, lat2, lon2).nautical_miles


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great circle distance in kilometers."""
    return great_circle_distance(lat1, lon1, lat2, lon2).kilometers


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate initial bearing from point 1 to point 2.

    Args:
        lat1, lon1: First point in degrees
        lat2, lon2: Second point in degrees

    Returns:
        Bearing in degrees (0-360)
    """
    validate_coordinate(lat1, lon1)
    validate_coordinate(lat2, lon2)

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlon = math.radians(lon2 - lon1)

    x = math.sin(dlon) * math.cos(lat2_rad)
    y = (math.cos(lat1_rad) * math.sin(lat2_rad) -
         math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(dlon))

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180]."""
    wrapped = (lon + 180.0) % 360.0 - 180.0
    # Keep +180 rather than folding it to -180
    if wrapped == -180.0 and lon > 0:
        return 180.0
    return wrapped


def destination_point(lat: float, lon: float, distance_km: float, bearing_deg: float) -> Tuple[float, float]:
    """
    Point reached travelling distance_km from (lat, lon) along an initial bearing.

    Returns:
        (lat, lon) in degrees
    """
    validate_coordinate(lat, lon)
    if distance_km < 0 or math.isnan(distance_km):
        raise InputError(f"Distance must be non-negative: {distance_km}", field="distance")

    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    bearing_rad = math.radians(bearing_deg)
    delta = distance_km / EARTH_RADIUS_KM

    lat2 = math.asin(
        math.sin(lat_rad) * math.cos(delta) +
        math.cos(lat_rad) * math.sin(delta) * math.cos(bearing_rad)
    )
    lon2 = lon_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(delta) * math.cos(lat_rad),
        math.cos(delta) - math.sin(lat_rad) * math.sin(lat2),
    )

    return math.degrees(lat2), normalize_longitude(math.degrees(lon2))


def midpoint(lat1: float, lon1: float, lat2: float, lon2: float) -> Tuple[float, float]:
    """Great-circle midpoint of two points as (lat, lon)."""
    validate_coordinate(lat1, lon1)
    validate_coordinate(lat2, lon2)

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    lon1_rad = math.radians(lon1)
    dlon = math.radians(lon2 - lon1)

    bx = math.cos(lat2_rad) * math.cos(dlon)
    by = math.cos(lat2_rad) * math.sin(dlon)

    lat_m = math.atan2(
        math.sin(lat1_rad) + math.sin(lat2_rad),
        math.sqrt((math.cos(lat1_rad) + bx) ** 2 + by ** 2),
    )
    lon_m = lon1_rad + math.atan2(by, math.cos(lat1_rad) + bx)

    return math.degrees(lat_m), normalize_longitude(math.degrees(lon_m))


def total_distance(coordinates: Iterable[Sequence[float]]) -> Distance:
    """
    Sum of consecutive pairwise great-circle distances.

    Args:
        coordinates: Ordered (lat, lon) pairs

    Returns:
        Total Distance (zero for fewer than two points)
    """
    total = ZERO_DISTANCE
    previous = None
    for point in coordinates:
        lat, lon = point[0], point[1]
        if previous is not None:
            total = total + great_circle_distance(previous[0], previous[1], lat, lon)
        previous = (lat, lon)
    return total
