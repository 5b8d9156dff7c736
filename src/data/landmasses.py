"""
Reference landmasses for maritime route synthesis.

Provides crosses_land(lat1, lon1, lat2, lon2) to decide whether the straight
segment between two points touches land.

The landmass set is deliberately coarse: three simplified continental
polygons, not a coastline database. The route synthesizer only uses the
answer as a binary "detour needed" trigger, and saved routes were generated
against these exact boundaries, so any change to the polygons changes
observable route shapes and must ship with its own tests.

Intersection is planar in (lon, lat) space, matching how the shapes were
drawn. Boundary contact counts as crossing.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from shapely.geometry import LineString, Point, Polygon
from shapely.prepared import prep

from src.routes.geodesy import validate_coordinate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reference polygons, rings in (lon, lat)
# ---------------------------------------------------------------------------
# North America keeps the Florida Straits and the Bahamas open water: its
# south-east edge runs from Nova Scotia down to the Georgia coast instead of
# closing along 25N.
NORTH_AMERICA_RING = [
    (-125.0, 50.0), (-67.0, 50.0), (-67.0, 45.0), (-81.0, 30.5),
    (-97.0, 30.0), (-125.0, 30.0), (-125.0, 50.0),
]

EUROPE_RING = [
    (-10.0, 35.0), (40.0, 35.0), (40.0, 71.0), (-10.0, 71.0), (-10.0, 35.0),
]

AFRICA_RING = [
    (-20.0, -35.0), (52.0, -35.0), (52.0, 37.0), (-20.0, 37.0), (-20.0, -35.0),
]


@dataclass(frozen=True)
class Landmass:
    """A named landmass polygon."""
    name: str
    polygon: Polygon

    @classmethod
    def from_ring(cls, name: str, ring: Sequence[Tuple[float, float]]) -> "Landmass":
        polygon = Polygon(ring)
        if not polygon.is_valid:
            polygon = polygon.buffer(0)
        return cls(name=name, polygon=polygon)


REFERENCE_LANDMASSES: Tuple[Landmass, ...] = (
    Landmass.from_ring("North America", NORTH_AMERICA_RING),
    Landmass.from_ring("Europe", EUROPE_RING),
    Landmass.from_ring("Africa", AFRICA_RING),
)


# ---------------------------------------------------------------------------
# Helper: (lat, lon) -> shapely coordinates (lon, lat)
# ---------------------------------------------------------------------------
def _segment(lat1: float, lon1: float, lat2: float, lon2: float):
    """Build the query geometry. Centralizes the coordinate swap."""
    if lat1 == lat2 and lon1 == lon2:
        return Point(lon1, lat1)
    return LineString([(lon1, lat1), (lon2, lat2)])


class LandCrossingClassifier:
    """
    Classifies straight segments as land-crossing or open water.

    Usage:
        classifier = LandCrossingClassifier()
        classifier.crosses_land(25.76, -80.19, 25.03, -77.36)  # False
    """

    def __init__(self, landmasses: Optional[Iterable[Landmass]] = None):
        self.landmasses: List[Landmass] = list(
            REFERENCE_LANDMASSES if landmasses is None else landmasses
        )
        self._prepared = [(lm.name, prep(lm.polygon)) for lm in self.landmasses]

    def crosses_land(self, lat1: float, lon1: float, lat2: float, lon2: float) -> bool:
        """
        Check if the segment between two points intersects any landmass.

        Symmetric: swapping the endpoints never changes the answer.

        Raises:
            InputError: on invalid coordinates
        """
        validate_coordinate(lat1, lon1, field="start")
        validate_coordinate(lat2, lon2, field="end")

        geometry = _segment(lat1, lon1, lat2, lon2)
        for name, prepared in self._prepared:
            if prepared.intersects(geometry):
                logger.debug(
                    f"Segment ({lat1:.4f}, {lon1:.4f}) -> ({lat2:.4f}, {lon2:.4f}) crosses {name}"
                )
                return True
        return False

    def crossed_landmasses(self, lat1: float, lon1: float, lat2: float, lon2: float) -> List[str]:
        """Names of every landmass the segment intersects."""
        validate_coordinate(lat1, lon1, field="start")
        validate_coordinate(lat2, lon2, field="end")

        geometry = _segment(lat1, lon1, lat2, lon2)
        return [name for name, prepared in self._prepared if prepared.intersects(geometry)]


_default_classifier: Optional[LandCrossingClassifier] = None


def get_classifier() -> LandCrossingClassifier:
    """Shared classifier over the reference landmasses."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = LandCrossingClassifier()
    return _default_classifier


def crosses_land(
    lat1: float, lon1: float,
    lat2: float, lon2: float,
    landmasses: Optional[Iterable[Landmass]] = None,
) -> bool:
    """
    Check if the straight segment between two points crosses land.

    Args:
        lat1, lon1: Start point
        lat2, lon2: End point
        landmasses: Polygons to test against (default: reference set)

    Returns:
        True if the segment touches any landmass boundary or interior
    """
    if landmasses is None:
        return get_classifier().crosses_land(lat1, lon1, lat2, lon2)
    return LandCrossingClassifier(landmasses).crosses_land(lat1, lon1, lat2, lon2)


def get_landmass_status() -> dict:
    """Describe the landmass set in use."""
    classifier = get_classifier()
    return {
        "method": "simplified reference polygons",
        "landmasses": [lm.name for lm in classifier.landmasses],
        "bounds": {lm.name: list(lm.polygon.bounds) for lm in classifier.landmasses},
    }
