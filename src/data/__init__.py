"""Reference geographic data for route synthesis."""

from .landmasses import (
    Landmass,
    LandCrossingClassifier,
    REFERENCE_LANDMASSES,
    crosses_land,
    get_classifier,
)

__all__ = [
    'Landmass',
    'LandCrossingClassifier',
    'REFERENCE_LANDMASSES',
    'crosses_land',
    'get_classifier',
]
