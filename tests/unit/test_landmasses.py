"""Tests for the reference landmass crossing classifier."""

import pytest

from src.data.landmasses import (
    REFERENCE_LANDMASSES,
    LandCrossingClassifier,
    Landmass,
    crosses_land,
    get_landmass_status,
)
from src.errors import InputError

MIAMI = (25.7617, -80.1918)
NASSAU = (25.0343, -77.3554)


class TestReferenceLandmasses:

    def test_three_continents(self):
        names = [lm.name for lm in REFERENCE_LANDMASSES]
        assert names == ["North America", "Europe", "Africa"]

    def test_polygons_valid(self):
        for lm in REFERENCE_LANDMASSES:
            assert lm.polygon.is_valid
            assert lm.polygon.area > 0

    def test_status(self):
        status = get_landmass_status()
        assert status["landmasses"] == ["North America", "Europe", "Africa"]
        assert set(status["bounds"]) == {"North America", "Europe", "Africa"}


class TestCrossesLand:

    def test_florida_straits_open(self):
        assert crosses_land(*MIAMI, *NASSAU) is False

    def test_open_atlantic(self):
        assert crosses_land(30.0, -50.0, 40.0, -40.0) is False

    def test_open_pacific(self):
        assert crosses_land(0.0, -150.0, 10.0, -140.0) is False

    def test_across_africa(self):
        assert crosses_land(20.0, -30.0, 20.0, 60.0) is True

    def test_transatlantic_into_europe(self):
        # New York to Southampton starts and ends on the simplified continents
        assert crosses_land(40.684, -74.0062, 50.8998, -1.4044) is True

    def test_across_north_america(self):
        assert crosses_land(40.0, -130.0, 40.0, -60.0) is True

    def test_symmetric(self):
        pairs = [
            (MIAMI, NASSAU),
            ((20.0, -30.0), (20.0, 60.0)),
            ((30.0, -50.0), (40.0, -40.0)),
            ((75.0, -20.0), (71.0, -10.0)),
        ]
        for a, b in pairs:
            assert crosses_land(*a, *b) == crosses_land(*b, *a)

    def test_boundary_contact_counts(self):
        # Ends exactly on Europe's north-west corner
        assert crosses_land(80.0, -10.0, 71.0, -10.0) is True

    def test_edge_running_along_boundary(self):
        assert crosses_land(71.0, -20.0, 71.0, 50.0) is True

    def test_degenerate_segment_on_land(self):
        assert crosses_land(40.0, 0.0, 40.0, 0.0) is True

    def test_degenerate_segment_at_sea(self):
        assert crosses_land(0.0, -150.0, 0.0, -150.0) is False

    def test_invalid_coordinates(self):
        with pytest.raises(InputError):
            crosses_land(95.0, 0.0, 0.0, 0.0)


class TestClassifier:

    def test_crossed_landmasses(self):
        classifier = LandCrossingClassifier()
        assert classifier.crossed_landmasses(10.0, 0.0, 50.0, 0.0) == ["Europe", "Africa"]
        assert classifier.crossed_landmasses(*MIAMI, *NASSAU) == []

    def test_custom_landmasses(self):
        box = Landmass.from_ring("Box", [(-1, -1), (1, -1), (1, 1), (-1, 1), (-1, -1)])
        assert crosses_land(-5.0, 0.0, 5.0, 0.0, landmasses=[box]) is True
        assert crosses_land(-5.0, 3.0, 5.0, 3.0, landmasses=[box]) is False

    def test_empty_landmass_set(self):
        classifier = LandCrossingClassifier(landmasses=[])
        assert classifier.crosses_land(20.0, -30.0, 20.0, 60.0) is False
