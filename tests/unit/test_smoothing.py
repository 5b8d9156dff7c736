"""Tests for progressive curve smoothing."""

import pytest

from src.errors import InputError, NeedMorePointsError
from src.routes.smoothing import (
    MAX_STEPS,
    MIN_STEPS,
    CurveSmoother,
    catmull_rom,
    segment_steps,
    smooth,
)


class TestSegmentSteps:

    def test_short_segment_clamped_to_minimum(self):
        assert segment_steps((0.0, 0.0), (0.001, 0.0)) == MIN_STEPS

    def test_proportional_in_between(self):
        assert segment_steps((0.0, 0.0), (0.05, 0.0)) == 5

    def test_long_segment_clamped_to_maximum(self):
        assert segment_steps((0.0, 0.0), (10.0, 10.0)) == MAX_STEPS

    def test_zero_length(self):
        assert segment_steps((1.0, 1.0), (1.0, 1.0)) == MIN_STEPS


class TestCatmullRom:

    def test_passes_through_control_points(self):
        p = [(0.0, 0.0), (1.0, 1.0), (2.0, 0.5), (3.0, 2.0)]
        assert catmull_rom(*p, 0.0) == pytest.approx(p[1])
        assert catmull_rom(*p, 1.0) == pytest.approx(p[2])

    def test_collinear_stays_on_line(self):
        p = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)]
        x, y = catmull_rom(*p, 0.5)
        assert x == pytest.approx(1.5)
        assert y == pytest.approx(0.0)


class TestSmooth:

    def test_rejects_two_points(self):
        with pytest.raises(NeedMorePointsError) as exc:
            smooth([(0.0, 0.0), (1.0, 1.0)])
        assert exc.value.count == 2
        assert exc.value.message == "Need at least 3 points to smooth the curve (got 2)."
        assert exc.value.field == "vertices"

    def test_need_more_points_is_input_error(self):
        with pytest.raises(InputError):
            smooth([])

    def test_endpoints_unchanged(self):
        vertices = [(25.76, -80.19), (26.5, -79.0), (25.03, -77.36)]
        result = smooth(vertices)
        assert result[0] == vertices[0]
        assert result[-1] == vertices[-1]

    def test_original_vertices_kept_in_order(self):
        vertices = [(0.0, 0.0), (1.0, 2.0), (3.0, 2.5), (4.0, 0.0)]
        result = smooth(vertices)
        positions = [result.index(v) for v in vertices]
        assert positions == sorted(positions)

    def test_point_count_for_long_segments(self):
        # Two segments at the 8-step cap: 7 inserted points each
        result = smooth([(0.0, 0.0), (5.0, 5.0), (10.0, 0.0)])
        assert len(result) == 3 + 2 * 7

    def test_outer_segments_are_straight(self):
        result = smooth([(0.0, 0.0), (4.0, 4.0), (8.0, 0.0)])
        first_leg = result[1:8]
        for x, y in first_leg:
            assert y == pytest.approx(x)

    def test_interior_segments_curve(self):
        vertices = [(0.0, 0.0), (2.0, 2.0), (4.0, 2.0), (6.0, 0.0)]
        result = smooth(vertices)
        start = result.index((2.0, 2.0))
        end = result.index((4.0, 2.0))
        interior = result[start + 1:end]
        assert interior
        assert any(y > 2.0 for _, y in interior)

    def test_repeated_passes_keep_refining(self):
        vertices = [(0.0, 0.0), (0.01, 0.02), (0.03, 0.01)]
        once = smooth(vertices)
        twice = smooth(once)
        assert len(twice) > len(once) > len(vertices)
        assert twice[0] == vertices[0]
        assert twice[-1] == vertices[-1]

    def test_input_not_mutated(self):
        vertices = [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]]
        smooth(vertices)
        assert vertices == [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]]

    @pytest.mark.parametrize("vertices", [
        [(1.0,), (2.0,), (3.0,)],
        [(0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 0.0)],
        [(0.0, 0.0), ("north", 1.0), (2.0, 0.0)],
        [(0.0, 0.0), None, (2.0, 0.0)],
    ])
    def test_malformed_vertex_is_input_error(self, vertices):
        with pytest.raises(InputError) as exc:
            smooth(vertices)
        assert exc.value.field == "vertices"


class TestCurveSmoother:

    def test_counts_passes(self):
        smoother = CurveSmoother()
        result = smoother.smooth([(0.0, 0.0), (1.0, 1.0), (2.0, 0.0)])
        smoother.smooth(result)
        assert smoother.passes == 2

    def test_added_points(self):
        smoother = CurveSmoother()
        before = [(0.0, 0.0), (1.0, 1.0), (2.0, 0.0)]
        after = smoother.smooth(before)
        assert smoother.added_points(before, after) == len(after) - 3
        assert smoother.added_points(before, after) > 0

    def test_failed_pass_not_counted(self):
        smoother = CurveSmoother()
        with pytest.raises(NeedMorePointsError):
            smoother.smooth([(0.0, 0.0)])
        assert smoother.passes == 0
