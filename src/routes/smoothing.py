"""
Progressive curve smoothing for hand-edited polylines.

Each pass walks the polyline segment by segment and inserts interpolated
points: Catmull-Rom on interior segments, straight-line interpolation on the
first and last segments, which have no neighbour on one side. The number of
inserted points per segment scales with the segment's planar length in
degrees, clamped to [2, 8] steps.

A pass always adds at least one point per segment, so feeding the output
back in keeps refining the curve. Repeated calls are the supported way to
smooth further; there is no cap on the number of passes.
"""

import logging
import math
from typing import List, Sequence, Tuple

from src.errors import InputError, NeedMorePointsError

logger = logging.getLogger(__name__)

Vertex = Tuple[float, float]

MIN_STEPS = 2
MAX_STEPS = 8
STEPS_PER_DEGREE = 100


def segment_steps(start: Sequence[float], end: Sequence[float]) -> int:
    """Interpolation steps for one segment: clamp(floor(length_deg * 100), 2, 8)."""
    length = math.hypot(end[0] - start[0], end[1] - start[1])
    return max(MIN_STEPS, min(MAX_STEPS, int(math.floor(length * STEPS_PER_DEGREE))))


def catmull_rom(p0: Sequence[float], p1: Sequence[float], p2: Sequence[float],
                p3: Sequence[float], t: float) -> Vertex:
    """Uniform Catmull-Rom point between p1 and p2 at parameter t."""
    t2 = t * t
    t3 = t2 * t

    def axis(i: int) -> float:
        return 0.5 * (
            2 * p1[i] +
            (-p0[i] + p2[i]) * t +
            (2 * p0[i] - 5 * p1[i] + 4 * p2[i] - p3[i]) * t2 +
            (-p0[i] + 3 * p1[i] - 3 * p2[i] + p3[i]) * t3
        )

    return axis(0), axis(1)


def _point(value: Sequence[float]) -> Vertex:
    x, y = value
    return float(x), float(y)


def _lerp(a: Sequence[float], b: Sequence[float], t: float) -> Vertex:
    return a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t


def smooth(vertices: Sequence[Sequence[float]]) -> List[Vertex]:
    """
    Run one smoothing pass over a polyline.

    Args:
        vertices: Ordered 2D points, at least three

    Returns:
        New list of vertices; original points are kept in place and the
        first and last points are unchanged

    Raises:
        InputError: a vertex is not a numeric (x, y) pair
        NeedMorePointsError: fewer than three vertices
    """
    try:
        points = [_point(v) for v in vertices]
    except (IndexError, TypeError, ValueError) as e:
        raise InputError(f"Invalid vertex array: {e}", field="vertices")
    if len(points) < 3:
        raise NeedMorePointsError(len(points))

    last_segment = len(points) - 2
    smoothed: List[Vertex] = []

    for i in range(len(points) - 1):
        current = points[i]
        following = points[i + 1]
        smoothed.append(current)

        steps = segment_steps(current, following)
        for j in range(1, steps):
            t = j / steps
            if i == 0 or i == last_segment:
                smoothed.append(_lerp(current, following, t))
            else:
                previous = points[i - 1]
                after = points[i + 2] if i + 2 < len(points) else following
                smoothed.append(catmull_rom(previous, current, following, after, t))

    smoothed.append(points[-1])

    logger.debug(f"Smoothing pass: {len(points)} -> {len(smoothed)} vertices")
    return smoothed


class CurveSmoother:
    """
    Stateless wrapper around smooth() for callers that track pass counts.

    Usage:
        smoother = CurveSmoother()
        refined = smoother.smooth(vertices)
        refined = smoother.smooth(refined)  # further refinement
    """

    def __init__(self):
        self.passes = 0

    def smooth(self, vertices: Sequence[Sequence[float]]) -> List[Vertex]:
        result = smooth(vertices)
        self.passes += 1
        return result

    def added_points(self, before: Sequence, after: Sequence) -> int:
        return len(after) - len(before)
