"""Great-circle helpers."""

from __future__ import annotations

import math

from pysaillogger._constants import ARC_DEGREE_MILES, STATUTE_TO_NAUTICAL
from pysaillogger.models.position import Position


def distance_nm(a: Position, b: Position) -> float:
    """Distance between two positions in nautical miles.

    Uses the spherical law of cosines with the cosine clamped to
    ``[-1, 1]``. Identical coordinates short-circuit to 0.
    """
    if a.lat == b.lat and a.lon == b.lon:
        return 0.0

    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    delta_lambda = math.radians(a.lon - b.lon)
    cosine = math.sin(phi1) * math.sin(phi2) + math.cos(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    cosine = max(-1.0, min(cosine, 1.0))
    arc_degrees = math.degrees(math.acos(cosine))
    return arc_degrees * ARC_DEGREE_MILES * STATUTE_TO_NAUTICAL


def heading_delta(newest: float, oldest: float) -> float:
    """Signed smallest angle from *oldest* to *newest*, in (-180, 180]."""
    delta = (newest - oldest) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return delta
