from __future__ import annotations

import pytest

from pysaillogger.geo import distance_nm, heading_delta
from pysaillogger.models.position import Position


def test_distance_identical_coordinates_is_zero() -> None:
    p = Position(lat=59.3293, lon=18.0686)
    assert distance_nm(p, p) == 0.0


def test_distance_is_symmetric() -> None:
    a = Position(lat=37.8, lon=-122.4)
    b = Position(lat=37.9, lon=-122.2)
    assert distance_nm(a, b) == pytest.approx(distance_nm(b, a))


def test_one_degree_of_latitude_is_about_sixty_miles() -> None:
    a = Position(lat=0.0, lon=0.0)
    b = Position(lat=1.0, lon=0.0)
    assert distance_nm(a, b) == pytest.approx(60.0, abs=0.05)


def test_nearly_identical_coordinates_do_not_raise() -> None:
    # Floating point can push the cosine slightly above 1.
    a = Position(lat=45.000000001, lon=7.0)
    b = Position(lat=45.000000002, lon=7.0)
    assert distance_nm(a, b) == pytest.approx(0.0, abs=1e-3)


@pytest.mark.parametrize(
    ("newest", "oldest", "expected"),
    [
        (30.0, 0.0, 30.0),
        (0.0, 30.0, -30.0),
        (10.0, 350.0, 20.0),
        (350.0, 10.0, -20.0),
        (180.0, 0.0, 180.0),
    ],
)
def test_heading_delta_wraps_around_north(newest: float, oldest: float, expected: float) -> None:
    assert heading_delta(newest, oldest) == pytest.approx(expected)
