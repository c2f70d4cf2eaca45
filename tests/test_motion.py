from __future__ import annotations

import math

from pysaillogger.ingestion.deltas import SELF_CONTEXT, Reading
from pysaillogger.ingestion.motion import MotionState, SampleIngest
from pysaillogger.models.position import Position


def _self(path: str, value: object, source: str | None = None) -> Reading:
    return Reading(context=SELF_CONTEXT, path=path, value=value, source=source)


def test_speed_window_holds_samples_preceding_current() -> None:
    motion = MotionState()
    for speed in (1.0, 2.0, 3.0, 4.0, 5.0):
        motion.record_speed(speed)

    assert motion.speed_over_ground == 5.0
    assert list(motion.speed_window) == [2.0, 3.0, 4.0]


def test_course_window_keeps_six_newest_including_current() -> None:
    motion = MotionState()
    for course in range(8):
        motion.record_course(float(course))

    assert list(motion.course_window) == [2.0, 3.0, 4.0, 5.0, 6.0, 7.0]
    assert motion.course_over_ground == 7.0


def test_peaks_reset_but_current_fields_stay() -> None:
    motion = MotionState()
    motion.record_speed(6.0)
    motion.record_speed(4.0)
    motion.record_wind_speed(18.0)
    motion.record_wind_speed(12.0)

    record = motion.make_record(Position(lat=1.0, lon=2.0), 1_000.0)
    assert record.max_speed_over_ground == 6.0
    assert record.max_wind_speed_apparent == 18.0

    motion.reset_aggregates()
    assert motion.peak_speed_over_ground is None
    assert motion.peak_wind_speed_apparent is None
    assert motion.speed_over_ground == 4.0

    # Without a new sample the current speed stands in for the peak.
    record = motion.make_record(Position(lat=1.0, lon=2.0), 2_000.0)
    assert record.max_speed_over_ground == 4.0
    assert record.max_wind_speed_apparent is None


def test_sample_ingest_converts_units() -> None:
    motion = MotionState()
    ingest = SampleIngest(motion)

    ingest.apply(_self("navigation.speedOverGround", 1.0))
    ingest.apply(_self("navigation.courseOverGroundTrue", math.pi))
    ingest.apply(_self("environment.wind.speedApparent", 5.0))
    ingest.apply(_self("environment.wind.angleApparent", -math.pi / 2))

    assert motion.speed_over_ground == 1.9
    assert motion.course_over_ground == 180.0
    assert motion.peak_wind_speed_apparent == 9.7
    assert motion.wind_angle_apparent == -90.0


def test_sample_ingest_returns_position_without_committing_it() -> None:
    motion = MotionState()
    ingest = SampleIngest(motion)

    position = ingest.apply(_self("navigation.position", {"latitude": 59.5, "longitude": 18.25}))

    assert position == Position(lat=59.5, lon=18.25)
    assert motion.position is None


def test_sample_ingest_filters_gps_source() -> None:
    ingest = SampleIngest(MotionState(), gps_source="can0.115")

    assert ingest.apply(_self("navigation.position", {"latitude": 1, "longitude": 2}, source="ttyUSB0.GP")) is None
    assert ingest.apply(_self("navigation.position", {"latitude": 1, "longitude": 2}, source="can0.115")) is not None


def test_sample_ingest_ignores_other_vessels_and_bad_values() -> None:
    motion = MotionState()
    ingest = SampleIngest(motion)

    other = Reading(context="vessels.urn:mrn:imo:mmsi:230000001", path="navigation.speedOverGround", value=3.0)
    assert ingest.apply(other) is None
    assert motion.speed_over_ground is None

    assert ingest.apply(_self("navigation.position", {"latitude": 95, "longitude": 0})) is None
    assert ingest.apply(_self("navigation.position", "not a position")) is None
    ingest.apply(_self("navigation.speedOverGround", None))
    ingest.apply(_self("navigation.unknownPath", 1.0))
    assert motion.speed_over_ground is None
