"""Sample ingest: rolling motion state fed by decoded readings.

Only :class:`SampleIngest` mutates the speed, course and wind fields. The
position is committed by the collector once the significance evaluator has
ruled out a sensor glitch.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from pysaillogger._constants import (
    COURSE_WINDOW_SIZE,
    PATH_COURSE_OVER_GROUND,
    PATH_POSITION,
    PATH_SPEED_OVER_GROUND,
    PATH_WIND_ANGLE_APPARENT,
    PATH_WIND_SPEED_APPARENT,
    SPEED_WINDOW_SIZE,
)
from pysaillogger.ingestion.deltas import Reading
from pysaillogger.ingestion.normalize import ms_to_knots, rad_to_degrees
from pysaillogger.models.position import Position
from pysaillogger.models.telemetry import TelemetryRecord

_logger = logging.getLogger(__name__)


@dataclass
class MotionState:
    """Short-lived rolling state of the own vessel.

    ``speed_window`` holds the speed samples that preceded the current
    ``speed_over_ground`` (oldest first). ``course_window`` holds the most
    recent course samples including the current one (oldest first).
    """

    position: Position | None = None
    position_time: float | None = None
    speed_over_ground: float | None = None
    course_over_ground: float | None = None
    wind_angle_apparent: float | None = None
    peak_wind_speed_apparent: float | None = None
    peak_speed_over_ground: float | None = None
    speed_window: deque[float] = field(default_factory=lambda: deque(maxlen=SPEED_WINDOW_SIZE))
    course_window: deque[float] = field(default_factory=lambda: deque(maxlen=COURSE_WINDOW_SIZE))

    def record_speed(self, knots: float) -> None:
        if self.speed_over_ground is not None:
            self.speed_window.append(self.speed_over_ground)
        self.speed_over_ground = knots
        self.peak_speed_over_ground = _peak(self.peak_speed_over_ground, knots)

    def record_course(self, degrees: float) -> None:
        self.course_over_ground = degrees
        self.course_window.append(degrees)

    def record_wind_speed(self, knots: float) -> None:
        self.peak_wind_speed_apparent = _peak(self.peak_wind_speed_apparent, knots)

    def record_wind_angle(self, degrees: float) -> None:
        self.wind_angle_apparent = degrees

    def accept_position(self, position: Position, at: float) -> None:
        self.position = position
        self.position_time = at

    def is_moving(self, speed_threshold: float) -> bool:
        return self.speed_over_ground is not None and self.speed_over_ground >= speed_threshold

    def reset_aggregates(self) -> None:
        """Clear the since-last-persist peaks; current motion fields stay."""
        self.peak_wind_speed_apparent = None
        self.peak_speed_over_ground = None

    def make_record(
        self,
        position: Position,
        timestamp_ms: float,
        snapshot: dict[str, Any] | None = None,
    ) -> TelemetryRecord:
        max_speed = self.peak_speed_over_ground
        if max_speed is None:
            max_speed = self.speed_over_ground
        return TelemetryRecord(
            timestamp=timestamp_ms,
            lat=position.lat,
            lon=position.lon,
            max_speed_over_ground=max_speed,
            course_over_ground_true=self.course_over_ground,
            max_wind_speed_apparent=self.peak_wind_speed_apparent,
            wind_angle_apparent=self.wind_angle_apparent,
            snapshot=snapshot,
        )


def _peak(current: float | None, value: float) -> float:
    return value if current is None else max(current, value)


class SampleIngest:
    """Route own-vessel readings into a :class:`MotionState`.

    Parameters
    ----------
    motion : MotionState
        State to update.
    gps_source : str or None
        When set, positions from any other ``$source`` are skipped.
    """

    def __init__(self, motion: MotionState, *, gps_source: str | None = None) -> None:
        self.motion = motion
        self._gps_source = gps_source

    def apply(self, reading: Reading) -> Position | None:
        """Apply one reading.

        Returns the decoded position for position readings, which the caller
        hands to the significance evaluator; returns ``None`` otherwise.
        """
        if not reading.is_self:
            return None

        path = reading.path
        if path == PATH_POSITION:
            return self._position(reading)

        if path == PATH_SPEED_OVER_GROUND:
            knots = ms_to_knots(reading.value)
            if knots is not None:
                self.motion.record_speed(knots)
        elif path == PATH_COURSE_OVER_GROUND:
            degrees = rad_to_degrees(reading.value)
            if degrees is not None:
                self.motion.record_course(degrees)
        elif path == PATH_WIND_SPEED_APPARENT:
            knots = ms_to_knots(reading.value)
            if knots is not None:
                self.motion.record_wind_speed(knots)
        elif path == PATH_WIND_ANGLE_APPARENT:
            degrees = rad_to_degrees(reading.value)
            if degrees is not None:
                self.motion.record_wind_angle(degrees)
        else:
            _logger.debug("Unknown path: %s", path)
        return None

    def _position(self, reading: Reading) -> Position | None:
        if self._gps_source and reading.source != self._gps_source:
            _logger.debug("Skipping position from GPS source %s", reading.source)
            return None
        if not isinstance(reading.value, dict):
            _logger.debug("Ignoring non-object position value: %r", reading.value)
            return None
        try:
            return Position.model_validate(reading.value)
        except ValidationError:
            _logger.debug("Ignoring invalid position: %r", reading.value)
            return None
