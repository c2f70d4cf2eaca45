"""Telemetry record model."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pysaillogger.models._base import CollectorModel


class TelemetryRecord(CollectorModel):
    """One durable log entry, created when a position update is significant.

    Parameters
    ----------
    timestamp : float
        Epoch milliseconds of the persist decision. Acknowledgment cursors
        are compared against this value.
    lat, lon : float
        Position in decimal degrees.
    max_speed_over_ground : float or None
        Peak speed over ground (knots) since the previous record.
    course_over_ground_true : float or None
        Course over ground (degrees true) at persist time.
    max_wind_speed_apparent : float or None
        Peak apparent wind speed (knots) since the previous record.
    wind_angle_apparent : float or None
        Apparent wind angle (degrees) at persist time.
    snapshot : dict or None
        Monitoring snapshot captured alongside the record.
    """

    timestamp: float = Field(ge=0)
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    max_speed_over_ground: float | None = None
    course_over_ground_true: float | None = None
    max_wind_speed_apparent: float | None = None
    wind_angle_apparent: float | None = None
    snapshot: dict[str, Any] | None = None
