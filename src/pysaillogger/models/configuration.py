"""Remote configuration model."""

from __future__ import annotations

from pydantic import Field

from pysaillogger.models._base import CollectorModel


class RemoteConfiguration(CollectorModel):
    """Configuration served by ``/monitoring/{collector}/configuration``.

    The ``*_key`` fields name the Signal K paths the monitoring snapshot
    reads. The defaults apply until the first successful fetch and fill in
    any key the server leaves out.
    """

    version: int = 0
    send_ais_targets: bool = False
    send_monitoring: bool = True
    max_target_distance: float | None = Field(default=None, gt=0)

    depth_key: str = "environment.depth.belowTransducer"
    water_temperature_key: str = "environment.water.temperature"
    wind_speed_key: str = "environment.wind.speedApparent"
    wind_direction_key: str = "environment.wind.angleApparent"
    pressure_key: str = "environment.outside.pressure"
    inside_temperature_key: str = "environment.inside.temperature"
    outside_temperature_key: str = "environment.outside.temperature"
    inside_humidity_key: str = "environment.inside.humidity"
    outside_humidity_key: str = "environment.outside.humidity"
