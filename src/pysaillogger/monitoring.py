"""Builders for the live monitoring snapshot and the vessel metadata.

Both read the latest own-vessel values from :class:`VesselDataStore` and
convert them to display units.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pysaillogger._constants import PATH_COURSE_OVER_GROUND, PATH_POSITION, PATH_SPEED_OVER_GROUND
from pysaillogger.ingestion.normalize import (
    kelvin_to_celsius,
    ms_to_knots,
    pascal_to_hectopascal,
    rad_to_degrees,
    ratio_to_percent,
    safe_float,
)
from pysaillogger.ingestion.vessel_data import VesselDataStore
from pysaillogger.models.configuration import RemoteConfiguration
from pysaillogger.models.metadata import VesselMetadata
from pysaillogger.models.monitoring import (
    AnchorReading,
    BatteryReading,
    InsideOutside,
    MonitoringSnapshot,
    WaterReading,
    WindReading,
)
from pysaillogger.models.position import Position

_logger = logging.getLogger(__name__)

# Maximum age in seconds of each value group in a snapshot.
POSITION_MAX_AGE = 120.0
NAVIGATION_MAX_AGE = 60.0
DEPTH_MAX_AGE = 10.0
ENVIRONMENT_MAX_AGE = 90.0
BATTERY_MAX_AGE = 60.0


def _position(value: Any) -> Position | None:
    if not isinstance(value, dict):
        return None
    try:
        return Position.model_validate(value)
    except ValidationError:
        return None


def build_snapshot(
    store: VesselDataStore,
    configuration: RemoteConfiguration,
    *,
    battery_key: str | None = None,
) -> MonitoringSnapshot | None:
    """Build the live snapshot, or ``None`` when no fresh position is known."""
    position = store.self_position(POSITION_MAX_AGE)
    if position is None:
        if store.get_self(PATH_POSITION) is None:
            _logger.debug("No navigation.position for self")
        else:
            _logger.debug("Position is stale, not sending monitoring information")
        return None

    def env(key: str) -> Any:
        return store.get_fresh(key, ENVIRONMENT_MAX_AGE)

    battery = BatteryReading()
    if battery_key:
        prefix = f"electrical.batteries.{battery_key}"
        battery = BatteryReading(
            voltage=safe_float(store.get_fresh(f"{prefix}.voltage", BATTERY_MAX_AGE)),
            charge=ratio_to_percent(store.get_fresh(f"{prefix}.capacity.stateOfCharge", BATTERY_MAX_AGE)),
        )

    return MonitoringSnapshot(
        position=position,
        sog=ms_to_knots(store.get_fresh(PATH_SPEED_OVER_GROUND, NAVIGATION_MAX_AGE)),
        cog=rad_to_degrees(store.get_fresh(PATH_COURSE_OVER_GROUND, NAVIGATION_MAX_AGE)),
        heading=rad_to_degrees(store.get_fresh("navigation.headingTrue", NAVIGATION_MAX_AGE)),
        water=WaterReading(
            depth=safe_float(store.get_fresh(configuration.depth_key, DEPTH_MAX_AGE)),
            temperature=kelvin_to_celsius(env(configuration.water_temperature_key)),
        ),
        wind=WindReading(
            speed=ms_to_knots(env(configuration.wind_speed_key)),
            direction=rad_to_degrees(env(configuration.wind_direction_key)),
        ),
        pressure=pascal_to_hectopascal(env(configuration.pressure_key)),
        temperature=InsideOutside(
            inside=kelvin_to_celsius(env(configuration.inside_temperature_key)),
            outside=kelvin_to_celsius(env(configuration.outside_temperature_key)),
        ),
        humidity=InsideOutside(
            inside=ratio_to_percent(env(configuration.inside_humidity_key)),
            outside=ratio_to_percent(env(configuration.outside_humidity_key)),
        ),
        battery=battery,
        anchor=AnchorReading(
            position=_position(store.get_fresh("navigation.anchor.position", NAVIGATION_MAX_AGE)),
            radius=safe_float(store.get_fresh("navigation.anchor.maxRadius", NAVIGATION_MAX_AGE)),
        ),
    )


def build_metadata(
    store: VesselDataStore,
    *,
    version: str,
    signalk_version: str | None = None,
    platform: str = "",
) -> VesselMetadata:
    return VesselMetadata(
        name=store.get_self("name"),
        mmsi=store.get_self("mmsi"),
        length=store.get_self_nested("design.length", "overall"),
        beam=store.get_self("design.beam"),
        height=store.get_self("design.airHeight"),
        ship_type=store.get_self_nested("design.aisShipType", "id"),
        version=version,
        signalk_version=signalk_version,
        platform=platform,
    )
