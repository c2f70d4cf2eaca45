"""Live monitoring snapshot model."""

from __future__ import annotations

from pysaillogger.models._base import CollectorModel
from pysaillogger.models.position import Position


class WaterReading(CollectorModel):
    depth: float | None = None
    temperature: float | None = None


class WindReading(CollectorModel):
    speed: float | None = None
    direction: float | None = None


class InsideOutside(CollectorModel):
    inside: float | None = None
    outside: float | None = None


class BatteryReading(CollectorModel):
    voltage: float | None = None
    charge: float | None = None


class AnchorReading(CollectorModel):
    position: Position | None = None
    radius: float | None = None


class MonitoringSnapshot(CollectorModel):
    """Snapshot pushed to ``/monitoring/{collector}/push``.

    Values are already converted to display units: knots, degrees,
    Celsius, hectopascal and percent. A field is ``None`` when its source
    value is missing or older than its freshness limit.
    """

    position: Position
    sog: float | None = None
    cog: float | None = None
    heading: float | None = None
    water: WaterReading = WaterReading()
    wind: WindReading = WindReading()
    pressure: float | None = None
    temperature: InsideOutside = InsideOutside()
    humidity: InsideOutside = InsideOutside()
    battery: BatteryReading = BatteryReading()
    anchor: AnchorReading = AnchorReading()
