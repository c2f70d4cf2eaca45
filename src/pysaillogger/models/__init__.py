"""Data models for collector payloads."""

from pysaillogger.models._base import CollectorModel
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
from pysaillogger.models.responses import PushAcknowledgement
from pysaillogger.models.target import EntityObservation, ProximityTarget, TargetDetail, ais_type_label
from pysaillogger.models.telemetry import TelemetryRecord

__all__ = [
    "AnchorReading",
    "BatteryReading",
    "CollectorModel",
    "EntityObservation",
    "InsideOutside",
    "MonitoringSnapshot",
    "Position",
    "ProximityTarget",
    "PushAcknowledgement",
    "RemoteConfiguration",
    "TargetDetail",
    "TelemetryRecord",
    "VesselMetadata",
    "WaterReading",
    "WindReading",
    "ais_type_label",
]
