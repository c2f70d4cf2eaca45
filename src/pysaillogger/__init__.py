"""pysaillogger - Async telemetry collector for the Saillogger vessel log service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysaillogger")
except PackageNotFoundError:
    __version__ = "0+local"
from pysaillogger.collector import Collector
from pysaillogger.config import CollectorConfig, SignificanceThresholds
from pysaillogger.exceptions import (
    SailLoggerConfigError,
    SailLoggerError,
    SailLoggerMalformedResponseError,
    SailLoggerTransportError,
    StorageError,
)
from pysaillogger.models import (
    EntityObservation,
    MonitoringSnapshot,
    Position,
    ProximityTarget,
    PushAcknowledgement,
    RemoteConfiguration,
    TelemetryRecord,
    VesselMetadata,
)
from pysaillogger.significance import Decision, PersistMark, PersistReason, SignificanceEvaluator
from pysaillogger.status import format_status, time_since
from pysaillogger.sync import SyncEngine
from pysaillogger.targets import ProximityTargetCache

__all__ = [
    "__version__",
    "Collector",
    "CollectorConfig",
    "Decision",
    "EntityObservation",
    "MonitoringSnapshot",
    "PersistMark",
    "PersistReason",
    "Position",
    "ProximityTarget",
    "ProximityTargetCache",
    "PushAcknowledgement",
    "RemoteConfiguration",
    "SailLoggerConfigError",
    "SailLoggerError",
    "SailLoggerMalformedResponseError",
    "SailLoggerTransportError",
    "SignificanceEvaluator",
    "SignificanceThresholds",
    "StorageError",
    "SyncEngine",
    "TelemetryRecord",
    "VesselMetadata",
    "format_status",
    "time_since",
]
