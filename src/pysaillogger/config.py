"""Collector configuration for pysaillogger."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pysaillogger import _constants as const
from pysaillogger.exceptions import SailLoggerConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SignificanceThresholds:
    """Constants driving the persist decision.

    Distances are nautical miles, speeds knots, angles degrees and
    intervals seconds.
    """

    min_distance: float = const.MIN_DISTANCE_NM
    max_interval: float = const.MAX_INTERVAL_S
    moving_interval: float = const.MOVING_INTERVAL_S
    speed_threshold: float = const.SPEED_THRESHOLD_KN
    turn_threshold: float = const.TURN_THRESHOLD_DEG
    min_persist_interval: float = const.MIN_PERSIST_INTERVAL_S
    anomaly_distance: float = const.ANOMALY_DISTANCE_NM
    anomaly_window: float = const.ANOMALY_WINDOW_S
    speed_bands: tuple[int, ...] = const.SPEED_BAND_MULTIPLIERS

    def __post_init__(self) -> None:
        if self.moving_interval > self.max_interval:
            raise SailLoggerConfigError("moving_interval must not exceed max_interval")
        if self.speed_threshold <= 0:
            raise SailLoggerConfigError("speed_threshold must be positive")


@dataclasses.dataclass(frozen=True)
class CollectorConfig:
    """Collector configuration.

    Parameters
    ----------
    collector_id : str
        Collector identifier issued by the remote service. Used in every
        endpoint path.
    base_url : str
        Versioned API base URL.
    data_dir : Path
        Directory holding the SQLite buffer file.
    gps_source : str or None
        Only accept positions from this Signal K ``$source`` when set.
    battery_key : str or None
        Battery bank name used for the monitoring snapshot.
    platform : str
        Free-form host description sent with vessel metadata.
    sync_interval : float
        Seconds between fallback liveness checks of the sync engine. A drain
        is forced when no contact succeeded within twice this interval.
    monitoring_interval : float
        Seconds between live snapshot publishes.
    targets_interval : float
        Seconds between proximity target refresh passes.
    metadata_interval : float
        Seconds between metadata publish attempts until one succeeds.
    status_interval : float
        Seconds between status reports.
    batch_limit : int
        Maximum records per push request.
    drain_residual : int
        Drain again immediately while more than this many records remain.
    max_drain_rounds : int
        Upper bound of back-to-back drains in one cycle.
    require_metadata_before_sync : bool
        Hold telemetry drains until vessel metadata was published once. Off by
        default: drains run on their own triggers.
    attach_snapshot : bool
        Attach the current monitoring snapshot to each telemetry record.
    http_timeout : float
        Total timeout per HTTP request in seconds.
    shutdown_grace : float
        Seconds in-flight requests may take to finish on shutdown.
    mqtt_host : str or None
        Signal K MQTT gateway host. The MQTT sample source is disabled
        when unset.
    mqtt_port : int
        Signal K MQTT gateway port.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_topic : str
        Topic filter subscribed on the gateway.
    mqtt_username, mqtt_password : str or None
        Optional broker credentials.
    self_context : str or None
        Full Signal K context of the own vessel when the source does not
        use ``vessels.self``.
    thresholds : SignificanceThresholds
        Persist decision constants.
    """

    collector_id: str
    base_url: str = const.BASE_URL
    data_dir: Path = dataclasses.field(default_factory=lambda: Path.home() / ".saillogger")
    gps_source: str | None = None
    battery_key: str | None = None
    platform: str = ""
    sync_interval: float = 10 * 60.0
    monitoring_interval: float = 60.0
    targets_interval: float = 60.0
    metadata_interval: float = 60 * 60.0
    status_interval: float = 31.0
    batch_limit: int = const.PUSH_BATCH_LIMIT
    drain_residual: int = 0
    max_drain_rounds: int = 50
    require_metadata_before_sync: bool = False
    attach_snapshot: bool = False
    http_timeout: float = 30.0
    shutdown_grace: float = 5.0
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_keepalive: int = 60
    mqtt_topic: str = "vessels/#"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    self_context: str | None = None
    thresholds: SignificanceThresholds = dataclasses.field(default_factory=SignificanceThresholds)

    def __post_init__(self) -> None:
        if not self.collector_id or not self.collector_id.strip():
            raise SailLoggerConfigError("collector_id is required")
        if self.batch_limit < 1:
            raise SailLoggerConfigError("batch_limit must be at least 1")
        if self.drain_residual < 0:
            raise SailLoggerConfigError("drain_residual must not be negative")

    @property
    def database_path(self) -> Path:
        return Path(self.data_dir) / const.DATABASE_FILENAME

    @classmethod
    def from_env(cls, **overrides: Any) -> CollectorConfig:
        """Create configuration from environment variables.

        Reads ``SAILLOGGER_COLLECTOR_ID`` and optional ``SAILLOGGER_*``
        variables. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        CollectorConfig
            Populated configuration.

        Raises
        ------
        SailLoggerConfigError
            When no collector id is available or a numeric variable does
            not parse.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "SAILLOGGER_COLLECTOR_ID": "collector_id",
            "SAILLOGGER_BASE_URL": "base_url",
            "SAILLOGGER_GPS_SOURCE": "gps_source",
            "SAILLOGGER_BATTERY_KEY": "battery_key",
            "SAILLOGGER_PLATFORM": "platform",
            "SAILLOGGER_MQTT_HOST": "mqtt_host",
            "SAILLOGGER_MQTT_TOPIC": "mqtt_topic",
            "SAILLOGGER_MQTT_USERNAME": "mqtt_username",
            "SAILLOGGER_MQTT_PASSWORD": "mqtt_password",
            "SAILLOGGER_SELF_CONTEXT": "self_context",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        data_dir = env.get("SAILLOGGER_DATA_DIR")
        if data_dir:
            config_kwargs["data_dir"] = Path(data_dir).expanduser()

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "SAILLOGGER_SYNC_INTERVAL": ("sync_interval", float),
            "SAILLOGGER_MONITORING_INTERVAL": ("monitoring_interval", float),
            "SAILLOGGER_TARGETS_INTERVAL": ("targets_interval", float),
            "SAILLOGGER_METADATA_INTERVAL": ("metadata_interval", float),
            "SAILLOGGER_STATUS_INTERVAL": ("status_interval", float),
            "SAILLOGGER_BATCH_LIMIT": ("batch_limit", int),
            "SAILLOGGER_HTTP_TIMEOUT": ("http_timeout", float),
            "SAILLOGGER_MQTT_PORT": ("mqtt_port", int),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise SailLoggerConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        if "require_metadata_before_sync" not in overrides:
            config_kwargs["require_metadata_before_sync"] = _env_bool(
                env.get("SAILLOGGER_REQUIRE_METADATA"),
                False,
            )
        if "attach_snapshot" not in overrides:
            config_kwargs["attach_snapshot"] = _env_bool(env.get("SAILLOGGER_ATTACH_SNAPSHOT"), False)

        config_kwargs.update(overrides)
        if "collector_id" not in config_kwargs:
            raise SailLoggerConfigError("SAILLOGGER_COLLECTOR_ID is not set")

        return cls(**config_kwargs)
