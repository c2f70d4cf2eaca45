"""High-level async collector.

Wires sample ingest, the significance evaluator, the durable buffer, the
sync engine and the proximity target cache together, and drives the
periodic publishers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine, Iterable, Mapping
from typing import Any

import aiohttp

from pysaillogger._api import collector as _collector_api
from pysaillogger._api import monitoring as _monitoring_api
from pysaillogger._api import targets as _targets_api
from pysaillogger._transport import HttpTransport, Transport
from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerError, SailLoggerTransportError, StorageError
from pysaillogger.ingestion.deltas import Reading, parse_delta
from pysaillogger.ingestion.motion import MotionState, SampleIngest
from pysaillogger.ingestion.mqtt import DeltaMqttRuntime, MqttEndpoint
from pysaillogger.ingestion.vessel_data import VesselDataStore
from pysaillogger.models.configuration import RemoteConfiguration
from pysaillogger.models.position import Position
from pysaillogger.models.telemetry import TelemetryRecord
from pysaillogger.monitoring import build_metadata, build_snapshot
from pysaillogger.significance import PersistMark, PersistReason, SignificanceEvaluator
from pysaillogger.status import format_status
from pysaillogger.storage import ConfigurationCache, Database, DurableBuffer
from pysaillogger.sync import SyncEngine
from pysaillogger.targets import ProximityTargetCache, describe_payload

_logger = logging.getLogger(__name__)


def _collector_version() -> str:
    from pysaillogger import __version__

    return __version__


class Collector:
    """Telemetry collector for one vessel.

    Usage::

        async with Collector(CollectorConfig.from_env()) as collector:
            collector.handle_delta(delta)

    Parameters
    ----------
    config : CollectorConfig
        Collector configuration.
    session : aiohttp.ClientSession or None
        Externally owned HTTP session. One is created (and closed on
        stop) when omitted.
    transport : Transport or None
        Transport override, mainly for tests. Takes precedence over
        *session*.
    clock : callable
        Returns the current time in epoch seconds.
    on_status : callable or None
        Receives the status line on every status tick.
    signalk_version : str or None
        Version of the Signal K server feeding the collector, sent with
        the vessel metadata.
    """

    def __init__(
        self,
        config: CollectorConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.time,
        on_status: Callable[[str], None] | None = None,
        signalk_version: str | None = None,
    ) -> None:
        self._config = config
        self._clock = clock
        self._on_status = on_status
        self._signalk_version = signalk_version

        self._external_session = session is not None
        self._http_session = session
        self._transport_override = transport
        self._transport: Transport | None = None

        self._database = Database(config.database_path)
        self.buffer = DurableBuffer(self._database)
        self._configuration_cache = ConfigurationCache(self._database)
        self.configuration = RemoteConfiguration()
        self._configuration_fetched = False

        self.store = VesselDataStore(clock=clock)
        self.motion = MotionState()
        self._ingest = SampleIngest(self.motion, gps_source=config.gps_source)
        self._evaluator = SignificanceEvaluator(config.thresholds)
        self.last_persisted = PersistMark(position=None, at=clock())
        self.targets = ProximityTargetCache()
        self._targets_outstanding = False

        self.sync: SyncEngine | None = None
        self.metadata_published = False

        self._alive = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timers: list[asyncio.Task[None]] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._mqtt_runtime: DeltaMqttRuntime | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self._alive

    async def __aenter__(self) -> Collector:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Open storage, then the network side, then start the timers."""
        if self._alive:
            return
        self._loop = asyncio.get_running_loop()

        await self._database.open()

        if self._transport_override is not None:
            self._transport = self._transport_override
        else:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)

        self.sync = SyncEngine(
            self._config,
            self._transport,
            self.buffer,
            clock=self._clock,
            is_alive=lambda: self._alive,
            can_drain=self._can_drain,
            on_refresh_metadata=lambda: self._spawn(self.publish_metadata(force=True)),
            on_configuration_version=lambda _version: self._spawn(self.refresh_configuration()),
            known_configuration_version=lambda: self.configuration.version,
        )
        self._alive = True
        _logger.info("Collector %s started", self._config.collector_id)

        self._spawn(self.refresh_configuration())
        self._spawn(self.publish_metadata())

        config = self._config
        self._timers = [
            self._start_timer("sync", config.sync_interval, self._sync_tick),
            self._start_timer("monitoring", config.monitoring_interval, self.publish_monitoring),
            self._start_timer("targets", config.targets_interval, self.publish_targets),
            self._start_timer("metadata", config.metadata_interval, self.publish_metadata),
            self._start_timer("status", config.status_interval, self.report_status),
        ]
        self.sync.request_drain()
        await self._start_mqtt()

    async def stop(self) -> None:
        """Tear down in reverse order of :meth:`start`."""
        if not self._alive:
            return
        self._alive = False

        timers = self._timers
        self._timers = []
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)

        await self._stop_mqtt()

        in_flight = {task for task in self._tasks if not task.done()}
        if self.sync is not None and self.sync.task is not None and not self.sync.task.done():
            in_flight.add(self.sync.task)
        if in_flight:
            _, pending = await asyncio.wait(in_flight, timeout=self._config.shutdown_grace)
            for task in pending:
                task.cancel()
            if pending:
                _logger.debug("Cancelled %d requests still running after the grace period", len(pending))
                await asyncio.gather(*pending, return_exceptions=True)

        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

        await self._database.close()
        _logger.info("Collector %s stopped", self._config.collector_id)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any] | None:
        """Run *coro* as a tracked fire-and-forget task."""
        if not self._alive:
            coro.close()
            return None
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning("Background task failed", exc_info=exc)

    def _start_timer(
        self,
        name: str,
        interval: float,
        fn: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task[None]:
        async def _run() -> None:
            while self._alive:
                await asyncio.sleep(interval)
                if not self._alive:
                    return
                try:
                    await fn()
                except Exception:
                    _logger.warning("Periodic %s task failed", name, exc_info=True)

        return asyncio.create_task(_run(), name=f"pysaillogger-{name}")

    async def _start_mqtt(self) -> None:
        """Best-effort MQTT startup (failures must not stop the collector)."""
        config = self._config
        if not config.mqtt_host or self._loop is None:
            return
        endpoint = MqttEndpoint(
            host=config.mqtt_host,
            port=config.mqtt_port,
            topic=config.mqtt_topic,
            client_id=f"saillogger-{config.collector_id}",
            username=config.mqtt_username,
            password=config.mqtt_password,
        )
        runtime = DeltaMqttRuntime(
            loop=self._loop,
            on_readings=self.handle_readings,
            self_context=config.self_context,
            keepalive=config.mqtt_keepalive,
            logger=_logger,
        )
        try:
            await self._loop.run_in_executor(None, runtime.start, endpoint)
        except (OSError, ValueError):
            _logger.warning("MQTT sample source unavailable at %s:%s", config.mqtt_host, config.mqtt_port, exc_info=True)
            return
        self._mqtt_runtime = runtime

    async def _stop_mqtt(self) -> None:
        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is None or self._loop is None:
            return
        await self._loop.run_in_executor(None, runtime.stop)

    # ------------------------------------------------------------------
    # Sample ingest
    # ------------------------------------------------------------------

    def handle_delta(self, delta: Mapping[str, Any]) -> None:
        """Feed one Signal K delta message."""
        self.handle_readings(parse_delta(delta, self_context=self._config.self_context))

    def handle_readings(self, readings: Iterable[Reading]) -> None:
        if not self._alive:
            return
        for reading in readings:
            self.store.apply(reading)
            position = self._ingest.apply(reading)
            if position is not None:
                self._on_position(position)

    def _on_position(self, position: Position) -> None:
        now = self._clock()
        decision = self._evaluator.evaluate(position, self.motion, self.last_persisted, now)
        if decision.rejected:
            return

        self.motion.accept_position(position, now)
        if decision.reason is PersistReason.FIRST_FIX:
            self.last_persisted = PersistMark(position=position, at=self.last_persisted.at)
            return
        if not decision.persist:
            return

        _logger.debug("Persisting position (%s: %s)", decision.reason, decision.detail)
        snapshot = None
        if self._config.attach_snapshot:
            built = build_snapshot(self.store, self.configuration, battery_key=self._config.battery_key)
            snapshot = built.to_wire() if built is not None else None
        record = self.motion.make_record(position, now * 1000.0, snapshot)
        self.last_persisted = PersistMark(position=position, at=now)
        self.motion.reset_aggregates()
        self._spawn(self._append(record))

    async def _append(self, record: TelemetryRecord) -> None:
        try:
            await self.buffer.append(record)
        except StorageError as exc:
            _logger.warning("Could not buffer telemetry record: %s", exc)
            return
        if self._alive and self.sync is not None:
            self.sync.request_drain()

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def _can_drain(self) -> bool:
        return self.metadata_published or not self._config.require_metadata_before_sync

    async def _sync_tick(self) -> None:
        if self.sync is not None:
            self.sync.tick()

    # ------------------------------------------------------------------
    # Publishers
    # ------------------------------------------------------------------

    async def publish_metadata(self, *, force: bool = False) -> bool:
        """Publish vessel metadata once per process lifetime (or when *force*)."""
        if self.metadata_published and not force:
            return True
        transport = self._transport
        if transport is None:
            return False

        metadata = build_metadata(
            self.store,
            version=_collector_version(),
            signalk_version=self._signalk_version,
            platform=self._config.platform,
        )
        try:
            await _collector_api.publish_metadata(self._config, transport, metadata)
        except SailLoggerTransportError as exc:
            _logger.warning("Metadata submission failed: %s", exc)
            return False
        if not self._alive:
            return False

        self.metadata_published = True
        if self.sync is not None:
            self.sync.last_contact = self._clock()
        _logger.debug("Metadata published")
        self._spawn(self.publish_monitoring())
        if self.sync is not None:
            self.sync.request_drain()
        return True

    async def refresh_configuration(self) -> RemoteConfiguration:
        """Fetch the remote configuration, falling back to the cached copy."""
        transport = self._transport
        if transport is not None:
            try:
                configuration, raw = await _monitoring_api.fetch_configuration(self._config, transport)
            except SailLoggerTransportError as exc:
                _logger.warning("Configuration fetch failed: %s", exc)
            else:
                if not self._alive:
                    return self.configuration
                self.configuration = configuration
                self._configuration_fetched = True
                try:
                    await self._configuration_cache.save(raw, fetched_at=self._clock())
                except StorageError as exc:
                    _logger.warning("Could not cache configuration: %s", exc)
                _logger.debug("Using remote configuration version %d", configuration.version)
                return configuration

        if not self._configuration_fetched and self._alive:
            try:
                cached = await self._configuration_cache.load()
            except StorageError as exc:
                _logger.warning("Could not read cached configuration: %s", exc)
                cached = None
            if cached is not None and self._alive:
                self.configuration = cached
                _logger.debug("Using cached configuration version %d", cached.version)
        return self.configuration

    async def publish_monitoring(self) -> bool:
        if not self.configuration.send_monitoring:
            return False
        transport = self._transport
        if transport is None:
            return False
        snapshot = build_snapshot(self.store, self.configuration, battery_key=self._config.battery_key)
        if snapshot is None:
            return False
        try:
            await _monitoring_api.push_snapshot(self._config, transport, snapshot)
        except SailLoggerTransportError as exc:
            _logger.debug("Submission of monitoring data failed: %s", exc)
            return False
        _logger.debug("Monitoring data submitted")
        return True

    async def publish_targets(self) -> bool:
        """Run one proximity refresh pass and push the resulting payload."""
        if not self.configuration.send_ais_targets:
            return False
        transport = self._transport
        if transport is None:
            return False

        payload = self.targets.refresh_pass(
            self.store.entities(),
            own_position=self.store.self_position(),
            max_distance=self.configuration.max_target_distance,
        )
        # An empty set is still sent once after targets were published, so
        # the remote drops the evicted ones.
        if not payload and not self._targets_outstanding:
            _logger.debug("No proximity targets to send")
            return False
        try:
            await _targets_api.push_targets(self._config, transport, payload)
        except SailLoggerTransportError as exc:
            _logger.debug("Proximity target push failed: %s", exc)
            return False
        self._targets_outstanding = bool(payload)
        _logger.debug("Proximity targets pushed: %s", describe_payload(payload))
        return True

    async def status(self) -> str:
        """Current status line (buffer depth and sync recency)."""
        depth = await self.buffer.count()
        last_contact = self.sync.last_contact if self.sync is not None else None
        return format_status(depth, last_contact, self._clock())

    async def report_status(self) -> None:
        try:
            message = await self.status()
        except SailLoggerError as exc:
            _logger.warning("Status unavailable: %s", exc)
            return
        if not self._alive:
            return
        _logger.info("%s", message)
        if self._on_status is not None:
            self._on_status(message)
