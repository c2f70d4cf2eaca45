"""Sync engine: drain the durable buffer to the remote collector endpoint.

A drain peeks the oldest batch, pushes it, advances the acknowledgment
cursor and prunes everything at or below it. Failures leave the buffer
untouched; the next trigger (an append or the fallback timer) is the retry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from pysaillogger._api.collector import push_records
from pysaillogger._transport import Transport
from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerTransportError, StorageError
from pysaillogger.models.responses import PushAcknowledgement
from pysaillogger.storage.buffer import DurableBuffer

_logger = logging.getLogger(__name__)


def _always() -> bool:
    return True


class SyncEngine:
    """Cursor-based delivery of buffered telemetry.

    Parameters
    ----------
    config : CollectorConfig
        Batch size, residual threshold, drain bound and fallback interval.
    transport : Transport
        HTTP transport (or a test double).
    buffer : DurableBuffer
        Source of records; pruned on acknowledgment.
    clock : callable
        Returns the current time in epoch seconds.
    is_alive : callable
        Checked after every await; once it returns ``False`` any late
        completion is discarded.
    can_drain : callable
        Gate evaluated before each drain (metadata-before-sync sequencing).
    on_refresh_metadata : callable or None
        Invoked when the server asks for a metadata republish.
    on_configuration_version : callable or None
        Invoked with the advertised version when it is newer than
        ``known_configuration_version()``.
    known_configuration_version : callable or None
        Returns the version of the configuration currently in use.
    """

    def __init__(
        self,
        config: CollectorConfig,
        transport: Transport,
        buffer: DurableBuffer,
        *,
        clock: Callable[[], float] = time.time,
        is_alive: Callable[[], bool] = _always,
        can_drain: Callable[[], bool] = _always,
        on_refresh_metadata: Callable[[], None] | None = None,
        on_configuration_version: Callable[[int], None] | None = None,
        known_configuration_version: Callable[[], int] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._buffer = buffer
        self._clock = clock
        self._is_alive = is_alive
        self._can_drain = can_drain
        self._on_refresh_metadata = on_refresh_metadata
        self._on_configuration_version = on_configuration_version
        self._known_configuration_version = known_configuration_version

        self.cursor: float | None = None
        self.last_contact: float | None = None
        self._draining = False
        self._pending = False
        self._task: asyncio.Task[None] | None = None

    @property
    def draining(self) -> bool:
        return self._draining

    @property
    def task(self) -> asyncio.Task[None] | None:
        """Background drain task started by :meth:`request_drain`, if any."""
        return self._task

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def request_drain(self) -> None:
        """Schedule a drain; coalesced into the running one when busy."""
        if not self._is_alive():
            return
        if self._draining or (self._task is not None and not self._task.done()):
            self._pending = True
            return
        self._task = asyncio.create_task(self._run(), name="pysaillogger-drain")

    def contact_overdue(self) -> bool:
        if self.last_contact is None:
            return True
        return self._clock() - self.last_contact >= 2 * self._config.sync_interval

    def tick(self) -> None:
        """Fallback timer hook: drain when no contact succeeded recently."""
        if self.contact_overdue():
            _logger.debug("No server contact within %ss, forcing a drain", 2 * self._config.sync_interval)
            self.request_drain()

    async def _run(self) -> None:
        await self.drain()
        while self._pending and self._is_alive():
            self._pending = False
            await self.drain()

    # ------------------------------------------------------------------
    # Drain
    # ------------------------------------------------------------------

    async def drain(self) -> bool:
        """Run one drain cycle.

        Returns
        -------
        bool
            ``True`` when every round in the cycle succeeded, ``False`` when
            the cycle stopped on a failure, was gated, or was coalesced
            into a drain already in flight.
        """
        if self._draining:
            self._pending = True
            return False
        if not self._can_drain():
            _logger.debug("Drain deferred until vessel metadata has been published")
            return False

        self._draining = True
        try:
            return await self._drain_rounds()
        finally:
            self._draining = False

    async def _drain_rounds(self) -> bool:
        for _ in range(self._config.max_drain_rounds):
            if not self._is_alive():
                return False
            try:
                batch = await self._buffer.peek_batch(self._config.batch_limit)
            except StorageError as exc:
                _logger.warning("Could not read telemetry buffer: %s", exc)
                return False
            if not self._is_alive():
                return False

            try:
                ack = await push_records(self._config, self._transport, batch)
            except SailLoggerTransportError as exc:
                _logger.warning("Telemetry push of %d records failed: %s", len(batch), exc)
                return False
            if not self._is_alive():
                return False

            self.last_contact = self._clock()
            self._handle_side_flags(ack)

            advanced = self._advance_cursor(ack.processed_until)
            if self.cursor is not None:
                try:
                    await self._buffer.prune_up_to(self.cursor)
                    remaining = await self._buffer.count()
                except StorageError as exc:
                    _logger.warning("Could not prune telemetry buffer: %s", exc)
                    return False
                if not self._is_alive():
                    return False
            else:
                remaining = 0

            _logger.debug("Pushed %d records, cursor=%s, %d remaining", len(batch), self.cursor, remaining)
            if not batch or not advanced or remaining <= self._config.drain_residual:
                return True

        _logger.debug("Drain stopped after %d rounds", self._config.max_drain_rounds)
        return True

    def _advance_cursor(self, processed_until: float | None) -> bool:
        if processed_until is None:
            return False
        previous = self.cursor
        self.cursor = processed_until if previous is None else max(previous, processed_until)
        return previous is None or self.cursor > previous

    def _handle_side_flags(self, ack: PushAcknowledgement) -> None:
        if ack.refresh_metadata and self._on_refresh_metadata is not None:
            _logger.debug("Server requested a metadata refresh")
            self._on_refresh_metadata()

        version = ack.configuration_version
        if version is None or self._on_configuration_version is None:
            return
        known = self._known_configuration_version() if self._known_configuration_version else 0
        if version > known:
            _logger.debug("Server advertises configuration version %d (have %d)", version, known)
            self._on_configuration_version(version)
