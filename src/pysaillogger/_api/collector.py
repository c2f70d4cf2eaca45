"""Collector endpoints.

Endpoints:
  - /{collector}/update (vessel metadata)
  - /{collector}/push (telemetry batch)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pysaillogger._api._common import collector_path, parse_body
from pysaillogger._transport import Transport
from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerMalformedResponseError
from pysaillogger.models.metadata import VesselMetadata
from pysaillogger.models.responses import PushAcknowledgement
from pysaillogger.models.telemetry import TelemetryRecord

_logger = logging.getLogger(__name__)


async def publish_metadata(
    config: CollectorConfig,
    transport: Transport,
    metadata: VesselMetadata,
) -> None:
    """Publish the vessel description.

    Raises
    ------
    SailLoggerTransportError
        On network failure or a non-2xx status.
    """
    endpoint = collector_path(config, "update")
    await transport.post_json(endpoint, metadata.to_wire())
    _logger.debug("Published metadata for %s", metadata.name or "unnamed vessel")


async def push_records(
    config: CollectorConfig,
    transport: Transport,
    records: Sequence[TelemetryRecord],
) -> PushAcknowledgement:
    """Push a batch of telemetry records.

    An empty batch is a valid request and serves as a liveness heartbeat.

    Returns
    -------
    PushAcknowledgement
        Parsed acknowledgement. A 204 response yields an acknowledgement
        without a cursor.

    Raises
    ------
    SailLoggerTransportError
        On network failure or a non-2xx status.
    SailLoggerMalformedResponseError
        When a 200 body is unreadable, or lacks a cursor for a non-empty
        batch.
    """
    endpoint = collector_path(config, "push")
    response = await transport.post_json(endpoint, [record.to_wire() for record in records])

    if response.status == 204 or response.body is None:
        return PushAcknowledgement()

    ack: PushAcknowledgement = parse_body(PushAcknowledgement, response.body, endpoint=endpoint, status=response.status)
    if records and ack.processed_until is None:
        raise SailLoggerMalformedResponseError(
            f"{endpoint} acknowledged {len(records)} records without processedUntil",
            status_code=response.status,
            endpoint=endpoint,
        )
    return ack
