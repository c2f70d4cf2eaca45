"""Monitoring endpoints.

Endpoints:
  - /monitoring/{collector}/configuration (GET)
  - /monitoring/{collector}/push (live snapshot)
"""

from __future__ import annotations

from typing import Any

from pysaillogger._api._common import collector_path, parse_body
from pysaillogger._transport import Transport
from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerMalformedResponseError
from pysaillogger.models.configuration import RemoteConfiguration
from pysaillogger.models.monitoring import MonitoringSnapshot

_SECTION = "monitoring"


async def fetch_configuration(
    config: CollectorConfig,
    transport: Transport,
) -> tuple[RemoteConfiguration, dict[str, Any]]:
    """Fetch the remote configuration.

    Returns the parsed model together with the raw body so the caller can
    cache exactly what the server sent.
    """
    endpoint = collector_path(config, "configuration", section=_SECTION)
    response = await transport.get_json(endpoint)
    if response.body is None:
        raise SailLoggerMalformedResponseError(
            f"{endpoint} returned no configuration",
            status_code=response.status,
            endpoint=endpoint,
        )
    parsed: RemoteConfiguration = parse_body(
        RemoteConfiguration, response.body, endpoint=endpoint, status=response.status
    )
    return parsed, response.body


async def push_snapshot(
    config: CollectorConfig,
    transport: Transport,
    snapshot: MonitoringSnapshot,
) -> None:
    endpoint = collector_path(config, "push", section=_SECTION)
    await transport.post_json(endpoint, snapshot.to_wire())
