"""Proximity target endpoint: /ais/{collector}/push."""

from __future__ import annotations

from collections.abc import Mapping

from pysaillogger._api._common import collector_path
from pysaillogger._transport import Transport
from pysaillogger.config import CollectorConfig
from pysaillogger.models.target import ProximityTarget


async def push_targets(
    config: CollectorConfig,
    transport: Transport,
    targets: Mapping[str, ProximityTarget],
) -> None:
    endpoint = collector_path(config, "push", section="ais")
    payload = {"targets": {entity_id: target.to_wire() for entity_id, target in targets.items()}}
    await transport.post_json(endpoint, payload)
