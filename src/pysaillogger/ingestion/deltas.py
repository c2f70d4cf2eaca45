"""Signal K delta parsing.

A delta message carries any number of updates, each with its own
``$source`` and timestamp and a list of ``{path, value}`` pairs. Every pair
becomes one :class:`Reading`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pysaillogger.ingestion.normalize import normalize_timestamp_seconds, safe_str

_logger = logging.getLogger(__name__)

SELF_CONTEXT = "vessels.self"


@dataclass(frozen=True)
class Reading:
    """A single decoded Signal K value."""

    context: str
    path: str
    value: Any
    source: str | None = None
    timestamp: float | None = None

    @property
    def is_self(self) -> bool:
        return self.context == SELF_CONTEXT


def _source_label(update: Mapping[str, Any]) -> str | None:
    label = safe_str(update.get("$source"))
    if label is not None:
        return label
    source = update.get("source")
    if isinstance(source, Mapping):
        name = safe_str(source.get("label"))
        kind = safe_str(source.get("src") or source.get("talker"))
        if name and kind:
            return f"{name}.{kind}"
        return name
    return None


def parse_delta(delta: Mapping[str, Any], *, self_context: str | None = None) -> list[Reading]:
    """Flatten a delta message into readings.

    *self_context* is the full context of the own vessel (for example
    ``vessels.urn:mrn:imo:mmsi:244123456``); readings in that context are
    reported under :data:`SELF_CONTEXT`. A missing context also means the
    own vessel.
    """
    context = safe_str(delta.get("context")) or SELF_CONTEXT
    if self_context is not None and context == self_context:
        context = SELF_CONTEXT

    updates = delta.get("updates")
    if not isinstance(updates, list):
        _logger.debug("Delta without updates ignored: %s", list(delta.keys()))
        return []

    readings: list[Reading] = []
    for update in updates:
        if not isinstance(update, Mapping):
            continue
        source = _source_label(update)
        timestamp = normalize_timestamp_seconds(update.get("timestamp"))
        values = update.get("values")
        if not isinstance(values, list):
            continue
        for item in values:
            if not isinstance(item, Mapping):
                continue
            path = item.get("path")
            value = item.get("value")
            if not isinstance(path, str):
                continue
            if path == "" and isinstance(value, Mapping):
                # Root-level values (name, mmsi, ...) arrive as one object.
                for key, nested in value.items():
                    readings.append(Reading(context, str(key), nested, source, timestamp))
                continue
            readings.append(Reading(context, path, value, source, timestamp))
    return readings
