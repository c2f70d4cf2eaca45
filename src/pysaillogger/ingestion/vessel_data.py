"""In-memory Signal K data tree.

Holds the latest value of every path for the own vessel and for every other
vessel context seen in the delta stream. The monitoring snapshot, vessel
metadata and the proximity entity table are all read from here.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from pysaillogger._constants import PATH_COURSE_OVER_GROUND, PATH_POSITION, PATH_SPEED_OVER_GROUND
from pysaillogger.ingestion.deltas import SELF_CONTEXT, Reading
from pysaillogger.ingestion.normalize import ms_to_knots, rad_to_degrees, safe_float
from pysaillogger.models.position import Position
from pysaillogger.models.target import EntityObservation, TargetDetail, ais_type_label

_logger = logging.getLogger(__name__)

_VESSEL_PREFIX = "vessels."
_MMSI_PREFIX = "urn:mrn:imo:mmsi:"


@dataclass(frozen=True)
class LeafValue:
    value: Any
    timestamp: float


@dataclass
class _ContextData:
    leaves: dict[str, LeafValue] = field(default_factory=dict)

    def get(self, path: str) -> Any:
        leaf = self.leaves.get(path)
        return None if leaf is None else leaf.value

    def nested(self, path: str, key: str) -> Any:
        value = self.get(path)
        if isinstance(value, dict):
            return value.get(key)
        return value


def _entity_id(context: str, data: _ContextData) -> str:
    mmsi = data.get("mmsi")
    if mmsi is not None and str(mmsi).strip():
        return str(mmsi).strip()
    ident = context[len(_VESSEL_PREFIX) :] if context.startswith(_VESSEL_PREFIX) else context
    if ident.startswith(_MMSI_PREFIX):
        return ident[len(_MMSI_PREFIX) :]
    return ident


class VesselDataStore:
    """Latest-value store keyed by context and path.

    Other vessels whose position has not been refreshed for *entity_ttl*
    seconds drop out of :meth:`entities` and are forgotten.
    """

    def __init__(self, *, entity_ttl: float = 10 * 60.0, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.time
        self._entity_ttl = entity_ttl
        self._self = _ContextData()
        self._others: dict[str, _ContextData] = {}

    def apply(self, reading: Reading) -> None:
        timestamp = reading.timestamp if reading.timestamp is not None else self._clock()
        if reading.is_self:
            target = self._self
        else:
            target = self._others.setdefault(reading.context, _ContextData())
        target.leaves[reading.path] = LeafValue(reading.value, timestamp)

    # ------------------------------------------------------------------
    # Own vessel
    # ------------------------------------------------------------------

    def get_self(self, path: str) -> Any:
        return self._self.get(path)

    def get_self_nested(self, path: str, key: str) -> Any:
        """Read ``path.value.key`` for object-valued paths such as ``design.length``."""
        return self._self.nested(path, key)

    def get_fresh(self, path: str, max_age: float) -> Any:
        """Return the own-vessel value at *path* if it is at most *max_age* seconds old."""
        leaf = self._self.leaves.get(path)
        if leaf is None:
            return None
        age = self._clock() - leaf.timestamp
        if age <= max_age:
            return leaf.value
        _logger.debug("Ignoring stale %s (%.0fs old)", path, age)
        return None

    def self_position(self, max_age: float | None = None) -> Position | None:
        value = self.get_self(PATH_POSITION) if max_age is None else self.get_fresh(PATH_POSITION, max_age)
        if not isinstance(value, dict):
            return None
        try:
            return Position.model_validate(value)
        except ValidationError:
            return None

    # ------------------------------------------------------------------
    # Other vessels
    # ------------------------------------------------------------------

    def _prune_stale(self, now: float) -> None:
        stale = [
            context
            for context, data in self._others.items()
            if (leaf := data.leaves.get(PATH_POSITION)) is None or now - leaf.timestamp > self._entity_ttl
        ]
        for context in stale:
            del self._others[context]

    def entities(self) -> list[EntityObservation]:
        """Build the current entity table from other vessel contexts."""
        now = self._clock()
        self._prune_stale(now)

        observations: list[EntityObservation] = []
        for context, data in self._others.items():
            position: Position | None
            try:
                position = Position.model_validate(data.get(PATH_POSITION) or {})
            except ValidationError:
                position = None

            ship_type = safe_float(data.nested("design.aisShipType", "id"))
            heading = data.get(PATH_COURSE_OVER_GROUND)
            if heading is None:
                heading = data.get("navigation.headingTrue")

            detail = TargetDetail(
                name=data.get("name"),
                mmsi=data.get("mmsi"),
                callsign=data.get("communication.callsignVhf"),
                ship_type=None if ship_type is None else int(ship_type),
                length=safe_float(data.nested("design.length", "overall")),
                beam=safe_float(data.get("design.beam")),
                draft=safe_float(data.nested("design.draft", "maximum")),
                destination=data.get("navigation.destination.commonName"),
                nav_state=data.get("navigation.state"),
            )
            observations.append(
                EntityObservation(
                    entity_id=_entity_id(context, data),
                    position=position,
                    speed=ms_to_knots(data.get(PATH_SPEED_OVER_GROUND)),
                    heading=rad_to_degrees(heading),
                    type_label=ais_type_label(ship_type),
                    detail=detail,
                )
            )
        return observations
