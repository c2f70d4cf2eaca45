"""Proximity target cache.

Tracks nearby entities (AIS targets) between refresh passes. Every pass
replaces the tracked set: entities absent from the pass are evicted at once.
Static detail travels with a target's first payload and then with every
``detail_every``-th update only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pysaillogger._constants import TARGET_DETAIL_EVERY
from pysaillogger.geo import distance_nm
from pysaillogger.models.position import Position
from pysaillogger.models.target import EntityObservation, ProximityTarget, TargetDetail

_logger = logging.getLogger(__name__)


def _merge_detail(cached: TargetDetail, incoming: TargetDetail) -> TargetDetail:
    """Overlay *incoming* on *cached*, keeping cached values for missing fields."""
    fresh = {key: value for key, value in incoming.model_dump().items() if value not in (None, "")}
    if not fresh:
        return cached
    return cached.model_copy(update=fresh)


@dataclass
class _TrackedTarget:
    last_seen_at: datetime
    position: Position
    speed: float | None
    heading: float | None
    type_label: str
    detail: TargetDetail
    refresh_counter: int = 0

    def to_payload(self, *, with_detail: bool) -> ProximityTarget:
        return ProximityTarget(
            last_seen_at=self.last_seen_at,
            position=self.position,
            speed=self.speed,
            heading=self.heading,
            type_label=self.type_label,
            refresh_counter=self.refresh_counter,
            rich_detail=self.detail if with_detail else None,
        )


class ProximityTargetCache:
    """Eviction-based cache of nearby tracked entities.

    Parameters
    ----------
    detail_every : int
        Attach static detail on every Nth update of an existing target.
    clock : callable or None
        Returns the current aware ``datetime``; defaults to UTC now.
    """

    def __init__(
        self,
        *,
        detail_every: int = TARGET_DETAIL_EVERY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if detail_every < 1:
            raise ValueError("detail_every must be at least 1")
        self._detail_every = detail_every
        self._clock = clock or (lambda: datetime.now(UTC))
        self._targets: dict[str, _TrackedTarget] = {}

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._targets

    def refresh_counter(self, entity_id: str) -> int | None:
        tracked = self._targets.get(entity_id)
        return None if tracked is None else tracked.refresh_counter

    def refresh_pass(
        self,
        entities: Iterable[EntityObservation],
        *,
        own_position: Position | None = None,
        max_distance: float | None = None,
    ) -> dict[str, ProximityTarget]:
        """Apply one entity table and return the outgoing payload by entity id.

        With both *own_position* and *max_distance* set, entities farther than
        *max_distance* nautical miles count as not observed: they are neither
        created nor updated, and a tracked one is evicted. A target coming into
        range therefore starts over with its full detail.
        """
        now = self._clock()
        payload: dict[str, ProximityTarget] = {}
        seen: set[str] = set()

        for entity in entities:
            if entity.position is None:
                continue
            if not in_range(entity.position, own_position, max_distance):
                continue
            entity_id = entity.entity_id
            seen.add(entity_id)

            tracked = self._targets.get(entity_id)
            if tracked is None:
                tracked = _TrackedTarget(
                    last_seen_at=now,
                    position=entity.position,
                    speed=entity.speed,
                    heading=entity.heading,
                    type_label=entity.type_label,
                    detail=entity.detail,
                )
                self._targets[entity_id] = tracked
                payload[entity_id] = tracked.to_payload(with_detail=True)
                continue

            tracked.last_seen_at = now
            tracked.position = entity.position
            tracked.speed = entity.speed
            tracked.heading = entity.heading
            tracked.type_label = entity.type_label
            tracked.detail = _merge_detail(tracked.detail, entity.detail)
            tracked.refresh_counter += 1

            with_detail = tracked.refresh_counter >= self._detail_every
            payload[entity_id] = tracked.to_payload(with_detail=with_detail)
            if with_detail:
                tracked.refresh_counter = 0

        evicted = [entity_id for entity_id in self._targets if entity_id not in seen]
        for entity_id in evicted:
            del self._targets[entity_id]
        if evicted:
            _logger.debug("Evicted %d targets no longer in range", len(evicted))

        return payload


def in_range(position: Position, own_position: Position | None, max_distance: float | None) -> bool:
    """Whether *position* is within *max_distance* nautical miles of *own_position*.

    Without a limit or an own position everything is in range.
    """
    if max_distance is None or own_position is None:
        return True
    return distance_nm(own_position, position) <= max_distance


def describe_payload(payload: Mapping[str, ProximityTarget]) -> dict[str, Any]:
    with_detail = sum(1 for target in payload.values() if target.rich_detail is not None)
    return {"targets": len(payload), "with_detail": with_detail}
