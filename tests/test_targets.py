from __future__ import annotations

from datetime import UTC, datetime

from pysaillogger.models.position import Position
from pysaillogger.models.target import EntityObservation, TargetDetail
from pysaillogger.targets import ProximityTargetCache, in_range


def _cache() -> ProximityTargetCache:
    return ProximityTargetCache(clock=lambda: datetime(2026, 1, 1, tzinfo=UTC))


def _entity(entity_id: str, *, lat: float = 59.0, name: str | None = None) -> EntityObservation:
    return EntityObservation(
        entity_id=entity_id,
        position=Position(lat=lat, lon=18.0),
        speed=4.2,
        heading=90.0,
        type_label="sailing",
        detail=TargetDetail(name=name, mmsi=entity_id),
    )


def test_new_target_carries_detail() -> None:
    cache = _cache()

    payload = cache.refresh_pass([_entity("230000001", name="Seabird")])

    target = payload["230000001"]
    assert target.refresh_counter == 0
    assert target.rich_detail is not None
    assert target.rich_detail.name == "Seabird"
    assert target.last_seen_at == datetime(2026, 1, 1, tzinfo=UTC)


def test_absent_target_is_evicted_immediately() -> None:
    cache = _cache()
    cache.refresh_pass([_entity("A"), _entity("B")])

    payload = cache.refresh_pass([_entity("A")])

    assert "B" not in cache
    assert set(payload) == {"A"}

    # Seen again: treated as a brand new target.
    payload = cache.refresh_pass([_entity("A"), _entity("B")])
    assert payload["B"].refresh_counter == 0
    assert payload["B"].rich_detail is not None


def test_detail_attached_on_every_thirtieth_update() -> None:
    cache = _cache()
    cache.refresh_pass([_entity("A", name="Seabird")])

    with_detail = []
    for update in range(1, 61):
        payload = cache.refresh_pass([_entity("A")])
        if payload["A"].rich_detail is not None:
            with_detail.append(update)

    assert with_detail == [30, 60]
    assert cache.refresh_counter("A") == 0


def test_detail_keeps_earlier_static_fields() -> None:
    cache = _cache()
    cache.refresh_pass([_entity("A", name="Seabird")])
    for _ in range(29):
        cache.refresh_pass([_entity("A")])

    payload = cache.refresh_pass([_entity("A")])

    assert payload["A"].rich_detail is not None
    assert payload["A"].rich_detail.name == "Seabird"


def test_entities_without_position_are_ignored() -> None:
    cache = _cache()

    payload = cache.refresh_pass([EntityObservation(entity_id="A")])

    assert payload == {}
    assert len(cache) == 0


def test_out_of_range_entities_are_not_tracked() -> None:
    cache = _cache()
    own = Position(lat=59.01, lon=18.0)

    payload = cache.refresh_pass([_entity("near"), _entity("far", lat=60.0)], own_position=own, max_distance=5.0)

    assert set(payload) == {"near"}
    assert "far" not in cache


def test_target_entering_range_is_sent_with_detail() -> None:
    cache = _cache()
    own = Position(lat=59.0, lon=18.0)
    cache.refresh_pass([_entity("A", lat=60.0, name="Seabird")], own_position=own, max_distance=5.0)

    payload = cache.refresh_pass([_entity("A", lat=59.01, name="Seabird")], own_position=own, max_distance=5.0)

    assert payload["A"].refresh_counter == 0
    assert payload["A"].rich_detail is not None
    assert payload["A"].rich_detail.name == "Seabird"


def test_target_leaving_range_is_evicted() -> None:
    cache = _cache()
    own = Position(lat=59.0, lon=18.0)
    cache.refresh_pass([_entity("A")], own_position=own, max_distance=5.0)

    payload = cache.refresh_pass([_entity("A", lat=60.0)], own_position=own, max_distance=5.0)

    assert payload == {}
    assert "A" not in cache


def test_in_range_without_limit_or_own_position() -> None:
    far = Position(lat=60.0, lon=18.0)
    own = Position(lat=59.0, lon=18.0)

    assert in_range(far, own, None) is True
    assert in_range(far, None, 5.0) is True
    assert in_range(far, own, 5.0) is False


def test_payload_wire_format() -> None:
    payload = _cache().refresh_pass([_entity("A", name="Seabird")])

    wire = payload["A"].to_wire()

    assert wire["typeLabel"] == "sailing"
    assert wire["refreshCounter"] == 0
    assert wire["position"] == {"lat": 59.0, "lon": 18.0}
    assert wire["richDetail"]["name"] == "Seabird"
    assert wire["lastSeenAt"].startswith("2026-01-01T00:00:00")
