from __future__ import annotations

from typing import Any

import pytest

from pysaillogger.ingestion.deltas import SELF_CONTEXT, Reading
from pysaillogger.ingestion.vessel_data import VesselDataStore
from pysaillogger.models.configuration import RemoteConfiguration
from pysaillogger.monitoring import DEPTH_MAX_AGE, build_metadata, build_snapshot


class _Clock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _feed(store: VesselDataStore, values: dict[str, Any]) -> None:
    for path, value in values.items():
        store.apply(Reading(SELF_CONTEXT, path, value))


def test_snapshot_needs_a_position() -> None:
    store = VesselDataStore(clock=_Clock())
    _feed(store, {"navigation.speedOverGround": 3.0})

    assert build_snapshot(store, RemoteConfiguration()) is None


def test_snapshot_converts_units() -> None:
    store = VesselDataStore(clock=_Clock())
    _feed(
        store,
        {
            "navigation.position": {"latitude": 59.0, "longitude": 18.0},
            "navigation.speedOverGround": 2.5,
            "navigation.courseOverGroundTrue": 3.14159,
            "environment.depth.belowTransducer": 7.25,
            "environment.water.temperature": 288.15,
            "environment.outside.pressure": 101_330,
            "environment.inside.humidity": 0.5,
            "electrical.batteries.house.voltage": 12.7,
            "electrical.batteries.house.capacity.stateOfCharge": 0.8,
        },
    )

    snapshot = build_snapshot(store, RemoteConfiguration(), battery_key="house")

    assert snapshot is not None
    assert snapshot.sog == 4.9
    assert snapshot.cog == 180.0
    assert snapshot.water.depth == 7.25
    assert snapshot.water.temperature == 15.0
    assert snapshot.pressure == 1013.3
    assert snapshot.humidity.inside == 50.0
    assert snapshot.battery.voltage == 12.7
    assert snapshot.battery.charge == pytest.approx(80.0)


def test_snapshot_drops_stale_values() -> None:
    clock = _Clock()
    store = VesselDataStore(clock=clock)
    _feed(store, {"environment.depth.belowTransducer": 7.25})
    clock.now += DEPTH_MAX_AGE + 1
    _feed(store, {"navigation.position": {"latitude": 59.0, "longitude": 18.0}})

    snapshot = build_snapshot(store, RemoteConfiguration())

    assert snapshot is not None
    assert snapshot.water.depth is None


def test_snapshot_follows_configured_keys() -> None:
    store = VesselDataStore(clock=_Clock())
    _feed(
        store,
        {
            "navigation.position": {"latitude": 59.0, "longitude": 18.0},
            "environment.depth.belowKeel": 3.5,
        },
    )
    configuration = RemoteConfiguration.model_validate({"depthKey": "environment.depth.belowKeel"})

    snapshot = build_snapshot(store, configuration)

    assert snapshot is not None
    assert snapshot.water.depth == 3.5


def test_metadata_reads_design_values() -> None:
    store = VesselDataStore(clock=_Clock())
    _feed(
        store,
        {
            "name": "Aurora",
            "mmsi": "244000001",
            "design.length": {"overall": 11.9},
            "design.beam": 3.9,
            "design.aisShipType": {"id": 36, "name": "Sailing"},
        },
    )

    metadata = build_metadata(store, version="0.1.0", signalk_version="2.8.0", platform="linux")

    assert metadata.to_wire() == {
        "name": "Aurora",
        "mmsi": "244000001",
        "length": 11.9,
        "beam": 3.9,
        "height": None,
        "ship_type": 36,
        "version": "0.1.0",
        "signalk_version": "2.8.0",
        "platform": "linux",
    }
