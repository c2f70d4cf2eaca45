from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from pysaillogger.exceptions import StorageError
from pysaillogger.models.telemetry import TelemetryRecord
from pysaillogger.storage import ConfigurationCache, Database, DurableBuffer


def _record(ts: float, **extra: object) -> TelemetryRecord:
    return TelemetryRecord(timestamp=ts, lat=10.0, lon=20.0, **extra)


async def _open(path: Path) -> tuple[Database, DurableBuffer]:
    database = Database(path)
    await database.open()
    return database, DurableBuffer(database)


@pytest.mark.asyncio
async def test_prune_removes_acknowledged_prefix(tmp_path: Path) -> None:
    database, buffer = await _open(tmp_path / "log.sqlite3")
    try:
        for ts in (100, 200, 300):
            await buffer.append(_record(ts))

        assert await buffer.prune_up_to(200) == 2
        assert await buffer.count() == 1
        assert [r.timestamp for r in await buffer.peek_batch()] == [300]
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_replaying_equal_or_earlier_cursor_deletes_nothing(tmp_path: Path) -> None:
    database, buffer = await _open(tmp_path / "log.sqlite3")
    try:
        for ts in (100, 200, 300):
            await buffer.append(_record(ts))
        await buffer.prune_up_to(200)

        assert await buffer.prune_up_to(200) == 0
        assert await buffer.prune_up_to(150) == 0
        assert await buffer.count() == 1
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_peek_batch_returns_oldest_first_and_keeps_rows(tmp_path: Path) -> None:
    database, buffer = await _open(tmp_path / "log.sqlite3")
    try:
        for ts in (300, 100, 200, 400):
            await buffer.append(_record(ts))

        batch = await buffer.peek_batch(limit=2)

        assert [r.timestamp for r in batch] == [100, 200]
        assert await buffer.count() == 4
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_duplicate_timestamps_are_kept(tmp_path: Path) -> None:
    database, buffer = await _open(tmp_path / "log.sqlite3")
    try:
        await buffer.append(_record(100))
        await buffer.append(_record(100))

        assert await buffer.count() == 2
        assert await buffer.prune_up_to(100) == 2
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_concurrent_appends_land_in_submission_order(tmp_path: Path) -> None:
    database, buffer = await _open(tmp_path / "log.sqlite3")
    try:
        # Equal timestamps so the stored order is the insertion order.
        records = [TelemetryRecord(timestamp=500, lat=float(i), lon=20.0) for i in range(25)]

        await asyncio.gather(*(buffer.append(record) for record in records))

        assert await buffer.count() == 25
        assert [r.lat for r in await buffer.peek_batch(limit=100)] == [float(i) for i in range(25)]
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_records_survive_reopen(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "log.sqlite3"
    database, buffer = await _open(path)
    await buffer.append(
        _record(
            100,
            max_speed_over_ground=5.2,
            course_over_ground_true=182.5,
            snapshot={"position": {"lat": 10.0, "lon": 20.0}, "sog": 5.2},
        )
    )
    await database.close()

    database, buffer = await _open(path)
    try:
        (record,) = await buffer.peek_batch()
        assert record.max_speed_over_ground == 5.2
        assert record.course_over_ground_true == 182.5
        assert record.max_wind_speed_apparent is None
        assert record.snapshot == {"position": {"lat": 10.0, "lon": 20.0}, "sog": 5.2}
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_operations_on_closed_database_raise_storage_error(tmp_path: Path) -> None:
    buffer = DurableBuffer(Database(tmp_path / "log.sqlite3"))

    with pytest.raises(StorageError):
        await buffer.count()


@pytest.mark.asyncio
async def test_configuration_cache_overwrites_single_row(tmp_path: Path) -> None:
    database = Database(tmp_path / "log.sqlite3")
    await database.open()
    cache = ConfigurationCache(database)
    try:
        assert await cache.load() is None

        await cache.save({"version": 1, "sendAisTargets": True}, fetched_at=10.0)
        await cache.save({"version": 2, "depthKey": "environment.depth.belowKeel"}, fetched_at=20.0)

        cached = await cache.load()
        assert cached is not None
        assert cached.version == 2
        assert cached.depth_key == "environment.depth.belowKeel"
        # Overwritten wholesale: the flag from version 1 is gone.
        assert cached.send_ais_targets is False
    finally:
        await database.close()
