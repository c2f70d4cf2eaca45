"""Durable telemetry buffer.

Append-only log of :class:`TelemetryRecord` rows ordered by timestamp. The
sync engine reads the oldest rows with :meth:`DurableBuffer.peek_batch` and
deletes everything the server acknowledged with
:meth:`DurableBuffer.prune_up_to`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3

from pysaillogger._constants import PUSH_BATCH_LIMIT
from pysaillogger.models.telemetry import TelemetryRecord
from pysaillogger.storage._database import Database

_logger = logging.getLogger(__name__)

_INSERT = (
    "INSERT INTO buffer (ts, latitude, longitude, speed_over_ground, course_over_ground_true, "
    "wind_speed_apparent, wind_angle_apparent, snapshot) VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
)
_SELECT_OLDEST = (
    "SELECT ts, latitude, longitude, speed_over_ground, course_over_ground_true, "
    "wind_speed_apparent, wind_angle_apparent, snapshot FROM buffer ORDER BY ts ASC, rowid ASC LIMIT ?"
)


def _row_to_record(row: sqlite3.Row) -> TelemetryRecord:
    snapshot = json.loads(row["snapshot"]) if row["snapshot"] else None
    return TelemetryRecord(
        timestamp=row["ts"],
        lat=row["latitude"],
        lon=row["longitude"],
        max_speed_over_ground=row["speed_over_ground"],
        course_over_ground_true=row["course_over_ground_true"],
        max_wind_speed_apparent=row["wind_speed_apparent"],
        wind_angle_apparent=row["wind_angle_apparent"],
        snapshot=snapshot,
    )


class DurableBuffer:
    """Exclusive owner of the ``buffer`` table.

    Appends are serialized through an :class:`asyncio.Lock`; reads and
    prunes rely on the single worker thread of :class:`Database` for
    ordering.
    """

    def __init__(self, database: Database) -> None:
        self._db = database
        self._write_lock = asyncio.Lock()

    async def append(self, record: TelemetryRecord) -> None:
        """Persist one record.

        Raises
        ------
        StorageError
            When the row could not be written.
        """
        snapshot = json.dumps(record.snapshot) if record.snapshot is not None else None
        params = (
            record.timestamp,
            record.lat,
            record.lon,
            record.max_speed_over_ground,
            record.course_over_ground_true,
            record.max_wind_speed_apparent,
            record.wind_angle_apparent,
            snapshot,
        )

        def _insert(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(_INSERT, params)

        async with self._write_lock:
            await self._db.run(_insert)
        _logger.debug("Buffered record at %s", record.timestamp)

    async def peek_batch(self, limit: int = PUSH_BATCH_LIMIT) -> list[TelemetryRecord]:
        """Return the oldest *limit* records without removing them."""

        def _select(conn: sqlite3.Connection) -> list[sqlite3.Row]:
            return conn.execute(_SELECT_OLDEST, (limit,)).fetchall()

        rows = await self._db.run(_select)
        return [_row_to_record(row) for row in rows]

    async def prune_up_to(self, cursor: float) -> int:
        """Delete every record with ``timestamp <= cursor``.

        Returns the number of deleted rows. Replaying an equal or earlier
        cursor deletes nothing.
        """

        def _delete(conn: sqlite3.Connection) -> int:
            with conn:
                return conn.execute("DELETE FROM buffer WHERE ts <= ?", (cursor,)).rowcount

        deleted = await self._db.run(_delete)
        if deleted:
            _logger.debug("Pruned %d records up to %s", deleted, cursor)
        return deleted

    async def count(self) -> int:
        def _count(conn: sqlite3.Connection) -> int:
            return int(conn.execute("SELECT COUNT(*) FROM buffer").fetchone()[0])

        return await self._db.run(_count)
