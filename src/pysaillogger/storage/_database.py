"""SQLite file shared by the telemetry buffer and the configuration cache.

Every statement runs on one dedicated worker thread, so the event loop never
blocks and statements execute in submission order.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from pysaillogger.exceptions import StorageError

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS buffer (
        ts REAL NOT NULL,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        speed_over_ground REAL,
        course_over_ground_true REAL,
        wind_speed_apparent REAL,
        wind_angle_apparent REAL,
        snapshot TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_buffer_ts ON buffer (ts)",
    """
    CREATE TABLE IF NOT EXISTS configuration (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        body TEXT NOT NULL,
        fetched_at REAL NOT NULL
    )
    """,
)


class Database:
    """Async facade over a single SQLite connection.

    Parameters
    ----------
    path : Path
        Database file. Parent directories are created on open.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._executor: ThreadPoolExecutor | None = None
        self._conn: sqlite3.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pysaillogger-sqlite")
        try:
            self._conn = await self._submit(self._connect)
        except StorageError:
            self._executor.shutdown(wait=False)
            self._executor = None
            raise
        _logger.debug("Opened telemetry database %s", self.path)

    async def close(self) -> None:
        executor = self._executor
        if executor is None:
            return
        conn = self._conn
        self._conn = None
        try:
            if conn is not None:
                await self._submit(conn.close, executor=executor)
        finally:
            self._executor = None
            executor.shutdown(wait=True)
        _logger.debug("Closed telemetry database %s", self.path)

    async def run(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        """Run *operation* with the connection on the worker thread."""
        conn = self._conn
        if conn is None or self._executor is None:
            raise StorageError("Database is not open")
        return await self._submit(lambda: operation(conn))

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        with conn:
            for statement in _SCHEMA:
                conn.execute(statement)
        return conn

    async def _submit(self, fn: Callable[[], T], *, executor: ThreadPoolExecutor | None = None) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(executor or self._executor, fn)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"SQLite operation failed on {self.path}: {exc}") from exc
