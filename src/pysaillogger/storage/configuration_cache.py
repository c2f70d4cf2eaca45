"""Single-row cache of the last fetched remote configuration."""

from __future__ import annotations

import json
import logging
import sqlite3
import time

from pysaillogger.models.configuration import RemoteConfiguration
from pysaillogger.storage._database import Database

_logger = logging.getLogger(__name__)


class ConfigurationCache:
    """Keeps the raw JSON of the last successful configuration fetch."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def save(self, body: dict, *, fetched_at: float | None = None) -> None:
        """Overwrite the cached configuration with *body*."""
        payload = json.dumps(body)
        stamp = time.time() if fetched_at is None else fetched_at

        def _upsert(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(
                    "INSERT INTO configuration (id, body, fetched_at) VALUES (1, ?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET body = excluded.body, fetched_at = excluded.fetched_at",
                    (payload, stamp),
                )

        await self._db.run(_upsert)

    async def load(self) -> RemoteConfiguration | None:
        """Return the cached configuration, or ``None`` when nothing usable is stored."""

        def _select(conn: sqlite3.Connection) -> str | None:
            row = conn.execute("SELECT body FROM configuration WHERE id = 1").fetchone()
            return None if row is None else row["body"]

        body = await self._db.run(_select)
        if body is None:
            return None
        try:
            return RemoteConfiguration.model_validate(json.loads(body))
        except ValueError:
            _logger.warning("Cached configuration is unreadable; ignoring it")
            return None
