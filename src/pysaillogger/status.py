"""Human-readable collector status."""

from __future__ import annotations

import math

_UNITS: tuple[tuple[str, int], ...] = (
    ("year", 31_536_000),
    ("month", 2_592_000),
    ("day", 86_400),
    ("hour", 3_600),
    ("minute", 60),
)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def time_since(elapsed: float) -> str:
    """Describe *elapsed* seconds with the largest unit that fits more than once.

    >>> time_since(45)
    '45 seconds'
    >>> time_since(7200.5)
    '2 hours'
    """
    seconds = max(0, math.floor(elapsed))
    for unit, size in _UNITS:
        interval = seconds / size
        if interval > 1:
            return _plural(math.floor(interval), unit)
    return _plural(seconds, "second")


def format_status(buffer_depth: int, last_successful_sync: float | None, now: float) -> str:
    """Combine backlog size and sync recency into one status line.

    Parameters
    ----------
    buffer_depth : int
        Records waiting in the durable buffer.
    last_successful_sync : float or None
        Epoch seconds of the last acknowledged push, ``None`` if none yet.
    now : float
        Current epoch seconds.
    """
    queue = f"{buffer_depth} entry" if buffer_depth == 1 else f"{buffer_depth} entries"
    message = f"{queue} in the queue,"
    if last_successful_sync is None:
        return f"{message} no successful connection to the server since restart."
    return f"{message} last connection to the server was {time_since(now - last_successful_sync)} ago."
