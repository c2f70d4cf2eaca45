"""Custom exception hierarchy for pysaillogger."""

from __future__ import annotations


class SailLoggerError(Exception):
    """Base exception for all pysaillogger errors."""


class SailLoggerConfigError(SailLoggerError):
    """Invalid or missing configuration."""


class SailLoggerTransportError(SailLoggerError):
    """HTTP-level failure (network, timeout, unexpected status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SailLoggerMalformedResponseError(SailLoggerTransportError):
    """Response body could not be fully parsed.

    A partially readable response is never trusted, so callers handle this
    exactly like any other transport failure.
    """


class StorageError(SailLoggerError):
    """Local storage (SQLite) operation failed."""
