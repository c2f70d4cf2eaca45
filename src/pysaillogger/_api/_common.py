"""Shared helpers for collector endpoint modules.

It is internal to pysaillogger and may change at any time.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerMalformedResponseError


def collector_path(config: CollectorConfig, suffix: str, *, section: str | None = None) -> str:
    """Build ``/{section}/{collector}/{suffix}`` (section omitted when ``None``)."""
    parts = [section, config.collector_id, suffix] if section else [config.collector_id, suffix]
    return "/" + "/".join(parts)


def parse_body(model: Any, body: Any, *, endpoint: str, status: int) -> Any:
    """Validate a decoded response body against a pydantic *model*.

    Raises
    ------
    SailLoggerMalformedResponseError
        When the body does not fit the model.
    """
    if not isinstance(body, dict):
        raise SailLoggerMalformedResponseError(
            f"{endpoint} returned a non-object body: {type(body).__name__}",
            status_code=status,
            endpoint=endpoint,
        )
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise SailLoggerMalformedResponseError(
            f"{endpoint} returned an unexpected body: {exc.error_count()} validation errors",
            status_code=status,
            endpoint=endpoint,
        ) from exc
