"""Normalization helpers.

Centralizes defensive parsing and the unit conversions applied to Signal K
values (SI units) before they enter the collector.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

from pysaillogger._constants import KELVIN_OFFSET, MS_TO_KNOTS, RAD_TO_DEG


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _round1(value: float) -> float:
    return round(value * 10) / 10


def ms_to_knots(value: Any) -> float | None:
    ms = safe_float(value)
    if ms is None:
        return None
    return _round1(ms * MS_TO_KNOTS)


def rad_to_degrees(value: Any) -> float | None:
    rad = safe_float(value)
    if rad is None:
        return None
    return _round1(rad * RAD_TO_DEG)


def kelvin_to_celsius(value: Any) -> float | None:
    kelvin = safe_float(value)
    if kelvin is None:
        return None
    return _round1(kelvin - KELVIN_OFFSET)


def pascal_to_hectopascal(value: Any) -> float | None:
    pascal = safe_float(value)
    if pascal is None:
        return None
    return _round1(pascal / 100)


def ratio_to_percent(value: Any) -> float | None:
    ratio = safe_float(value)
    if ratio is None:
        return None
    return ratio * 100


def normalize_timestamp_seconds(value: Any) -> float | None:
    """Normalize timestamps to epoch seconds.

    - Empty/missing -> None
    - ISO-8601 strings (Signal K) -> seconds
    - <= 0 -> None
    - Milliseconds (> 1e11) -> seconds
    """

    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return parsed.timestamp()
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts > 1e11:
        ts /= 1000.0
    return ts
