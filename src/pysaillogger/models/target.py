"""Proximity target models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from pysaillogger.ingestion.normalize import safe_float, safe_str
from pysaillogger.models._base import CollectorModel
from pysaillogger.models.position import Position


def ais_type_label(code: Any) -> str:
    """Map an AIS ship type code to a coarse category label."""
    parsed = safe_float(code)
    if parsed is None:
        return "other"
    value = int(parsed)
    if 70 <= value <= 79:
        return "cargo"
    if 80 <= value <= 89:
        return "tanker"
    if 60 <= value <= 69:
        return "passenger"
    if value == 30:
        return "fishing"
    if value in (31, 32, 52):
        return "tug"
    if value == 35:
        return "military"
    if value == 36:
        return "sailing"
    if value == 37:
        return "pleasure"
    if 50 <= value <= 59:
        return "service"
    if 40 <= value <= 49:
        return "high_speed"
    return "other"


class TargetDetail(CollectorModel):
    """Static and voyage data of a target, sent only periodically."""

    name: str | None = None
    mmsi: str | None = None
    callsign: str | None = None
    ship_type: int | None = None
    length: float | None = None
    beam: float | None = None
    draft: float | None = None
    destination: str | None = None
    nav_state: str | None = None

    @field_validator("name", "mmsi", "callsign", "destination", "nav_state", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return safe_str(value)


class EntityObservation(CollectorModel):
    """One entity as seen in the current entity table."""

    entity_id: str = Field(min_length=1)
    position: Position | None = None
    speed: float | None = None
    heading: float | None = None
    type_label: str = "other"
    detail: TargetDetail = TargetDetail()

    @field_validator("speed", "heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)


class ProximityTarget(CollectorModel):
    """Target entry as pushed to ``/ais/{collector}/push``."""

    last_seen_at: datetime
    position: Position
    speed: float | None = None
    heading: float | None = None
    type_label: str = "other"
    refresh_counter: int = 0
    rich_detail: TargetDetail | None = None
