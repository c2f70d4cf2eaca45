"""Vessel metadata model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pysaillogger.ingestion.normalize import safe_float, safe_str


class VesselMetadata(BaseModel):
    """Vessel description published to ``/{collector}/update``.

    The endpoint predates the camelCase push API and keeps snake_case keys,
    so this model does not use the camelCase alias generator.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    mmsi: str | None = None
    length: float | None = None
    beam: float | None = None
    height: float | None = None
    ship_type: int | None = None
    version: str
    signalk_version: str | None = None
    platform: str = ""

    @field_validator("name", "mmsi", "signalk_version", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("length", "beam", "height", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("ship_type", mode="before")
    @classmethod
    def _coerce_ship_type(cls, value: Any) -> int | None:
        parsed = safe_float(value)
        return None if parsed is None else int(parsed)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
