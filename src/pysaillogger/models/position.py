"""Geographic position model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pysaillogger.ingestion.normalize import safe_float
from pysaillogger.models._base import CollectorModel


class Position(CollectorModel):
    """WGS84 position in decimal degrees.

    Accepts the Signal K ``{"latitude", "longitude"}`` shape as well as
    the short ``lat``/``lon`` keys used on the wire.
    """

    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"), ge=-90.0, le=90.0)
    lon: float = Field(validation_alias=AliasChoices("lon", "lng", "longitude"), ge=-180.0, le=180.0)

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    def to_signalk(self) -> dict[str, float]:
        return {"latitude": self.lat, "longitude": self.lon}
