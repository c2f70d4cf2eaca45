"""Base model for collector payloads.

Every wire model inherits from :class:`CollectorModel` which provides:

* ``alias_generator=to_camel`` so snake_case fields serialize to the
  camelCase keys the remote service expects.
* A ``model_validator(mode="before")`` that drops ``None`` and NaN values
  so the field default is used.
* :meth:`CollectorModel.to_wire` producing the JSON-ready dict.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CollectorModel(BaseModel):
    """Base for collector wire models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_missing_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire aliases, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
