"""Response models for the collector endpoints."""

from __future__ import annotations

from pydantic import Field

from pysaillogger.models._base import CollectorModel


class PushAcknowledgement(CollectorModel):
    """Body of a successful ``/{collector}/push`` response.

    ``processed_until`` is the acknowledgment cursor: every record with a
    timestamp at or below it has been stored by the server. The two
    side-channel fields ask the collector to republish vessel metadata or
    to refetch the remote configuration.
    """

    processed_until: float | None = Field(default=None, ge=0)
    refresh_metadata: bool = False
    configuration_version: int | None = None
