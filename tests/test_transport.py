from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from pysaillogger._api.collector import push_records
from pysaillogger._api.monitoring import fetch_configuration
from pysaillogger._transport import HttpTransport
from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerMalformedResponseError, SailLoggerTransportError
from pysaillogger.models.telemetry import TelemetryRecord


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self.response = response
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append((method, url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _transport(response: _FakeResponse | Exception) -> tuple[HttpTransport, _FakeSession]:
    session = _FakeSession(response)
    config = CollectorConfig(collector_id="c0ffee", base_url="https://example.test/api/v1/collector")
    return HttpTransport(config, session), session  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_post_sends_identifying_headers_and_json() -> None:
    transport, session = _transport(_FakeResponse(200, '{"processedUntil": 5}'))

    response = await transport.post_json("/c0ffee/push", [{"timestamp": 5}])

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://example.test/api/v1/collector/c0ffee/push"
    assert json.loads(kwargs["data"]) == [{"timestamp": 5}]
    assert kwargs["headers"]["X-Collector-Id"] == "c0ffee"
    assert kwargs["headers"]["user-agent"].startswith("pysaillogger/")
    assert response.body == {"processedUntil": 5}


@pytest.mark.asyncio
async def test_no_content_has_no_body() -> None:
    transport, _ = _transport(_FakeResponse(204, ""))

    response = await transport.post_json("/c0ffee/push", [])

    assert response.status == 204
    assert response.body is None


@pytest.mark.asyncio
async def test_non_2xx_status_is_transport_error() -> None:
    transport, _ = _transport(_FakeResponse(503, "maintenance"))

    with pytest.raises(SailLoggerTransportError) as excinfo:
        await transport.get_json("/monitoring/c0ffee/configuration")

    assert excinfo.value.status_code == 503
    assert excinfo.value.endpoint == "/monitoring/c0ffee/configuration"


@pytest.mark.asyncio
async def test_network_error_is_transport_error() -> None:
    transport, _ = _transport(aiohttp.ClientConnectionError("unreachable"))

    with pytest.raises(SailLoggerTransportError):
        await transport.post_json("/c0ffee/push", [])


@pytest.mark.asyncio
async def test_invalid_json_is_malformed() -> None:
    transport, _ = _transport(_FakeResponse(200, "<html>"))

    with pytest.raises(SailLoggerMalformedResponseError):
        await transport.post_json("/c0ffee/push", [])


@pytest.mark.asyncio
async def test_push_records_rejects_ack_without_cursor() -> None:
    transport, _ = _transport(_FakeResponse(200, '{"refreshMetadata": true}'))
    config = CollectorConfig(collector_id="c0ffee")

    with pytest.raises(SailLoggerMalformedResponseError):
        await push_records(config, transport, [TelemetryRecord(timestamp=1, lat=0.0, lon=0.0)])


@pytest.mark.asyncio
async def test_fetch_configuration_rejects_non_object_body() -> None:
    transport, _ = _transport(_FakeResponse(200, "[1, 2]"))
    config = CollectorConfig(collector_id="c0ffee")

    with pytest.raises(SailLoggerMalformedResponseError):
        await fetch_configuration(config, transport)
