"""HTTP transport for the collector API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pysaillogger._constants import COLLECTOR_ID_HEADER, USER_AGENT
from pysaillogger._redact import redact_for_log
from pysaillogger.config import CollectorConfig
from pysaillogger.exceptions import SailLoggerMalformedResponseError, SailLoggerTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Successful (2xx) HTTP response.

    ``body`` is the decoded JSON document, or ``None`` when the server sent
    no content.
    """

    status: int
    body: Any = None


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def post_json(self, endpoint: str, payload: Any) -> TransportResponse:
        ...

    async def get_json(self, endpoint: str) -> TransportResponse:
        ...


def _user_agent() -> str:
    from pysaillogger import __version__

    return f"{USER_AGENT}/{__version__}"


class HttpTransport:
    """aiohttp transport that maps every failure onto the transport error taxonomy."""

    def __init__(self, config: CollectorConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.http_timeout)
        self._headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": _user_agent(),
            COLLECTOR_ID_HEADER: config.collector_id,
        }

    async def post_json(self, endpoint: str, payload: Any) -> TransportResponse:
        body = json.dumps(payload, separators=(",", ":"))
        headers = {**self._headers, "content-type": "application/json; charset=UTF-8"}
        _logger.debug("POST %s payload=%s", endpoint, redact_for_log(payload))
        return await self._request("POST", endpoint, data=body, headers=headers)

    async def get_json(self, endpoint: str) -> TransportResponse:
        _logger.debug("GET %s", endpoint)
        return await self._request("GET", endpoint, headers=self._headers)

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        headers: dict[str, str],
        data: str | None = None,
    ) -> TransportResponse:
        url = f"{self._config.base_url}{endpoint}"
        try:
            async with self._http.request(
                method,
                url,
                data=data,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise SailLoggerTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise SailLoggerTransportError(
                f"Request to {endpoint} timed out after {self._config.http_timeout}s",
                endpoint=endpoint,
            ) from exc

        if not 200 <= status < 300:
            raise SailLoggerTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if status == 204 or not text.strip():
            return TransportResponse(status=status)

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SailLoggerMalformedResponseError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        return TransportResponse(status=status, body=decoded)
