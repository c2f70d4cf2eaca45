"""Signal K MQTT gateway sample source.

The gateway publishes either full delta messages or one value per topic
(``vessels/self/navigation/speedOverGround`` carrying the JSON value). Both
shapes are decoded into :class:`Reading` objects on the paho network thread
and handed to the asyncio loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pysaillogger.ingestion.deltas import SELF_CONTEXT, Reading, parse_delta

DEFAULT_TOPIC = "vessels/#"


@dataclass(frozen=True)
class MqttEndpoint:
    """Broker details for the Signal K MQTT gateway."""

    host: str
    port: int = 1883
    topic: str = DEFAULT_TOPIC
    client_id: str = ""
    username: str | None = None
    password: str | None = None


def decode_mqtt_message(topic: str, payload: bytes, *, self_context: str | None = None) -> list[Reading]:
    """Decode one MQTT message into readings.

    Raises
    ------
    ValueError
        When the payload is not JSON or the topic is not a vessel path.
    """
    document = json.loads(payload.decode("utf-8"))
    if isinstance(document, dict) and isinstance(document.get("updates"), list):
        return parse_delta(document, self_context=self_context)

    parts = [part for part in topic.split("/") if part]
    if len(parts) < 3 or parts[0] != "vessels":
        raise ValueError(f"Topic is not a vessel path: {topic}")
    context = f"vessels.{parts[1]}"
    if context == self_context:
        context = SELF_CONTEXT
    return [Reading(context=context, path=".".join(parts[2:]), value=document)]


class DeltaMqttRuntime:
    """Threaded paho-mqtt runtime that emits decoded readings onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_readings: Callable[[list[Reading]], None],
        self_context: str | None = None,
        keepalive: int = 60,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_readings = on_readings
        self._self_context = self_context
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, endpoint: MqttEndpoint) -> None:
        """Connect and subscribe to the gateway."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s",
            endpoint.host,
            endpoint.port,
            endpoint.topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=endpoint.client_id,
        )
        client.enable_logger(self._logger)
        if endpoint.username:
            client.username_pw_set(endpoint.username, endpoint.password)

        self._topic = endpoint.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                readings = decode_mqtt_message(msg.topic, msg.payload, self_context=self._self_context)
            except (UnicodeDecodeError, ValueError):
                self._logger.debug("Ignoring undecodable MQTT message on %s", msg.topic, exc_info=True)
                return
            if readings:
                self._loop.call_soon_threadsafe(self._on_readings, readings)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(endpoint.host, endpoint.port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
