"""Internal MQTT runtime built on paho-mqtt."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pyhasp.config import HaspConfig
from pyhasp.exceptions import HaspTransportError
from pyhasp.topics import state_subscription


@dataclass(frozen=True)
class MqttMessage:
    """An inbound PUBLISH as handed to the asyncio loop."""

    topic: str
    payload: bytes


class HaspMqttRuntime:
    """Threaded paho-mqtt runtime that emits messages onto an asyncio loop.

    paho reconnects on its own; the state subscription is re-established on
    every successful connect.
    """

    def __init__(
        self,
        *,
        config: HaspConfig,
        loop: asyncio.AbstractEventLoop,
        on_message: Callable[[MqttMessage], None],
        on_connection_change: Callable[[bool], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_message = on_message
        self._on_connection_change = on_connection_change
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._connected = False

    @property
    def is_running(self) -> bool:
        """Whether the network loop is started."""
        return self._running

    @property
    def is_connected(self) -> bool:
        """Whether the broker connection is currently up."""
        return self._connected

    def _set_connected(self, connected: bool) -> None:
        changed = connected != self._connected
        self._connected = connected
        if changed and self._on_connection_change is not None:
            self._loop.call_soon_threadsafe(self._on_connection_change, connected)

    def start(self) -> None:
        """Configure the client and start connecting in the background."""
        self.stop()
        config = self._config
        subscription = state_subscription(config.base_topic)
        self._logger.info("Connecting to MQTT %s (baseTopic='%s') ...", config.broker_url, config.base_topic)

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=config.client_id or "",
            clean_session=True,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password or None)
        if config.use_tls:
            client.tls_set()
        delay = max(1, round(config.reconnect_delay))
        client.reconnect_delay_set(min_delay=delay, max_delay=max(delay, 120))

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._set_connected(True)
            result, _mid = c.subscribe(subscription, qos=config.qos)
            if result != mqtt.MQTT_ERR_SUCCESS:
                self._logger.error("MQTT subscribe error: %s", mqtt.error_string(result))
            else:
                self._logger.info("Subscribed: %s", subscription)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self._logger.debug("Received PUBLISH topic=%s bytes=%d", msg.topic, len(msg.payload))
            self._loop.call_soon_threadsafe(self._on_message, MqttMessage(topic=msg.topic, payload=msg.payload))

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            self._set_connected(False)
            if self._running:
                self._logger.debug("MQTT disconnected: %s; reconnecting...", reason_code)

        def on_connect_fail(_client: mqtt.Client, _userdata: Any) -> None:
            self._logger.error("MQTT connection to %s failed", config.broker_url)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect
        client.on_connect_fail = on_connect_fail

        try:
            client.connect_async(config.mqtt_host, config.mqtt_port, keepalive=config.keepalive)
        except (OSError, ValueError) as exc:
            raise HaspTransportError(f"Cannot connect to {config.broker_url}: {exc}") from exc
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def publish(self, topic: str, payload: str) -> None:
        """Queue a non-retained PUBLISH. Raises :class:`HaspTransportError` on failure."""
        client = self._client
        if client is None:
            raise HaspTransportError("MQTT client not started", topic=topic)
        try:
            info = client.publish(topic, payload, qos=self._config.qos, retain=False)
        except ValueError as exc:
            # paho rejects wildcard characters and oversized payloads up front
            raise HaspTransportError(str(exc), topic=topic) from exc
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise HaspTransportError(mqtt.error_string(info.rc), rc=info.rc, topic=topic)

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._connected = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
