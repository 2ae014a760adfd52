"""Outbound command publishing.

Operator or script writes to a value state are published to the plate as
``<base>/<plate>/command/<dp>.<suffix>``; writes to a suffix state switch
the data point's active attribute. Every state handled here is written back
acknowledged, and acknowledged changes are never published, so the bridge's
own writes cannot loop back onto the wire.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pyhasp._client.mqtt import CONNECTION_STATE
from pyhasp.exceptions import HaspTransportError
from pyhasp.ingestion.normalize import to_payload_text
from pyhasp.state.events import SyncOutcome
from pyhasp.state.records import StateValue
from pyhasp.state.store import StateStore, split_id
from pyhasp.state.suffix import SuffixResolver, data_point_of, is_suffix_state
from pyhasp.topics import build_command_topic

_logger = logging.getLogger(__name__)


class Publisher(Protocol):
    @property
    def is_connected(self) -> bool: ...

    def publish(self, topic: str, payload: str) -> None: ...


class OutboundSync:
    def __init__(
        self,
        *,
        store: StateStore,
        namespace: str,
        base_topic: str,
        resolver: SuffixResolver,
        publisher: Publisher | None = None,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._base_topic = base_topic
        self._resolver = resolver
        self._publisher = publisher

    @property
    def publisher(self) -> Publisher | None:
        return self._publisher

    @publisher.setter
    def publisher(self, publisher: Publisher | None) -> None:
        self._publisher = publisher

    async def handle_state_change(self, state_id: str, state: StateValue | None) -> SyncOutcome:
        _logger.debug(
            "State change: %s = %r (ack=%s)",
            state_id,
            state.val if state is not None else None,
            state.ack if state is not None else None,
        )
        try:
            return await self._handle(state_id, state)
        except Exception:
            _logger.error("State change handling failed for %s", state_id, exc_info=True)
            return SyncOutcome.FAILED

    async def _handle(self, state_id: str, state: StateValue | None) -> SyncOutcome:
        if state is None or state.ack:
            return SyncOutcome.IGNORED

        rel = split_id(self._namespace, state_id)
        if rel is None or rel == CONNECTION_STATE:
            return SyncOutcome.IGNORED
        parts = rel.split(".")
        if len(parts) < 2:
            return SyncOutcome.IGNORED
        plate, dp = parts[0], parts[1]

        if is_suffix_state(dp):
            real_dp = data_point_of(dp)
            if not real_dp:
                return SyncOutcome.IGNORED
            await self._resolver.set_suffix(plate, real_dp, state.val)
            return SyncOutcome.SUFFIX_UPDATED

        suffix = await self._resolver.get_suffix(plate, dp)
        topic = build_command_topic(self._base_topic, plate, dp, suffix)
        payload = to_payload_text(state.val)
        _logger.debug("Publish intent: topic='%s' (suffix='%s'), payloadLength=%d", topic, suffix, len(payload))

        outcome = self._publish(topic, payload)
        await self._store.set_state(state_id, payload, ack=True)
        return outcome

    def _publish(self, topic: str, payload: str) -> SyncOutcome:
        publisher = self._publisher
        if publisher is None or not publisher.is_connected:
            _logger.warning("MQTT not connected, cannot publish '%s'", topic)
            return SyncOutcome.PUBLISH_SKIPPED
        try:
            publisher.publish(topic, payload)
        except HaspTransportError as exc:
            _logger.error("MQTT publish error on '%s': %s", topic, exc)
            return SyncOutcome.PUBLISH_FAILED
        _logger.debug("Published '%s' => '%s'", topic, payload)
        return SyncOutcome.PUBLISHED
