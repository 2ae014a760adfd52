"""MQTT ingestion.

This module mirrors plate state reports into the state store.
"""

from __future__ import annotations

import logging

from pyhasp.ingestion.normalize import decode_payload
from pyhasp.registry import DataPointRegistry
from pyhasp.state.events import SyncOutcome
from pyhasp.state.store import StateStore, join_id
from pyhasp.state.suffix import SuffixResolver
from pyhasp.topics import parse_state_topic

_logger = logging.getLogger(__name__)


class InboundSync:
    """Apply ``<base>/<plate>/state/...`` messages to value states.

    Only the attribute selected by the data point's active suffix (or a
    report without attribute) updates the value; other attributes still
    register the data point but are otherwise dropped.
    """

    def __init__(
        self,
        *,
        store: StateStore,
        namespace: str,
        base_topic: str,
        registry: DataPointRegistry,
        resolver: SuffixResolver,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._base_topic = base_topic
        self._registry = registry
        self._resolver = resolver

    async def handle_message(self, topic: str, payload: bytes | str | None) -> SyncOutcome:
        try:
            return await self._handle(topic, payload)
        except Exception:
            _logger.warning("Failed to handle message '%s'", topic, exc_info=True)
            return SyncOutcome.FAILED

    async def _handle(self, topic: str, payload: bytes | str | None) -> SyncOutcome:
        parsed = parse_state_topic(topic, self._base_topic)
        if parsed is None or not parsed.dp:
            return SyncOutcome.IGNORED

        plate, dp, attr = parsed.plate, parsed.dp, parsed.attr
        if not self._registry.is_known(plate, dp):
            await self._registry.ensure_data_point(plate, dp)

        active = (await self._resolver.get_suffix(plate, dp)).lstrip(".")
        if attr and attr != active:
            _logger.debug("Ignoring %s/%s attr=%s (active suffix '%s')", plate, dp, attr, active)
            return SyncOutcome.IGNORED

        text = decode_payload(payload)
        await self._store.set_state(join_id(self._namespace, plate, dp), text, ack=True)
        _logger.debug("State %s.%s <- '%s'", plate, dp, text)
        return SyncOutcome.WRITTEN
