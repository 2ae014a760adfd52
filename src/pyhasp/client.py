"""High-level async bridge between openHASP plates and the state store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pyhasp._client.commands import OutboundSync
from pyhasp._client.mqtt import CONNECTION_STATE, MqttCoordinator, RuntimeFactory
from pyhasp._mqtt import HaspMqttRuntime
from pyhasp._redact import redact_for_log
from pyhasp.config import HaspConfig
from pyhasp.ingestion.mqtt import InboundSync
from pyhasp.migration import migrate_states_to_string
from pyhasp.registry import DataPointRegistry
from pyhasp.state.records import ObjectRecord, ObjectType, StateCommon, StateValue, ValueType
from pyhasp.state.store import StateStore, join_id
from pyhasp.state.suffix import SuffixCache, SuffixResolver

_logger = logging.getLogger(__name__)


class HaspBridge:
    """Mirror openHASP plates into a :class:`StateStore` and back.

    Usage::

        async with HaspBridge(config, store=store) as bridge:
            await stop_event.wait()
    """

    def __init__(
        self,
        config: HaspConfig,
        *,
        store: StateStore | None = None,
        suffix_cache: SuffixCache | None = None,
        runtime_factory: RuntimeFactory = HaspMqttRuntime,
    ) -> None:
        self._config = config
        self._store = store if store is not None else StateStore()
        self._runtime_factory = runtime_factory
        self._resolver = SuffixResolver(self._store, config.namespace, cache=suffix_cache)
        self._registry = DataPointRegistry(self._store, config.namespace, self._resolver)
        self._inbound = InboundSync(
            store=self._store,
            namespace=config.namespace,
            base_topic=config.base_topic,
            registry=self._registry,
            resolver=self._resolver,
        )
        self._outbound = OutboundSync(
            store=self._store,
            namespace=config.namespace,
            base_topic=config.base_topic,
            resolver=self._resolver,
        )
        self._coordinator: MqttCoordinator | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def config(self) -> HaspConfig:
        return self._config

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def resolver(self) -> SuffixResolver:
        return self._resolver

    @property
    def inbound(self) -> InboundSync:
        return self._inbound

    @property
    def outbound(self) -> OutboundSync:
        return self._outbound

    @property
    def coordinator(self) -> MqttCoordinator | None:
        return self._coordinator

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> HaspBridge:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Prepare the store, run the migration and connect to the broker.

        Failures are logged; the bridge keeps starting in a degraded state
        because paho keeps reconnecting on its own.
        """
        loop = asyncio.get_running_loop()
        _logger.info("openHASP bridge starting")

        await self._ensure_connection_state()
        _logger.info("Config: %s", redact_for_log(self._config))

        self._unsubscribe = self._store.subscribe(self._on_state_change)
        await migrate_states_to_string(self._store, self._config.namespace)

        coordinator = MqttCoordinator(
            config=self._config,
            loop=loop,
            store=self._store,
            inbound=self._inbound,
            logger=logging.getLogger("pyhasp.mqtt"),
            runtime_factory=self._runtime_factory,
        )
        self._coordinator = coordinator
        self._outbound.publisher = await coordinator.start()
        _logger.info("openHASP bridge ready")

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        coordinator = self._coordinator
        self._coordinator = None
        self._outbound.publisher = None
        if coordinator is not None:
            await coordinator.stop()

    async def _ensure_connection_state(self) -> None:
        state_id = join_id(self._config.namespace, CONNECTION_STATE)
        indicator = ObjectRecord(
            type=ObjectType.STATE,
            common=StateCommon(
                name="Connection",
                type=ValueType.BOOLEAN,
                role="indicator.connected",
                read=True,
                write=False,
                default=False,
            ),
        )
        try:
            await self._store.set_object_not_exists(state_id, indicator)
            await self._store.set_state(state_id, False, ack=True)
        except Exception:
            _logger.error("Cannot create %s", state_id, exc_info=True)

    async def _on_state_change(self, state_id: str, state: StateValue | None) -> None:
        await self._outbound.handle_state_change(state_id, state)
