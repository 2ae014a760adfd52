"""Internal MQTT coordination for HaspBridge.

Owns:
- starting/stopping the threaded MQTT runtime
- the ``info.connection`` indicator
- dispatching received messages to the inbound sync, one task per message
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from pyhasp._mqtt import HaspMqttRuntime, MqttMessage
from pyhasp.config import HaspConfig
from pyhasp.ingestion.mqtt import InboundSync
from pyhasp.state.store import StateStore, join_id

CONNECTION_STATE = "info.connection"


class MqttRuntime(Protocol):
    @property
    def is_running(self) -> bool: ...

    @property
    def is_connected(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def publish(self, topic: str, payload: str) -> None: ...


RuntimeFactory = Callable[..., MqttRuntime]


class MqttCoordinator:
    def __init__(
        self,
        *,
        config: HaspConfig,
        loop: asyncio.AbstractEventLoop,
        store: StateStore,
        inbound: InboundSync,
        logger: logging.Logger,
        runtime_factory: RuntimeFactory = HaspMqttRuntime,
    ) -> None:
        self._config = config
        self._loop = loop
        self._store = store
        self._inbound = inbound
        self._logger = logger
        self._runtime_factory = runtime_factory
        self._runtime: MqttRuntime | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def runtime(self) -> MqttRuntime | None:
        return self._runtime

    @property
    def connection_state_id(self) -> str:
        return join_id(self._config.namespace, CONNECTION_STATE)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every in-flight message and indicator task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def start(self) -> MqttRuntime | None:
        runtime = self._runtime_factory(
            config=self._config,
            loop=self._loop,
            on_message=self._on_message,
            on_connection_change=self._on_connection_change,
            logger=self._logger,
        )
        try:
            await self._loop.run_in_executor(None, runtime.start)
        except Exception:
            self._logger.error("MQTT runtime start failed", exc_info=True)
            return None
        self._runtime = runtime
        return runtime

    async def stop(self) -> None:
        runtime = self._runtime
        self._runtime = None
        if runtime is not None:
            try:
                await self._loop.run_in_executor(None, runtime.stop)
            except Exception:
                self._logger.debug("MQTT runtime stop failed", exc_info=True)
        await self.drain()
        await self._set_connection_state(False)

    def _on_message(self, message: MqttMessage) -> None:
        self._spawn(self._inbound.handle_message(message.topic, message.payload))

    def _on_connection_change(self, connected: bool) -> None:
        self._logger.info("MQTT %s", "connected" if connected else "disconnected")
        self._spawn(self._set_connection_state(connected))

    async def _set_connection_state(self, connected: bool) -> None:
        try:
            await self._store.set_state(self.connection_state_id, connected, ack=True)
        except Exception:
            self._logger.warning("Cannot update %s", CONNECTION_STATE, exc_info=True)
