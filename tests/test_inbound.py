from __future__ import annotations

import pytest

from pyhasp.ingestion.mqtt import InboundSync
from pyhasp.ingestion.normalize import decode_payload
from pyhasp.registry import DataPointRegistry
from pyhasp.state.events import SyncOutcome
from pyhasp.state.store import StateStore
from pyhasp.state.suffix import SuffixResolver

NS = "openhasp.0"


def _inbound(store: StateStore) -> tuple[InboundSync, SuffixResolver, DataPointRegistry]:
    resolver = SuffixResolver(store, NS)
    registry = DataPointRegistry(store, NS, resolver)
    inbound = InboundSync(store=store, namespace=NS, base_topic="hasp", registry=registry, resolver=resolver)
    return inbound, resolver, registry


def test_decode_payload() -> None:
    assert decode_payload(b"on") == "on"
    assert decode_payload(None) == ""
    assert decode_payload(b"\xff") == "�"


@pytest.mark.asyncio
async def test_matching_attribute_updates_value() -> None:
    store = StateStore()
    inbound, _, _ = _inbound(store)

    outcome = await inbound.handle_message("hasp/plate1/state/p1b1.val", b"on")

    assert outcome == SyncOutcome.WRITTEN
    state = await store.get_state(f"{NS}.plate1.p1b1")
    assert state is not None
    assert state.val == "on"
    assert state.ack is True


@pytest.mark.asyncio
async def test_report_without_attribute_updates_value() -> None:
    store = StateStore()
    inbound, _, _ = _inbound(store)

    assert await inbound.handle_message("hasp/plate1/state/idle", b"short") == SyncOutcome.WRITTEN
    state = await store.get_state(f"{NS}.plate1.idle")
    assert state is not None and state.val == "short"


@pytest.mark.asyncio
async def test_other_attribute_registers_but_does_not_update() -> None:
    store = StateStore()
    inbound, _, registry = _inbound(store)

    outcome = await inbound.handle_message("hasp/plate1/state/p1b1/bri", b"128")

    assert outcome == SyncOutcome.IGNORED
    assert await store.get_state(f"{NS}.plate1.p1b1") is None
    assert await store.get_object(f"{NS}.plate1.p1b1") is not None
    assert registry.is_known("plate1", "p1b1")


@pytest.mark.asyncio
async def test_active_suffix_selects_attribute() -> None:
    store = StateStore()
    inbound, resolver, _ = _inbound(store)
    await resolver.set_suffix("plate1", "p1b1", "bri")

    assert await inbound.handle_message("hasp/plate1/state/p1b1.val", b"on") == SyncOutcome.IGNORED
    assert await inbound.handle_message("hasp/plate1/state/p1b1/bri", b"128") == SyncOutcome.WRITTEN

    state = await store.get_state(f"{NS}.plate1.p1b1")
    assert state is not None and state.val == "128"


@pytest.mark.asyncio
async def test_leading_dot_in_active_suffix_is_ignored() -> None:
    store = StateStore()
    await store.set_state(f"{NS}.plate1.p1b1_suffix", ".text", ack=True)
    inbound, _, _ = _inbound(store)

    assert await inbound.handle_message("hasp/plate1/state/p1b1.text", b"hello") == SyncOutcome.WRITTEN


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "topic",
    [
        "hasp/plate1/state/",
        "hasp/plate1/state/.val",
        "other/plate1/state/p1b1",
        "hasp/plate1/command/p1b1",
        "hasp/plate1",
    ],
)
async def test_unusable_topics_are_discarded(topic: str) -> None:
    store = StateStore()
    inbound, _, _ = _inbound(store)

    assert await inbound.handle_message(topic, b"x") == SyncOutcome.IGNORED
    assert await store.get_objects() == {}


@pytest.mark.asyncio
async def test_known_data_point_is_not_registered_again() -> None:
    store = StateStore()
    inbound, _, _ = _inbound(store)
    await inbound.handle_message("hasp/plate1/state/p1b1.val", b"on")

    created: list[str] = []
    create = store.set_object_not_exists

    async def tracking(object_id, obj):  # type: ignore[no-untyped-def]
        created.append(object_id)
        return await create(object_id, obj)

    store.set_object_not_exists = tracking  # type: ignore[method-assign]
    await inbound.handle_message("hasp/plate1/state/p1b1.val", b"off")

    assert created == []
    state = await store.get_state(f"{NS}.plate1.p1b1")
    assert state is not None and state.val == "off"


@pytest.mark.asyncio
async def test_store_failure_is_reported_not_raised() -> None:
    class BrokenStore(StateStore):
        async def set_object_not_exists(self, object_id, obj):  # type: ignore[no-untyped-def]
            raise OSError("store offline")

    inbound, _, _ = _inbound(BrokenStore())

    assert await inbound.handle_message("hasp/plate1/state/p1b1.val", b"on") == SyncOutcome.FAILED
