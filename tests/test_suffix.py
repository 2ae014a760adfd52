from __future__ import annotations

from pathlib import Path

import pytest

from pyhasp.exceptions import HaspStoreError
from pyhasp.state.records import StateValue
from pyhasp.state.store import JsonFileStateStore, StateStore
from pyhasp.state.suffix import SuffixCache, SuffixResolver, data_point_of, is_suffix_state, suffix_state_name

NS = "openhasp.0"


class CountingStore(StateStore):
    def __init__(self) -> None:
        super().__init__()
        self.reads: list[str] = []

    async def get_state(self, state_id: str) -> StateValue | None:
        self.reads.append(state_id)
        return await super().get_state(state_id)


class FailingWriteStore(StateStore):
    async def set_state(self, state_id: str, val: object, *, ack: bool = False) -> StateValue:
        raise OSError("disk full")


def test_suffix_state_names() -> None:
    assert suffix_state_name("p1b1") == "p1b1_suffix"
    assert is_suffix_state("p1b1_suffix")
    assert not is_suffix_state("p1b1")
    assert data_point_of("p1b1_suffix") == "p1b1"


def test_cache_is_keyed_by_plate_and_dp() -> None:
    cache = SuffixCache()
    cache.set("plate1", "p1b1", "bri")

    assert cache.get("plate1", "p1b1") == "bri"
    assert cache.get("plate2", "p1b1") is None
    assert ("plate1", "p1b1") in cache
    assert len(cache) == 1

    cache.discard("plate1", "p1b1")
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_get_suffix_defaults_to_val_and_caches() -> None:
    store = CountingStore()
    resolver = SuffixResolver(store, NS)

    assert await resolver.get_suffix("plate1", "p1b1") == "val"
    assert await resolver.get_suffix("plate1", "p1b1") == "val"

    assert store.reads == [f"{NS}.plate1.p1b1_suffix"]


@pytest.mark.asyncio
async def test_get_suffix_reads_persisted_value() -> None:
    store = CountingStore()
    await store.set_state(f"{NS}.plate1.p1b1_suffix", "text", ack=True)
    resolver = SuffixResolver(store, NS)

    assert await resolver.get_suffix("plate1", "p1b1") == "text"


@pytest.mark.asyncio
async def test_null_persisted_value_defaults_to_val() -> None:
    store = CountingStore()
    await store.set_state(f"{NS}.plate1.p1b1_suffix", None, ack=True)

    assert await SuffixResolver(store, NS).get_suffix("plate1", "p1b1") == "val"


@pytest.mark.asyncio
async def test_set_suffix_is_visible_without_store_read() -> None:
    store = CountingStore()
    resolver = SuffixResolver(store, NS)

    await resolver.set_suffix("plate1", "p1b1", "  bri ")

    assert await resolver.get_suffix("plate1", "p1b1") == "bri"
    assert store.reads == []
    state = await store.get_state(f"{NS}.plate1.p1b1_suffix")
    assert state is not None and state.val == "bri" and state.ack is True


@pytest.mark.asyncio
async def test_failed_write_leaves_cache_untouched() -> None:
    cache = SuffixCache()
    cache.set("plate1", "p1b1", "val")
    resolver = SuffixResolver(FailingWriteStore(), NS, cache=cache)

    with pytest.raises(OSError):
        await resolver.set_suffix("plate1", "p1b1", "bri")

    assert cache.get("plate1", "p1b1") == "val"


@pytest.mark.asyncio
async def test_injected_cache_is_shared() -> None:
    cache = SuffixCache()
    cache.set("plate1", "p1b1", "text")
    resolver = SuffixResolver(CountingStore(), NS, cache=cache)

    assert resolver.cache is cache
    assert await resolver.get_suffix("plate1", "p1b1") == "text"


class ReadOnlyDiskStore(JsonFileStateStore):
    read_only = False

    def _write(self, payload: str) -> None:
        if self.read_only:
            raise OSError("read-only file system")
        super()._write(payload)


@pytest.mark.asyncio
async def test_failed_persist_keeps_store_and_cache_in_step(tmp_path: Path) -> None:
    store = ReadOnlyDiskStore(tmp_path / "states.json")
    resolver = SuffixResolver(store, NS)
    await resolver.set_suffix("plate1", "p1b1", "bri")
    store.read_only = True

    with pytest.raises(HaspStoreError):
        await resolver.set_suffix("plate1", "p1b1", "text")

    assert resolver.cache.get("plate1", "p1b1") == "bri"
    state = await store.get_state(f"{NS}.plate1.p1b1_suffix")
    assert state is not None and state.val == "bri"
    assert await resolver.load_suffix("plate1", "p1b1") == "bri"
