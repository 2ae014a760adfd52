"""Active-suffix resolution for data points.

Each data point ``<plate>.<dp>`` has a companion record
``<plate>.<dp>_suffix`` naming the attribute whose reports update the value
(``val`` unless configured otherwise). Resolved suffixes are cached in
memory; the cache is only updated through :class:`SuffixResolver`.
"""

from __future__ import annotations

import logging

from pyhasp.state.store import StateStore, join_id

_logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = "val"
SUFFIX_MARKER = "_suffix"


def suffix_state_name(dp: str) -> str:
    return f"{dp}{SUFFIX_MARKER}"


def is_suffix_state(dp: str) -> bool:
    return dp.endswith(SUFFIX_MARKER)


def data_point_of(suffix_dp: str) -> str:
    """``p1b1_suffix`` -> ``p1b1``."""
    return suffix_dp[: -len(SUFFIX_MARKER)]


class SuffixCache:
    """Process-lifetime mapping ``(plate, dp) -> suffix``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], str] = {}

    def get(self, plate: str, dp: str) -> str | None:
        return self._entries.get((plate, dp))

    def set(self, plate: str, dp: str, suffix: str) -> None:
        self._entries[(plate, dp)] = suffix

    def discard(self, plate: str, dp: str) -> None:
        self._entries.pop((plate, dp), None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class SuffixResolver:
    """Reads and writes active suffixes, keeping the cache in step with the store."""

    def __init__(
        self,
        store: StateStore,
        namespace: str,
        *,
        cache: SuffixCache | None = None,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._cache = cache if cache is not None else SuffixCache()

    @property
    def cache(self) -> SuffixCache:
        return self._cache

    def _suffix_id(self, plate: str, dp: str) -> str:
        return join_id(self._namespace, plate, suffix_state_name(dp))

    async def get_suffix(self, plate: str, dp: str) -> str:
        """Active suffix for a data point, reading the store only on a cache miss."""
        cached = self._cache.get(plate, dp)
        if cached is not None:
            return cached
        return await self.load_suffix(plate, dp)

    async def load_suffix(self, plate: str, dp: str) -> str:
        """Read the persisted suffix (``val`` if unset) and refresh the cache."""
        state = await self._store.get_state(self._suffix_id(plate, dp))
        suffix = str(state.val) if state is not None and state.val is not None else DEFAULT_SUFFIX
        self._cache.set(plate, dp, suffix)
        return suffix

    async def set_suffix(self, plate: str, dp: str, value: object) -> str:
        """Persist a new active suffix (acknowledged) and update the cache.

        The cache is updated only after the store write succeeded.
        """
        suffix = str(value if value is not None else "").strip()
        await self._store.set_state(self._suffix_id(plate, dp), suffix, ack=True)
        self._cache.set(plate, dp, suffix)
        _logger.debug("Suffix updated [%s/%s] -> '%s'", plate, dp, suffix)
        return suffix
