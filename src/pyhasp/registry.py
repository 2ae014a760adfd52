"""Data-point registration.

Every data point seen on the wire gets a plate channel, a value state and a
suffix state in the store. Creation is idempotent.
"""

from __future__ import annotations

import logging

from pyhasp.state.records import channel, string_state
from pyhasp.state.store import StateStore, join_id
from pyhasp.state.suffix import DEFAULT_SUFFIX, SuffixResolver, suffix_state_name

_logger = logging.getLogger(__name__)


class DataPointRegistry:
    def __init__(self, store: StateStore, namespace: str, resolver: SuffixResolver) -> None:
        self._store = store
        self._namespace = namespace
        self._resolver = resolver
        self._known: set[tuple[str, str]] = set()

    def is_known(self, plate: str, dp: str) -> bool:
        return (plate, dp) in self._known

    async def ensure_data_point(self, plate: str, dp: str) -> str:
        """Create the records for ``plate.dp`` if missing and cache its suffix.

        Returns the active suffix.
        """
        plate_id = join_id(self._namespace, plate)
        dp_id = join_id(self._namespace, plate, dp)
        suffix_id = join_id(self._namespace, plate, suffix_state_name(dp))

        created = await self._store.set_object_not_exists(plate_id, channel(plate))
        created |= await self._store.set_object_not_exists(dp_id, string_state(dp))
        created |= await self._store.set_object_not_exists(
            suffix_id,
            string_state(f"{dp} suffix", default=DEFAULT_SUFFIX),
        )
        if created:
            _logger.debug("Registered data point %s", dp_id)

        suffix = await self._resolver.load_suffix(plate, dp)
        self._known.add((plate, dp))
        return suffix
