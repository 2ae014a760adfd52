"""Startup migration of previously created states to string text states."""

from __future__ import annotations

import logging

from pyhasp._client.mqtt import CONNECTION_STATE
from pyhasp.state.records import ObjectType, ValueType
from pyhasp.state.store import StateStore, split_id
from pyhasp.state.suffix import is_suffix_state

_logger = logging.getLogger(__name__)

_GENERIC_ROLES = frozenset({"", "state"})


async def migrate_states_to_string(store: StateStore, namespace: str) -> list[str]:
    """Force ``type=string`` and a ``text`` role on the bridge's data-point states.

    Returns the ids that were changed. Never raises.
    """
    try:
        objects = await store.get_objects(namespace)
    except Exception:
        _logger.warning("State migration to string failed", exc_info=True)
        return []

    migrated: list[str] = []
    for object_id, obj in objects.items():
        if obj.type != ObjectType.STATE:
            continue
        rel = split_id(namespace, object_id)
        if rel is None or rel == CONNECTION_STATE:
            continue
        parts = rel.split(".")
        if len(parts) < 2 or not parts[1]:
            continue

        patch: dict[str, str] = {}
        if obj.common.type != ValueType.STRING:
            patch["type"] = ValueType.STRING
        if (obj.common.role or "") in _GENERIC_ROLES:
            patch["role"] = "text"
        if not patch:
            continue

        try:
            await store.extend_object(object_id, patch)
        except Exception:
            _logger.warning("State migration failed for %s", object_id, exc_info=True)
            continue
        kind = "suffix state" if is_suffix_state(parts[1]) else "state"
        _logger.warning("Migrated %s to string: %s", kind, object_id)
        migrated.append(object_id)
    return migrated
