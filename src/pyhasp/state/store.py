"""Key/value state store with typed object records and change notifications.

Records are addressed by dotted ids (``openhasp.0.plate1.p1b1``). The store
is shared: it may hold records of other namespaces, so callers filter by
their own namespace prefix.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from pyhasp.exceptions import HaspStoreError
from pyhasp.state.records import ObjectRecord, StateCommon, StateValue

_logger = logging.getLogger(__name__)

StateListener = Callable[[str, StateValue | None], Awaitable[None]]


def join_id(namespace: str, *parts: str) -> str:
    return ".".join((namespace, *parts))


def split_id(namespace: str, full_id: str) -> str | None:
    """Return the id relative to *namespace*, or ``None`` if outside it."""
    prefix = f"{namespace}."
    if not full_id.startswith(prefix):
        return None
    return full_id[len(prefix) :] or None


class StateStore:
    """In-memory object and state store.

    Listeners registered with :meth:`subscribe` are awaited, in
    registration order, after every state write or deletion. A failing
    listener is logged and does not affect the write or other listeners.
    """

    def __init__(self) -> None:
        self._objects: dict[str, ObjectRecord] = {}
        self._states: dict[str, StateValue] = {}
        self._listeners: list[StateListener] = []

    @staticmethod
    def _check_id(object_id: str) -> None:
        if not object_id or object_id.startswith(".") or object_id.endswith("."):
            raise HaspStoreError(f"Invalid object id: {object_id!r}", object_id=object_id)

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    async def set_object_not_exists(self, object_id: str, obj: ObjectRecord) -> bool:
        """Create *obj* unless a record already exists. Returns ``True`` if created."""
        self._check_id(object_id)
        if object_id in self._objects:
            return False
        await self._commit(self._objects, object_id, obj.model_copy(deep=True))
        return True

    async def get_object(self, object_id: str) -> ObjectRecord | None:
        obj = self._objects.get(object_id)
        return obj.model_copy(deep=True) if obj is not None else None

    async def get_objects(self, prefix: str | None = None) -> dict[str, ObjectRecord]:
        """Snapshot of all objects, optionally limited to ids below *prefix*."""
        return {
            object_id: obj.model_copy(deep=True)
            for object_id, obj in self._objects.items()
            if prefix is None or object_id.startswith(f"{prefix}.")
        }

    async def extend_object(self, object_id: str, common: StateCommon | dict[str, Any]) -> ObjectRecord:
        """Merge *common* into an existing object's metadata."""
        obj = self._objects.get(object_id)
        if obj is None:
            raise HaspStoreError(f"Object not found: {object_id}", object_id=object_id)
        patch = common.model_dump(exclude_unset=True) if isinstance(common, StateCommon) else dict(common)
        try:
            merged = StateCommon.model_validate({**obj.common.model_dump(), **patch})
        except ValidationError as exc:
            raise HaspStoreError(f"Invalid metadata for {object_id}: {exc}", object_id=object_id) from exc
        updated = obj.model_copy(update={"common": merged})
        await self._commit(self._objects, object_id, updated)
        return updated.model_copy(deep=True)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    async def get_state(self, state_id: str) -> StateValue | None:
        return self._states.get(state_id)

    async def set_state(self, state_id: str, val: Any, *, ack: bool = False) -> StateValue:
        """Write a state value and notify listeners."""
        self._check_id(state_id)
        state = StateValue(val=val, ack=ack)
        await self._commit(self._states, state_id, state)
        await self._notify(state_id, state)
        return state

    async def delete_state(self, state_id: str) -> None:
        if state_id not in self._states:
            return
        await self._commit(self._states, state_id, None)
        await self._notify(state_id, None)

    async def _commit(self, records: dict[str, Any], key: str, value: Any) -> None:
        """Apply one change and persist it; undo the change if persisting fails.

        A ``None`` *value* removes *key*. The undo is skipped when another
        write replaced the entry while the persist was pending.
        """
        previous = records.get(key)
        if value is None:
            records.pop(key, None)
        else:
            records[key] = value
        try:
            await self._persist()
        except Exception:
            if records.get(key) is value:
                if previous is None:
                    records.pop(key, None)
                else:
                    records[key] = previous
            raise

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def _notify(self, state_id: str, state: StateValue | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(state_id, state)
            except Exception:
                _logger.error("State listener failed for %s", state_id, exc_info=True)

    async def _persist(self) -> None:
        """Hook for persistent subclasses."""


class _Snapshot(BaseModel):
    objects: dict[str, ObjectRecord] = Field(default_factory=dict)
    states: dict[str, StateValue] = Field(default_factory=dict)


class JsonFileStateStore(StateStore):
    """State store persisted to a JSON file after every mutation."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self._path = Path(path)
        self._write_lock = asyncio.Lock()
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            snapshot = _Snapshot.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise HaspStoreError(f"Cannot load state file {self._path}: {exc}") from exc
        self._objects = dict(snapshot.objects)
        self._states = dict(snapshot.states)
        _logger.debug("Loaded %d objects and %d states from %s", len(self._objects), len(self._states), self._path)

    def _write(self, payload: str) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, self._path)

    async def _persist(self) -> None:
        payload = _Snapshot(objects=self._objects, states=self._states).model_dump_json(by_alias=True)
        async with self._write_lock:
            try:
                await asyncio.get_running_loop().run_in_executor(None, self._write, payload)
            except OSError as exc:
                raise HaspStoreError(f"Cannot write state file {self._path}: {exc}") from exc
