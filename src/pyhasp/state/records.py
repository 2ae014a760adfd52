"""Typed records held by the state store."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ObjectType(StrEnum):
    STATE = "state"
    CHANNEL = "channel"


class ValueType(StrEnum):
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    MIXED = "mixed"


class StateCommon(BaseModel):
    """Declared metadata of a record (name, type, role, access, default)."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str = ""
    type: ValueType | None = None
    role: str | None = None
    read: bool = True
    write: bool = True
    default: Any = Field(default=None, alias="def")


class ObjectRecord(BaseModel):
    """An object definition: a state or a grouping channel."""

    model_config = ConfigDict(extra="forbid")

    type: ObjectType
    common: StateCommon = Field(default_factory=StateCommon)
    native: dict[str, Any] = Field(default_factory=dict)


class StateValue(BaseModel):
    """Current value of a state and whether the bridge itself set it."""

    model_config = ConfigDict(frozen=True)

    val: Any = None
    ack: bool = False
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))


def string_state(name: str, *, default: str = "", role: str = "text") -> ObjectRecord:
    """A read/write string state definition."""
    return ObjectRecord(
        type=ObjectType.STATE,
        common=StateCommon(
            name=name,
            type=ValueType.STRING,
            role=role,
            read=True,
            write=True,
            default=default,
        ),
    )


def channel(name: str) -> ObjectRecord:
    return ObjectRecord(type=ObjectType.CHANNEL, common=StateCommon(name=name))
