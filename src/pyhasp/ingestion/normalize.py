"""Payload normalisation between MQTT bytes and string state values."""

from __future__ import annotations

import json
from typing import Any


def decode_payload(payload: bytes | bytearray | str | None) -> str:
    """Return payload as text, whether it's bytes, str, or None."""
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", errors="replace")
    return str(payload)


def to_payload_text(value: Any) -> str:
    """Render a state value the way plates expect it on the wire.

    Booleans and ``None`` use their JSON spelling, integral floats drop the
    fraction, containers are JSON-encoded.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)
