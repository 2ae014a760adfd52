"""Helpers for safe logging of configuration.

The configuration record carries broker credentials; log it through
:func:`redact_for_log` so they never reach the log output.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset({"password", "mqtt_password", "mqttpassword", "token"})
_MASK = "<redacted>"


def _redact_value(key: str, value: Any, max_string: int) -> Any:
    if key.lower() in _SENSITIVE_KEYS:
        # Empty credentials stay visible.
        return _MASK if value else value
    if isinstance(value, Mapping):
        return redact_for_log(value, max_string=max_string)
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value


def redact_for_log(value: Mapping[str, Any] | Any, *, max_string: int = 512) -> dict[str, Any]:
    """Return a redacted dict copy of a mapping or dataclass instance."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    return {str(k): _redact_value(str(k), v, max_string) for k, v in value.items()}
