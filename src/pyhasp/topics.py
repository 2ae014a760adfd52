"""openHASP MQTT topic codec.

Plates report on ``<base>/<plate>/state/<dp>[.<attr>]`` (or
``<base>/<plate>/state/<dp>/<attr>``) and accept commands on
``<base>/<plate>/command/<dp>[.<suffix>]``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

STATE_SECTION = "state"
COMMAND_SECTION = "command"

_TRAILING_SEPARATORS = re.compile(r"[/+]+$")


@dataclass(frozen=True)
class StateTopic:
    """A parsed inbound state topic."""

    plate: str
    dp: str
    attr: str = ""


def state_subscription(base_topic: str) -> str:
    """Subscription filter covering every plate's state topics."""
    return f"{base_topic}/+/{STATE_SECTION}/#"


def parse_state_topic(topic: str, base_topic: str) -> StateTopic | None:
    """Split an inbound state topic into plate, data point and attribute.

    Returns ``None`` for topics that do not belong to *base_topic* or are
    not state topics. The attribute is taken from the last ``/`` segment
    when present, otherwise from the last ``.`` segment of the data point.
    """
    parts = topic.split("/")
    if len(parts) < 4:
        return None
    base, plate, section = parts[0], parts[1], parts[2]
    rest = "/".join(parts[3:])
    if base != base_topic or section != STATE_SECTION:
        return None

    dp, attr = rest, ""
    if "/" in rest:
        dp, _, attr = rest.rpartition("/")
    if not attr and "." in dp:
        dp, _, attr = dp.rpartition(".")

    return StateTopic(
        plate=plate,
        dp=dp.strip().rstrip("."),
        attr=attr.strip().lstrip("."),
    )


def clean_suffix(suffix: str | None) -> str:
    """Normalise a suffix for topic use: no leading dots, no ``/``."""
    return (suffix or "").strip().lstrip(".").replace("/", "")


def build_command_topic(base_topic: str, plate: str, dp: str, suffix: str | None) -> str:
    """Build the command topic for a data point.

    Topic separators never end up inside the data point name: trailing
    ``/`` and ``+`` are stripped and any remaining ``/`` removed.
    """
    clean_dp = _TRAILING_SEPARATORS.sub("", (dp or "").strip()).replace("/", "")
    clean = clean_suffix(suffix)
    tail = f".{clean}" if clean else ""
    return f"{base_topic}/{plate}/{COMMAND_SECTION}/{clean_dp}{tail}"
