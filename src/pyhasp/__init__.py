"""pyhasp - Async bridge between openHASP plates (MQTT) and a key/value state store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyhasp")
except PackageNotFoundError:
    __version__ = "0+local"
from pyhasp.client import HaspBridge
from pyhasp.config import HaspConfig
from pyhasp.exceptions import (
    HaspConfigError,
    HaspError,
    HaspStoreError,
    HaspTransportError,
)
from pyhasp.state.events import SyncOutcome
from pyhasp.state.records import ObjectRecord, ObjectType, StateCommon, StateValue, ValueType
from pyhasp.state.store import JsonFileStateStore, StateStore
from pyhasp.state.suffix import SuffixCache, SuffixResolver
from pyhasp.topics import StateTopic, build_command_topic, parse_state_topic, state_subscription

__all__ = [
    "__version__",
    "HaspBridge",
    "HaspConfig",
    "HaspConfigError",
    "HaspError",
    "HaspStoreError",
    "HaspTransportError",
    "JsonFileStateStore",
    "ObjectRecord",
    "ObjectType",
    "StateCommon",
    "StateStore",
    "StateTopic",
    "StateValue",
    "SuffixCache",
    "SuffixResolver",
    "SyncOutcome",
    "ValueType",
    "build_command_topic",
    "parse_state_topic",
    "state_subscription",
]
