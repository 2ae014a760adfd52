"""Bridge configuration for pyhasp."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pyhasp.exceptions import HaspConfigError

DEFAULT_BASE_TOPIC = "hasp"
DEFAULT_NAMESPACE = "openhasp.0"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _coerce_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
    return default


def _coerce_port(value: Any) -> int:
    if isinstance(value, bool):
        raise HaspConfigError(f"Invalid MQTT port: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError as exc:
            raise HaspConfigError(f"Invalid MQTT port: {value!r}") from exc
    raise HaspConfigError(f"Invalid MQTT port: {value!r}")


@dataclasses.dataclass(frozen=True)
class HaspConfig:
    """Bridge configuration.

    Parameters
    ----------
    mqtt_host : str
        Broker host name or address.
    mqtt_port : int
        Broker port.
    mqtt_username : str or None
        Optional broker user name.
    mqtt_password : str or None
        Optional broker password.
    base_topic : str
        Topic prefix shared by all plates (e.g. ``"hasp"``). Trailing
        slashes are stripped.
    use_tls : bool
        Connect with TLS (``mqtts://``).
    namespace : str
        State store namespace owned by the bridge. Every record the bridge
        creates lives below ``<namespace>.``.
    client_id : str or None
        MQTT client id. paho generates a random one when omitted.
    keepalive : int
        MQTT keepalive in seconds.
    reconnect_delay : float
        Seconds between reconnect attempts.
    qos : int
        QoS used for the state subscription and command publishes.
    """

    mqtt_host: str = "127.0.0.1"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    base_topic: str = DEFAULT_BASE_TOPIC
    use_tls: bool = False
    namespace: str = DEFAULT_NAMESPACE
    client_id: str | None = None
    keepalive: int = 60
    reconnect_delay: float = 2.0
    qos: int = 0

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "base_topic", self.base_topic.strip().rstrip("/"))
        if not self.mqtt_host.strip():
            raise HaspConfigError("mqtt_host must be non-empty")
        if not 0 < self.mqtt_port < 65536:
            raise HaspConfigError(f"mqtt_port out of range: {self.mqtt_port}")
        if not self.base_topic:
            raise HaspConfigError("base_topic must be non-empty")
        if not self.namespace.strip():
            raise HaspConfigError("namespace must be non-empty")
        if self.qos not in (0, 1, 2):
            raise HaspConfigError(f"qos must be 0, 1 or 2, got {self.qos}")

    @property
    def broker_url(self) -> str:
        """Broker URL for logging (``mqtt://`` or ``mqtts://``)."""
        scheme = "mqtts" if self.use_tls else "mqtt"
        return f"{scheme}://{self.mqtt_host}:{self.mqtt_port}"

    @classmethod
    def from_env(cls, **overrides: Any) -> HaspConfig:
        """Create configuration from environment variables.

        Reads optional ``HASP_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        HaspConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "HASP_MQTT_HOST": "mqtt_host",
            "HASP_MQTT_USERNAME": "mqtt_username",
            "HASP_MQTT_PASSWORD": "mqtt_password",
            "HASP_BASE_TOPIC": "base_topic",
            "HASP_NAMESPACE": "namespace",
            "HASP_CLIENT_ID": "client_id",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        port_env = env.get("HASP_MQTT_PORT")
        if port_env is not None and "mqtt_port" not in overrides:
            config_kwargs["mqtt_port"] = _coerce_port(port_env)

        if "use_tls" not in overrides:
            config_kwargs["use_tls"] = _env_bool(env.get("HASP_MQTT_TLS"), False)

        keepalive_env = env.get("HASP_MQTT_KEEPALIVE")
        if keepalive_env is not None and "keepalive" not in overrides:
            config_kwargs["keepalive"] = int(keepalive_env)

        delay_env = env.get("HASP_RECONNECT_DELAY")
        if delay_env is not None and "reconnect_delay" not in overrides:
            config_kwargs["reconnect_delay"] = float(delay_env)

        qos_env = env.get("HASP_MQTT_QOS")
        if qos_env is not None and "qos" not in overrides:
            config_kwargs["qos"] = int(qos_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

    @classmethod
    def from_native(cls, native: Mapping[str, Any] | None, **overrides: Any) -> HaspConfig:
        """Parse legacy adapter settings into a typed configuration.

        Older adapter instances stored their settings either under the
        positional keys ``"1"``..``"6"`` or under named keys
        (``mqttHost``, ``mqttPort``, ...). A non-empty positional key wins.
        Ports may be given as strings and the TLS flag as ``"true"`` /
        ``"false"``.
        """
        n: Mapping[str, Any] = native or {}

        def positional(index: int, default: Any) -> Any:
            value = n.get(str(index))
            if value is None or value == "":
                return default
            return value

        named_host = n.get("mqttHost")
        host = positional(1, named_host if isinstance(named_host, str) and named_host else "127.0.0.1")

        named_port = n.get("mqttPort")
        if isinstance(named_port, (int, float)) and not isinstance(named_port, bool):
            port_default: Any = named_port
        elif isinstance(named_port, str) and named_port.strip():
            port_default = named_port
        else:
            port_default = 1883
        port = _coerce_port(positional(2, port_default))

        named_user = n.get("mqttUser")
        user = str(positional(3, named_user if isinstance(named_user, str) else ""))
        named_password = n.get("mqttPassword")
        password = str(positional(4, named_password if isinstance(named_password, str) else ""))

        named_base = n.get("mqttBaseTopic")
        base_topic = str(positional(5, named_base if isinstance(named_base, str) else DEFAULT_BASE_TOPIC))

        tls_default = n["mqttUseTLS"] if "mqttUseTLS" in n else n.get("useTLS")
        use_tls = _coerce_bool(positional(6, tls_default), False)

        config_kwargs: dict[str, Any] = {
            "mqtt_host": str(host),
            "mqtt_port": port,
            "mqtt_username": user or None,
            "mqtt_password": password or None,
            "base_topic": base_topic,
            "use_tls": use_tls,
        }
        config_kwargs.update(overrides)
        return cls(**config_kwargs)
