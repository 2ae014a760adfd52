"""Custom exception hierarchy for pyhasp."""

from __future__ import annotations


class HaspError(Exception):
    """Base exception for all pyhasp errors."""


class HaspConfigError(HaspError):
    """Invalid or missing configuration."""


class HaspTransportError(HaspError):
    """MQTT-level failure (connect, subscribe, publish)."""

    def __init__(
        self,
        message: str,
        *,
        rc: int | None = None,
        topic: str = "",
    ) -> None:
        self.rc = rc
        self.topic = topic
        super().__init__(message)


class HaspStoreError(HaspError):
    """State store read or write failure."""

    def __init__(self, message: str, *, object_id: str = "") -> None:
        self.object_id = object_id
        super().__init__(message)
