"""Ingestion layer.

Adapters that receive plate reports over MQTT and write them into the
state store.
"""

__all__: list[str] = []
