"""State/store layer.

Typed object records, the key/value store the bridge mirrors plates into,
and the per-data-point suffix cache.
"""
