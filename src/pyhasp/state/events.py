"""Outcomes reported by the synchronization handlers."""

from __future__ import annotations

from enum import StrEnum


class SyncOutcome(StrEnum):
    IGNORED = "ignored"
    WRITTEN = "written"
    SUFFIX_UPDATED = "suffix_updated"
    PUBLISHED = "published"
    PUBLISH_SKIPPED = "publish_skipped"
    PUBLISH_FAILED = "publish_failed"
    FAILED = "failed"
