"""Linkgrab data, configuration and event models."""

from .config import (
    DEFAULT_BLOCKED_DOMAINS,
    AggregationConfig,
    ClassifyOptions,
    ExtractionConfig,
    LinkGrabConfig,
    NetworkConfig,
    SettingsConfig,
)
from .events import CollectionEvent, CollectionStats, EventType
from .links import CollectionResult, FrameReport, LinkRecord, SourceKind, dedup_key

__all__ = [
    # Config
    "AggregationConfig",
    "ClassifyOptions",
    "DEFAULT_BLOCKED_DOMAINS",
    "ExtractionConfig",
    "LinkGrabConfig",
    "NetworkConfig",
    "SettingsConfig",
    # Events
    "CollectionEvent",
    "CollectionStats",
    "EventType",
    # Links
    "CollectionResult",
    "FrameReport",
    "LinkRecord",
    "SourceKind",
    "dedup_key",
]
