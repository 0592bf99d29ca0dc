"""Cross-frame aggregation and result storage."""

from .aggregator import CollectionRequest, FrameAggregator, dedupe_links
from .store import ResultStore

__all__ = [
    "CollectionRequest",
    "FrameAggregator",
    "ResultStore",
    "dedupe_links",
]
