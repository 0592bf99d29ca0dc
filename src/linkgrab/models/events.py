"""Event types emitted while a page collection is running."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Types of events emitted during a collection."""

    # Lifecycle events
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"

    # Frame phase
    FRAMES_DISCOVERED = "frames_discovered"
    FRAME_REPORTED = "frame_reported"
    FRAME_FAILED = "frame_failed"

    # Aggregation phase
    COLLECTION_FINALIZED = "collection_finalized"
    COLLECTION_TIMED_OUT = "collection_timed_out"
    COLLECTION_SUPERSEDED = "collection_superseded"


@dataclass
class CollectionEvent:
    """
    Event emitted during a collection.

    Example:
        def on_event(event: CollectionEvent) -> None:
            if event.type == EventType.FRAME_REPORTED:
                print(f"Frame {event.current}/{event.total}: {event.link_count} links")

        async with LinkCollector(config, emit=on_event) as collector:
            result = await collector.collect("https://example.com")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    tab_id: Optional[int] = None
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    # Frame progress
    current: Optional[int] = None
    total: Optional[int] = None
    link_count: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.FAILED, EventType.FRAME_FAILED)


@dataclass
class CollectionStats:
    """Statistics for the most recent collection."""

    frames_expected: int = 0
    frames_received: int = 0
    links_reported: int = 0
    links_unique: int = 0
    duration_seconds: float = 0.0
    timed_out: bool = False

    @property
    def frames_missing(self) -> int:
        return max(self.frames_expected - self.frames_received, 0)

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "frames_expected": self.frames_expected,
            "frames_received": self.frames_received,
            "frames_missing": self.frames_missing,
            "links_reported": self.links_reported,
            "links_unique": self.links_unique,
            "duration_seconds": round(self.duration_seconds, 2),
            "timed_out": self.timed_out,
        }
