"""
linkgrab - Collect, filter and group every link on a web page.

Usage:
    from linkgrab import LinkCollector, LinkGrabConfig, LinkListView

    async with LinkCollector(LinkGrabConfig()) as collector:
        result = await collector.collect("https://example.com")
        view = LinkListView(result, collector.settings)
        for section in view.sections:
            print(section.title, len(section))
"""

__version__ = "1.0.0"

from .aggregation import FrameAggregator, ResultStore
from .classify import ClassificationResult, ClassifiedLink, classify
from .core import LinkCollector, TabInfo, collect_blocking
from .exceptions import BrowserUnavailableError, CollectionAborted, LinkGrabError, PageFetchError
from .models.config import (
    AggregationConfig,
    ClassifyOptions,
    ExtractionConfig,
    LinkGrabConfig,
    NetworkConfig,
    SettingsConfig,
)
from .models.events import CollectionEvent, CollectionStats, EventType
from .models.links import CollectionResult, LinkRecord, SourceKind
from .presentation import LinkListView
from .settings import SettingsStore

__all__ = [
    "__version__",
    # Core
    "LinkCollector",
    "TabInfo",
    "collect_blocking",
    "FrameAggregator",
    "ResultStore",
    "classify",
    # Config
    "LinkGrabConfig",
    "AggregationConfig",
    "ClassifyOptions",
    "ExtractionConfig",
    "NetworkConfig",
    "SettingsConfig",
    # Data
    "ClassificationResult",
    "ClassifiedLink",
    "CollectionResult",
    "LinkRecord",
    "SourceKind",
    # Events
    "CollectionEvent",
    "CollectionStats",
    "EventType",
    # Presentation and settings
    "LinkListView",
    "SettingsStore",
    # Errors
    "BrowserUnavailableError",
    "CollectionAborted",
    "LinkGrabError",
    "PageFetchError",
]
