"""Per-frame link extraction and frame sources."""

from .browser import PLAYWRIGHT_AVAILABLE, BrowserFrameSource
from .protocols import FrameDocument, FrameExtractor, FrameLoader, FrameSource, PageFrames
from .static import SCRIPT_URL_PATTERN, StaticFrameExtractor, discover_frame_urls

__all__ = [
    "BrowserFrameSource",
    "FrameDocument",
    "FrameExtractor",
    "FrameLoader",
    "FrameSource",
    "PageFrames",
    "PLAYWRIGHT_AVAILABLE",
    "SCRIPT_URL_PATTERN",
    "StaticFrameExtractor",
    "discover_frame_urls",
]
